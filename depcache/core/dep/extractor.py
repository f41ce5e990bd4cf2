"""归档安全解包

gzip 解压后按 tar 逐条目解包到目标目录。归档内容来自远程，
写盘前先按条目名做字面校验，以下情况直接使整个解包失败:
  - 绝对路径条目
  - 规范化后不在目标目录之内的条目（`../` 穿越）
  - 指向目标目录之外的符号链接 / 硬链接

字面校验不跟随已写入的符号链接。经符号链接中转的路径
（如先写 `lib/a/y -> ../../lib`，再写 `lib/a/y/../../evil`）由写盘时
tarfile 的 data 过滤器拦截，此时前面的条目已写入目标目录，
因此目标目录必须是可整体丢弃的暂存目录。

依赖 tarfile 的 filter 参数（Python 3.10.12+ / 3.11.4+ / 3.12+）。
"""

from __future__ import annotations

import gzip
import io
import logging
import os
import tarfile
import zlib
from pathlib import Path

from depcache.core.exceptions import CacheIOError, CorruptArchive, UnsafeEntryPath

logger = logging.getLogger(__name__)


class SafeExtractor:
    """.tar.gz 安全解包器"""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def extract(self, archive_bytes: bytes, target_dir: Path) -> None:
        """解包到 target_dir（需已存在）

        Raises:
            CorruptArchive: gzip 解压或 tar 解包失败
            UnsafeEntryPath: 条目路径逃逸 target_dir
            CacheIOError: 本地写入失败
        """
        try:
            raw = gzip.decompress(archive_bytes)
        except (OSError, EOFError, zlib.error) as e:
            raise CorruptArchive(f"gzip 解压失败: {e}") from e

        root = os.path.realpath(target_dir)
        try:
            with tarfile.open(fileobj=io.BytesIO(raw), mode="r:") as tf:
                members = [m for m in tf.getmembers() if _check_member(m, root)]
                for member in members:
                    self._extract_member(tf, member, root)
        except tarfile.FilterError as e:
            raise UnsafeEntryPath(e.tarinfo.name) from e
        except tarfile.TarError as e:
            raise CorruptArchive(f"tar 解包失败: {e}") from e

        self._log.debug("解包完成: %d 个条目 -> %s", len(members), root)

    @staticmethod
    def _extract_member(tf: tarfile.TarFile, member: tarfile.TarInfo, root: str) -> None:
        try:
            tf.extract(member, path=root, filter="data")
        except OSError as e:
            raise CacheIOError(f"写入条目失败 {member.name}: {e}") from e


def _check_member(member: tarfile.TarInfo, root: str) -> bool:
    """校验单个条目，返回是否需要写盘；不安全时抛 UnsafeEntryPath"""
    name = member.name
    if not name or os.path.isabs(name) or name.startswith(("/", "\\")):
        raise UnsafeEntryPath(name)

    dest = os.path.normpath(os.path.join(root, name))
    if dest == root:
        # "./" 之类的目录条目不写任何内容
        if member.isdir():
            return False
        raise UnsafeEntryPath(name)
    if not _is_within(dest, root):
        raise UnsafeEntryPath(name)

    if member.issym():
        if os.path.isabs(member.linkname):
            raise UnsafeEntryPath(f"{name} -> {member.linkname}")
        link_dest = os.path.normpath(
            os.path.join(os.path.dirname(dest), member.linkname),
        )
        if not _is_within(link_dest, root):
            raise UnsafeEntryPath(f"{name} -> {member.linkname}")
    elif member.islnk():
        link_dest = os.path.normpath(os.path.join(root, member.linkname))
        if os.path.isabs(member.linkname) or not _is_within(link_dest, root):
            raise UnsafeEntryPath(f"{name} -> {member.linkname}")
    return True


def _is_within(path: str, root: str) -> bool:
    return path.startswith(root.rstrip(os.sep) + os.sep)
