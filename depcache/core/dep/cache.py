"""包源码磁盘缓存

以 (name, version) 为键，把包的 lib/ 源码目录缓存在本地磁盘:

  <root>/
    collection-1.1.0/          <- 已就绪条目（目录存在即就绪）
      lib/
      pubspec.yaml
    .staging-matcher-0.11.3-x  <- 正在解包的暂存目录
    .archives/                 <- 可选：原始归档留档，不参与缓存判断

缓存策略:
  - 快速路径: 目标目录下 lib/ 已存在 → 直接返回，无需加锁
  - 未命中: 同一进程内同一个键只有一个调用方负责拉取+解包，
    其余调用方等待同一个 Future，拿到相同的路径或相同的异常
  - 解包总是写入暂存目录，全部成功后 os.rename 到目标位置，
    读者永远看不到半成品目录
  - 失败时丢弃暂存目录并释放键，后续调用可从头重试
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Protocol

from depcache.core.dep.extractor import SafeExtractor
from depcache.core.dep.fetcher import ArchiveFetcher
from depcache.core.dep.models import PackageInfo
from depcache.core.exceptions import CacheIOError, ValidationError
from depcache.utils.yaml_io import atomic_write_bytes

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".staging-"
ARCHIVES_DIR = ".archives"


class ArchiveSource(Protocol):
    def fetch(self, name: str, version: str) -> bytes:
        ...


class ArchiveExtractor(Protocol):
    def extract(self, archive_bytes: bytes, target_dir: Path) -> None:
        ...


class PackageCache:
    """包源码缓存 - 每个键最多一次拉取+解包

    注意: flush() 不能与正在进行的填充并发调用，这是调用方的责任。
    """

    def __init__(
        self,
        root: str | Path | None = None,
        fetcher: ArchiveSource | None = None,
        extractor: ArchiveExtractor | None = None,
        *,
        lib_subdir: str = "lib",
        keep_archives: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        self._log = log or logger
        try:
            if root:
                self._root = Path(root)
                self._root.mkdir(parents=True, exist_ok=True)
            else:
                self._root = Path(tempfile.mkdtemp(prefix="depcache"))
        except OSError as e:
            raise CacheIOError(f"无法创建缓存根目录 {root}: {e}") from e
        self.fetcher = fetcher or ArchiveFetcher(log=log)
        self.extractor = extractor or SafeExtractor(log=log)
        self.lib_subdir = lib_subdir
        self.keep_archives = keep_archives

        self._lock = threading.Lock()
        self._inflight: dict[tuple[str, str], Future[Path]] = {}
        self._log.info("缓存根目录: %s", self._root)

    @property
    def root(self) -> Path:
        return self._root

    def package_dir(self, pkg: PackageInfo) -> Path:
        return self._root / pkg.dir_name

    def library_path(self, pkg: PackageInfo) -> Path:
        """lib 子目录路径（不触发拉取）"""
        return self.package_dir(pkg) / self.lib_subdir

    def is_cached(self, pkg: PackageInfo) -> bool:
        return self.library_path(pkg).is_dir()

    def in_flight(self) -> int:
        """当前正在填充的键数量"""
        with self._lock:
            return len(self._inflight)

    # ------------------------------------------------------------------
    # 获取 lib 目录（核心）
    # ------------------------------------------------------------------

    def get_library_directory(self, pkg: PackageInfo) -> Path:
        """返回包的 lib 目录，缺失时拉取并解包

        返回的目录只读，调用方不得写入。

        Raises:
            FetchFailed / NetworkError: 下载失败
            CorruptArchive / UnsafeEntryPath: 解包失败
            CacheIOError: 本地文件系统操作失败
        """
        lib = self.library_path(pkg)
        if lib.is_dir():
            self._log.debug("缓存命中: %s", pkg, extra={"package": str(pkg)})
            return lib

        with self._lock:
            future = self._inflight.get(pkg.key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[pkg.key] = future

        if not owner:
            self._log.info(
                "等待其他调用方填充: %s", pkg, extra={"package": str(pkg)},
            )
            return future.result()

        try:
            self._populate(pkg)
        except BaseException as exc:
            # 等待者必须总能拿到结果，否则会永久阻塞
            future.set_exception(exc)
            raise
        else:
            future.set_result(lib)
        finally:
            with self._lock:
                self._inflight.pop(pkg.key, None)
        return lib

    def _populate(self, pkg: PackageInfo) -> None:
        target = self.package_dir(pkg)
        # 认领前可能已有其他调用方刚完成发布
        if (target / self.lib_subdir).is_dir():
            return

        start = time.monotonic()
        data = self.fetcher.fetch(pkg.name, pkg.version)
        if self.keep_archives:
            self._keep_archive(pkg, data)

        try:
            staging = Path(tempfile.mkdtemp(
                prefix=f"{STAGING_PREFIX}{pkg.dir_name}-", dir=str(self._root),
            ))
        except OSError as e:
            raise CacheIOError(f"无法创建暂存目录: {e}") from e

        try:
            self.extractor.extract(data, staging)
            try:
                (staging / self.lib_subdir).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CacheIOError(f"无法创建 {self.lib_subdir} 目录: {e}") from e
            self._publish(staging, target)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)
                self._log.debug("已丢弃暂存目录: %s", staging)

        self._log.info(
            "已缓存: %s -> %s", pkg, target,
            extra={
                "package": str(pkg),
                "duration_ms": int((time.monotonic() - start) * 1000),
            },
        )

    def _publish(self, staging: Path, target: Path) -> None:
        """把解包完成的暂存目录原子地移动到目标位置

        已就绪的目标不会被删除或替换，暂存目录由调用方丢弃。
        """
        if (target / self.lib_subdir).is_dir():
            self._log.info("条目已由其他进程发布: %s", target)
            return
        try:
            if target.exists():
                self._log.warning("清理残缺的缓存目录: %s", target)
                shutil.rmtree(target)
            os.rename(staging, target)
        except OSError as e:
            if (target / self.lib_subdir).is_dir():
                # 另一个进程已发布同一条目
                self._log.info("条目已由其他进程发布: %s", target)
                return
            raise CacheIOError(f"发布缓存目录失败 {target}: {e}") from e

    def _keep_archive(self, pkg: PackageInfo, data: bytes) -> None:
        """留档原始归档，仅供排查，失败不影响缓存"""
        dest = self._root / ARCHIVES_DIR / f"{pkg.dir_name}.tar.gz"
        try:
            atomic_write_bytes(dest, data)
        except OSError as e:
            self._log.warning("归档留档失败 %s: %s", dest, e)

    # ------------------------------------------------------------------
    # 查询 / 失效
    # ------------------------------------------------------------------

    def cached_packages(self) -> list[PackageInfo]:
        """列出磁盘上已就绪的条目"""
        results: list[PackageInfo] = []
        if not self._root.exists():
            return results
        for d in sorted(self._root.iterdir()):
            if d.name.startswith(".") or not d.is_dir():
                continue
            name, _, version = d.name.partition("-")
            try:
                pkg = PackageInfo(name, version)
            except ValidationError:
                continue
            if (d / self.lib_subdir).is_dir():
                results.append(pkg)
        return results

    def flush(self) -> None:
        """清空整个缓存根目录并重建

        不能在填充进行中调用；若检测到仍有填充在进行，记录告警，
        这些填充的结果未定义。
        """
        busy = self.in_flight()
        if busy:
            self._log.warning("flush 时仍有 %d 个包正在填充，其结果未定义", busy)
        try:
            if self._root.exists():
                shutil.rmtree(self._root)
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"清空缓存失败 {self._root}: {e}") from e
        self._log.info("缓存已清空: %s", self._root)
