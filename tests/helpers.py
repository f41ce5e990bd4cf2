"""测试辅助：归档构造 + 假执行器 / 假拉取器

  make_tar_gz()     构造内存中的 .tar.gz
  FakeExecutor      模拟外部解析器：记录清单、写入锁文件、返回退出码
  FakeFetcher       模拟归档仓库：记录调用、可延迟、可抛异常
"""

from __future__ import annotations

import io
import subprocess
import tarfile
import threading
import time
from pathlib import Path

import yaml

from depcache.utils.shell import CommandResult

SAMPLE_LOCK = """\
# Generated by pub
packages:
  collection:
    dependency: "direct main"
    description: collection
    source: hosted
    version: "1.1.0"
  matcher:
    dependency: transitive
    description: matcher
    source: hosted
    version: "0.11.3"
sdks:
  dart: ">=2.12.0 <4.0.0"
"""


def make_tar_gz(
    files: dict[str, bytes] | None = None,
    *,
    dirs: tuple[str, ...] = (),
    symlinks: dict[str, str] | None = None,
) -> bytes:
    """按条目名构造 .tar.gz 字节（条目名原样写入，不做任何清洗）"""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name in dirs:
            info = tarfile.TarInfo(name)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tf.addfile(info)
        for name, data in (files or {}).items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
        for name, target in (symlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tf.addfile(info)
    return buf.getvalue()


def package_archive(name: str = "collection") -> bytes:
    """典型的包归档：pubspec.yaml + lib/ 源码"""
    return make_tar_gz({
        "pubspec.yaml": f"name: {name}\n".encode(),
        f"lib/{name}.dart": b"library collection;\n",
        "lib/src/iterable.dart": b"// src\n",
    })


class FakeExecutor:
    """假命令执行器，替代真实的 pub get"""

    def __init__(
        self,
        lock_text: str | None = SAMPLE_LOCK,
        *,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        raise_exc: BaseException | None = None,
        lock_file: str = "pubspec.lock",
    ) -> None:
        self.lock_text = lock_text
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.raise_exc = raise_exc
        self.lock_file = lock_file
        self.calls: list[dict] = []
        self.manifest: dict | None = None
        self.workspace: Path | None = None

    def execute(self, cmd, *, cwd=".", env=None, timeout=None) -> CommandResult:
        self.calls.append({"cmd": cmd, "cwd": cwd, "timeout": timeout})
        self.workspace = Path(cwd)
        manifest = self.workspace / "pubspec.yaml"
        if manifest.exists():
            self.manifest = yaml.safe_load(manifest.read_text(encoding="utf-8"))
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.returncode == 0 and self.lock_text is not None and manifest.exists():
            (self.workspace / self.lock_file).write_text(self.lock_text, encoding="utf-8")
        return CommandResult(self.returncode, self.stdout, self.stderr)


def timeout_error(cmd: str = "pub get", timeout: float = 20) -> subprocess.TimeoutExpired:
    return subprocess.TimeoutExpired(cmd, timeout)


class FakeFetcher:
    """假归档拉取器，线程安全地记录每次调用"""

    def __init__(
        self,
        archive: bytes | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.archive = archive if archive is not None else package_archive()
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def fetch(self, name: str, version: str) -> bytes:
        with self._lock:
            self.calls.append((name, version))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.archive
