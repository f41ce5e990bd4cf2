"""依赖解析编排

职责:
- 为每次解析创建一次性临时工作区
- 写入清单（每个依赖均为 any 约束）
- 调用外部解析器生成锁文件
- 解析锁文件为 ResolvedSet
- 无论成功失败都删除工作区

约束求解完全交给外部解析器（默认 `pub get`），本模块只负责编排。
解析器抽象为 LockResolver 协议，可替换为进程内求解器或其他工具。
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from depcache.core.dep.lockfile import parse_lock
from depcache.core.dep.models import PackageRequirement, ResolvedSet
from depcache.core.exceptions import ResolutionFailed, ResolutionTimeout, ValidationError
from depcache.utils.shell import CommandExecutor, get_executor
from depcache.utils.yaml_io import save_yaml

logger = logging.getLogger(__name__)

DEFAULT_RESOLVE_TIMEOUT = 20.0
WORKSPACE_PREFIX = "temp_package"


class LockResolver(Protocol):
    """外部解析器协议: 在工作区内根据清单生成锁文件，返回锁文件文本"""

    manifest_file: str

    def resolve_to_lock(self, workspace: Path) -> str:
        ...


class CommandLockResolver:
    """以子进程方式调用外部解析器（默认 `pub get`）"""

    def __init__(
        self,
        command: str | list[str] = "pub get",
        *,
        manifest_file: str = "pubspec.yaml",
        lock_file: str = "pubspec.lock",
        timeout: float = DEFAULT_RESOLVE_TIMEOUT,
        executor: CommandExecutor | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.command = command
        self.manifest_file = manifest_file
        self.lock_file = lock_file
        self.timeout = timeout
        self._executor = executor
        self._log = log or logger

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def resolve_to_lock(self, workspace: Path) -> str:
        try:
            result = self.executor.execute(
                self.command, cwd=str(workspace), timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            self._log.error("解析器超时 (%ss): %s", self.timeout, self.command)
            raise ResolutionTimeout(self.timeout) from e
        except FileNotFoundError as e:
            raise ResolutionFailed(f"找不到解析器可执行文件: {self.command}") from e

        if not result.success:
            message = result.stderr.strip() or (
                f"failed to get packages: {result.returncode}"
            )
            self._log.error("执行解析器失败: %s", message)
            raise ResolutionFailed(message)

        lock_path = workspace / self.lock_file
        try:
            return lock_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ResolutionFailed(f"解析器未生成锁文件: {self.lock_file}") from e
        except OSError as e:
            raise ResolutionFailed(f"读取锁文件失败: {e}") from e


class ResolutionOrchestrator:
    """依赖解析编排器 - 清单生成 + 外部解析 + 锁文件解析"""

    def __init__(
        self,
        lock_resolver: LockResolver,
        *,
        sdk_constraint: str = "",
        version_command: str | list[str] = "pub --version",
        executor: CommandExecutor | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.lock_resolver = lock_resolver
        self.sdk_constraint = sdk_constraint
        self.version_command = version_command
        self._executor = executor
        self._log = log or logger

    def resolve(
        self, requirements: Iterable[PackageRequirement | str],
    ) -> ResolvedSet:
        """解析依赖集合的传递闭包

        Raises:
            ValidationError: 依赖集合为空或包名非法
            ResolutionTimeout: 外部解析器超时
            ResolutionFailed: 外部解析器失败或结果缺少所请求的包
            MalformedLock: 锁文件无法解析
        """
        reqs = _normalize(requirements)
        if not reqs:
            raise ValidationError("依赖集合不能为空")

        names = [r.name for r in reqs]
        start = time.monotonic()
        with tempfile.TemporaryDirectory(prefix=WORKSPACE_PREFIX) as tmp:
            workspace = Path(tmp)
            self._log.info(
                "开始解析: %s", ", ".join(names), extra={"workspace": tmp},
            )
            self._write_manifest(workspace, reqs)
            lock_text = self.lock_resolver.resolve_to_lock(workspace)
            resolved = parse_lock(lock_text)

        missing = [n for n in names if resolved.get(n) is None]
        if missing:
            raise ResolutionFailed(f"解析结果缺少所请求的包: {', '.join(missing)}")

        self._log.info(
            "解析完成: %d 个包 (%s)", len(resolved), resolved,
            extra={"duration_ms": int((time.monotonic() - start) * 1000)},
        )
        return resolved

    def _write_manifest(
        self, workspace: Path, reqs: list[PackageRequirement],
    ) -> None:
        manifest: dict[str, object] = {"name": "temp"}
        if self.sdk_constraint:
            manifest["environment"] = {"sdk": self.sdk_constraint}
        manifest["dependencies"] = {r.name: "any" for r in reqs}
        save_yaml(workspace / self.lock_resolver.manifest_file, manifest)

    def tool_version(self) -> str:
        """返回外部解析工具的版本字符串"""
        executor = self._executor or get_executor()
        try:
            result = executor.execute(
                self.version_command, timeout=DEFAULT_RESOLVE_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise ResolutionTimeout(DEFAULT_RESOLVE_TIMEOUT) from e
        except FileNotFoundError as e:
            raise ResolutionFailed(f"找不到解析器可执行文件: {self.version_command}") from e
        if not result.success:
            raise ResolutionFailed(
                f"获取解析器版本失败 (rc={result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout.strip()


def _normalize(requirements: Iterable[PackageRequirement | str]) -> list[PackageRequirement]:
    """统一为 PackageRequirement 并去重，保持首次出现的顺序"""
    if isinstance(requirements, (str, PackageRequirement)):
        requirements = [requirements]
    seen: dict[str, PackageRequirement] = {}
    for r in requirements:
        req = r if isinstance(r, PackageRequirement) else PackageRequirement(r)
        seen.setdefault(req.name, req)
    return list(seen.values())
