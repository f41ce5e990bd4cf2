"""包服务：解析 + 源码缓存的统一入口

CLI 和 Web 层只通过本服务访问依赖解析与缓存，不直接构造核心组件。

用法:
    svc = PackageService(orchestrator, cache, max_workers=8)
    resolved = svc.resolve(["collection"])
    dirs = svc.library_dirs(resolved)      # {name: Path}，不同包并行拉取
    dirs = svc.prepare(["collection"])     # 解析 + 拉取一步完成
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from depcache.core.dep.cache import PackageCache
from depcache.core.dep.models import PackageInfo, PackageRequirement, ResolvedSet
from depcache.core.dep.resolver import ResolutionOrchestrator

logger = logging.getLogger(__name__)


class PackageService:
    """依赖解析与源码缓存服务"""

    def __init__(
        self,
        orchestrator: ResolutionOrchestrator,
        cache: PackageCache,
        *,
        max_workers: int = 8,
    ) -> None:
        self.orchestrator = orchestrator
        self.cache = cache
        self.max_workers = max(1, max_workers)

    def resolve(self, names: Iterable[PackageRequirement | str]) -> ResolvedSet:
        return self.orchestrator.resolve(names)

    def library_dir(self, name: str, version: str) -> Path:
        return self.cache.get_library_directory(PackageInfo(name, version))

    def library_dirs(self, resolved: ResolvedSet) -> dict[str, Path]:
        """并行获取所有包的 lib 目录

        全部任务结束后按解析顺序返回；若有失败，抛出顺序上第一个失败。
        """
        packages = list(resolved)
        if not packages:
            return {}
        workers = min(self.max_workers, len(packages))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="depcache") as pool:
            futures = [
                (pkg, pool.submit(self.cache.get_library_directory, pkg))
                for pkg in packages
            ]
        # with 退出时所有任务均已结束
        failed = [pkg for pkg, f in futures if f.exception() is not None]
        if failed:
            logger.warning(
                "拉取汇总: %d 成功, %d 失败 (%s)",
                len(packages) - len(failed), len(failed),
                ", ".join(str(p) for p in failed),
            )
        return {pkg.name: f.result() for pkg, f in futures}

    def prepare(self, names: Iterable[PackageRequirement | str]) -> dict[str, Path]:
        """解析并拉取全部依赖，返回 {name: lib 目录}"""
        return self.library_dirs(self.resolve(names))

    def cached(self) -> list[PackageInfo]:
        return self.cache.cached_packages()

    def flush(self) -> None:
        self.cache.flush()

    def tool_version(self) -> str:
        return self.orchestrator.tool_version()
