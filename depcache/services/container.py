"""服务容器：统一依赖注入

同一容器内的实例共享状态：同一个 PackageCache（及其进行中的填充表）
被 CLI / Web 的所有请求复用，这是同键去重生效的前提。

用法:
    container = ServiceContainer()
    svc = container.packages          # 懒加载

    # 显式注入配置
    cfg = Config.from_file("configs/depcache.yml")
    container = ServiceContainer(config=cfg)

    # 全局单例（Web / 多模块共享）
    from depcache.services.container import get_container
    svc = get_container().packages
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depcache.core.config import Config
    from depcache.core.dep.cache import PackageCache
    from depcache.core.dep.resolver import ResolutionOrchestrator
    from depcache.services.package_service import PackageService
    from depcache.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器：每个实例持有一组共享的核心组件"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        self._lock = threading.Lock()
        if config is None:
            from depcache.core.config import get_config
            config = get_config()
        self._config = config
        self._executor = executor

    @property
    def config(self) -> Config:
        return self._config

    def _get(self, name: str, factory):  # type: ignore[no-untyped-def]
        with self._lock:
            if name not in self._instances:
                self._instances[name] = factory()
            return self._instances[name]

    @property
    def orchestrator(self) -> ResolutionOrchestrator:
        def build() -> ResolutionOrchestrator:
            from depcache.core.dep.resolver import (
                CommandLockResolver,
                ResolutionOrchestrator,
            )
            cfg = self._config
            lock_resolver = CommandLockResolver(
                cfg.resolver_command,
                manifest_file=cfg.manifest_file,
                lock_file=cfg.lock_file,
                timeout=cfg.resolve_timeout,
                executor=self._executor,
            )
            return ResolutionOrchestrator(
                lock_resolver,
                sdk_constraint=cfg.sdk_constraint,
                version_command=cfg.version_command,
                executor=self._executor,
            )
        return self._get("orchestrator", build)  # type: ignore[return-value]

    @property
    def cache(self) -> PackageCache:
        def build() -> PackageCache:
            from depcache.core.dep.cache import PackageCache
            from depcache.core.dep.extractor import SafeExtractor
            from depcache.core.dep.fetcher import ArchiveFetcher
            cfg = self._config
            return PackageCache(
                cfg.cache_dir or None,
                ArchiveFetcher(cfg.registry_url, timeout=cfg.fetch_timeout),
                SafeExtractor(),
                lib_subdir=cfg.lib_subdir,
                keep_archives=cfg.keep_archives,
            )
        return self._get("cache", build)  # type: ignore[return-value]

    @property
    def packages(self) -> PackageService:
        orchestrator = self.orchestrator
        cache = self.cache

        def build() -> PackageService:
            from depcache.services.package_service import PackageService
            return PackageService(
                orchestrator, cache, max_workers=self._config.max_workers,
            )
        return self._get("packages", build)  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def set_container(container: ServiceContainer) -> None:
    """替换全局容器（CLI 显式加载配置 / 测试注入）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = container


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
