"""依赖解析与源码缓存

模块划分:
- models.py: 数据模型
- lockfile.py: 锁文件解析
- resolver.py: 解析编排（外部解析器）
- fetcher.py: 远程归档拉取
- extractor.py: 归档安全解包
- cache.py: 磁盘源码缓存
"""

from depcache.core.dep.cache import PackageCache
from depcache.core.dep.extractor import SafeExtractor
from depcache.core.dep.fetcher import ArchiveFetcher
from depcache.core.dep.lockfile import parse_lock
from depcache.core.dep.models import PackageInfo, PackageRequirement, ResolvedSet
from depcache.core.dep.resolver import CommandLockResolver, ResolutionOrchestrator

__all__ = [
    "ArchiveFetcher",
    "CommandLockResolver",
    "PackageCache",
    "PackageInfo",
    "PackageRequirement",
    "ResolutionOrchestrator",
    "ResolvedSet",
    "SafeExtractor",
    "parse_lock",
]
