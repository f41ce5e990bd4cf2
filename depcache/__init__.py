"""depcache - 依赖包解析与源码缓存"""

__version__ = "0.1.0"
