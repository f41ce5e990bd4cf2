"""统一异常体系

所有业务异常继承 DepCacheError，每个异常带有稳定的 code。
Web 层可据此自动映射 HTTP 状态码，CLI 层可据此输出友好提示。

解析链路: ResolutionFailed / ResolutionTimeout / MalformedLock
缓存链路: FetchFailed / NetworkError / CorruptArchive / UnsafeEntryPath / CacheIOError
"""

from __future__ import annotations


class DepCacheError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(DepCacheError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(DepCacheError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


# ---- 解析链路 ----

class ResolutionFailed(DepCacheError):
    """外部解析器失败（非零退出 / 无锁文件 / 结果缺包）"""

    code = "RESOLUTION_FAILED"


class ResolutionTimeout(ResolutionFailed):
    """外部解析器超时"""

    code = "RESOLUTION_TIMEOUT"

    def __init__(self, timeout: float) -> None:
        super().__init__(f"依赖解析超时 ({timeout}s)")
        self.timeout = timeout


class MalformedLock(ResolutionFailed):
    """锁文件格式无效"""

    code = "MALFORMED_LOCK"


# ---- 缓存链路 ----

class FetchFailed(DepCacheError):
    """归档下载返回非成功状态码"""

    code = "FETCH_FAILED"

    def __init__(self, status_code: int, url: str = "") -> None:
        label = f": {url}" if url else ""
        super().__init__(f"归档下载失败 (HTTP {status_code}){label}")
        self.status_code = status_code
        self.url = url


class NetworkError(DepCacheError):
    """网络传输失败（连接错误 / 超时）"""

    code = "NETWORK_ERROR"


class CorruptArchive(DepCacheError):
    """归档无法解压或解包"""

    code = "CORRUPT_ARCHIVE"


class UnsafeEntryPath(DepCacheError):
    """归档条目路径逃逸目标目录"""

    code = "UNSAFE_ENTRY_PATH"

    def __init__(self, entry: str) -> None:
        super().__init__(f"归档条目路径不安全: {entry}")
        self.entry = entry


class CacheIOError(DepCacheError):
    """本地缓存文件系统操作失败"""

    code = "CACHE_IO_ERROR"
