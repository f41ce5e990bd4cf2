"""归档拉取器

职责:
- 按 `<base_url>/<name>-<version>.tar.gz` 拼接下载地址
- 单次 HTTP GET 拉取归档字节，带超时
- 状态码 / 传输错误映射为 FetchFailed / NetworkError

本层不做重试，重试策略由调用方决定。
"""

from __future__ import annotations

import http.client
import logging
import time
import urllib.error
import urllib.request

from depcache.core.config import DEFAULT_REGISTRY_URL
from depcache.core.exceptions import FetchFailed, NetworkError
from depcache.utils.net import join_url, validate_url_scheme

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 60.0


class ArchiveFetcher:
    """从远程归档仓库拉取 .tar.gz 包"""

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        log: logging.Logger | None = None,
    ) -> None:
        validate_url_scheme(base_url, context="archive registry")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._log = log or logger

    def archive_url(self, name: str, version: str) -> str:
        return join_url(self.base_url, f"{name}-{version}.tar.gz")

    def fetch(self, name: str, version: str) -> bytes:
        """下载指定包版本的归档，返回原始字节

        Raises:
            FetchFailed: 服务端返回非成功状态码
            NetworkError: 连接失败 / 超时 / 读取中断
        """
        url = self.archive_url(name, version)
        self._log.info("下载: %s", url, extra={"package": f"{name}@{version}"})
        start = time.monotonic()
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as resp:  # nosec B310
                status = resp.status
                if not 200 <= status < 300:
                    raise FetchFailed(status, url)
                data = resp.read()
        except urllib.error.HTTPError as e:
            self._log.error("下载失败 (HTTP %s): %s", e.code, url)
            raise FetchFailed(e.code, url) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            reason = getattr(e, "reason", e)
            self._log.error("网络错误: %s - %s", url, reason)
            raise NetworkError(f"下载失败: {url} - {reason}") from e

        self._log.info(
            "已下载: %s (%d 字节)", url, len(data),
            extra={"duration_ms": int((time.monotonic() - start) * 1000)},
        )
        return data
