"""Gunicorn 生产配置

用法:
  gunicorn --config deploy/gunicorn.conf.py depcache.web.app:app

同键去重只在单个进程内生效，因此默认单 worker + 多线程；
多 worker 共享同一缓存目录时依靠原子 rename 保证目录完整，
但同一个包可能被不同 worker 各下载一次。
"""

import os

# ---------- 网络 ----------
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8890")

# ---------- 并发 ----------
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
threads = int(os.getenv("GUNICORN_THREADS", "16"))
worker_class = "gthread"
# 解析器 20s + 大包下载
timeout = 120

# ---------- 日志 ----------
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# ---------- 进程管理 ----------
graceful_timeout = 30
keepalive = 5


def post_worker_init(worker):  # noqa: ARG001
    """每个 worker 启动后加载配置并构建共享服务容器"""
    from depcache.core.config import init_config
    from depcache.services.container import ServiceContainer, set_container
    from depcache.utils.logger import setup_logging

    setup_logging(
        level=os.getenv("DEPCACHE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DEPCACHE_LOG_JSON", "") == "1",
    )
    cfg = init_config(os.getenv("DEPCACHE_CONFIG", "configs/depcache.yml"))
    set_container(ServiceContainer(config=cfg))
