"""depcache 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
import os
from typing import Any, Callable

import click

from depcache import __version__
from depcache.core.exceptions import DepCacheError
from depcache.services.container import get_container
from depcache.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器中的包服务"""
    return get_container().packages


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """把业务异常转换为带错误码的友好提示（退出码 1）"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DepCacheError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e

    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path",
    default=lambda: os.getenv("DEPCACHE_CONFIG", "configs/depcache.yml"),
    show_default="configs/depcache.yml", help="配置文件路径",
)
def main(config_path: str) -> None:
    """depcache - 依赖包解析与源码缓存"""
    setup_logging(
        level=os.getenv("DEPCACHE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DEPCACHE_LOG_JSON", "") == "1",
    )
    from depcache.core.config import init_config
    from depcache.services.container import ServiceContainer, set_container
    try:
        cfg = init_config(config_path)
    except DepCacheError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    set_container(ServiceContainer(config=cfg))


# 注册各领域子命令
from depcache.cli.cmd_packages import register as _reg_packages  # noqa: E402
from depcache.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_packages(main)
_reg_misc(main)
