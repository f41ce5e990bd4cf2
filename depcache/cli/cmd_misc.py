"""CLI：杂项命令（解析器版本、HTTP 服务）"""

from __future__ import annotations

import click

from depcache.cli import _svc, handle_errors


def register(group: click.Group) -> None:
    group.add_command(tool_version)
    group.add_command(serve)


@click.command(name="tool-version")
@handle_errors
def tool_version() -> None:
    """输出外部解析工具的版本"""
    click.echo(_svc().tool_version())


@click.command()
@click.option("--host", default="127.0.0.1", help="监听地址")
@click.option("--port", default=8890, help="监听端口")
def serve(host: str, port: int) -> None:
    """启动包服务 HTTP API"""
    from depcache.web.app import run_server
    run_server(host=host, port=port)
