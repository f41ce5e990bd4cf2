"""CLI：依赖解析与缓存命令"""

from __future__ import annotations

import click

from depcache.cli import _svc, handle_errors


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(lib_dir)
    group.add_command(prepare)
    group.add_command(cached)
    group.add_command(flush)


@click.command()
@click.argument("names", nargs=-1, required=True)
@handle_errors
def resolve(names: tuple[str, ...]) -> None:
    """解析依赖的传递闭包（每个依赖按 any 约束）"""
    resolved = _svc().resolve(names)
    for p in resolved:
        click.echo(f"  {p.name:30s} {p.version}")


@click.command(name="lib-dir")
@click.argument("name")
@click.argument("version")
@handle_errors
def lib_dir(name: str, version: str) -> None:
    """输出包的 lib 目录（缺失时下载并解包）"""
    click.echo(str(_svc().library_dir(name, version)))


@click.command()
@click.argument("names", nargs=-1, required=True)
@handle_errors
def prepare(names: tuple[str, ...]) -> None:
    """解析并拉取全部依赖，输出每个包的 lib 目录"""
    dirs = _svc().prepare(names)
    for name, path in dirs.items():
        click.echo(f"  {name:30s} {path}")


@click.command()
@handle_errors
def cached() -> None:
    """列出磁盘上已缓存的包"""
    packages = _svc().cached()
    if not packages:
        click.echo("缓存为空。")
        return
    for p in packages:
        click.echo(f"  {p.name:30s} {p.version}")


@click.command()
@click.option("--yes", is_flag=True, help="跳过确认")
@handle_errors
def flush(yes: bool) -> None:
    """清空整个源码缓存"""
    svc = _svc()
    if not yes:
        click.confirm(f"确认清空缓存目录 {svc.cache.root}?", abort=True)
    svc.flush()
    click.echo("缓存已清空。")
