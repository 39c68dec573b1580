"""CLI - 杂项命令（看板、配置）"""

from __future__ import annotations

import json
from pathlib import Path

import click

from pkgman.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(dashboard)
    group.add_command(show_config)


@click.command()
@click.option("--port", default=8888, help="监听端口")
@click.option("--host", default="127.0.0.1", help="监听地址")
def dashboard(port: int, host: str) -> None:
    """启动轻量级 Web API"""
    from pkgman.web.app import run_server
    run_server(port=port, host=host)


@click.command(name="config")
@click.option("--write", "write_to", type=click.Path(dir_okay=False), default=None,
              help="把当前生效的配置写入指定 YAML 文件")
def show_config(write_to: str | None) -> None:
    """显示当前生效的配置"""
    cfg = _svc().config
    if write_to:
        if Path(write_to).exists():
            raise click.ClickException(f"文件已存在: {write_to}")
        cfg.save(write_to)
        click.echo(f"配置已写入: {write_to}")
        return
    click.echo(json.dumps(cfg.to_dict(), indent=2, ensure_ascii=False))
