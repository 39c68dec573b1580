"""CLI - 本地包清单维护（local-packages.json）"""

from __future__ import annotations

import click

from pkgman.cli import _svc, handle_errors
from pkgman.core.pkg.models import StorageTier

SCOPE_CHOICES = click.Choice([StorageTier.USER.value, StorageTier.SYSTEM.value])


def register(group: click.Group) -> None:
    group.add_command(add_local)
    group.add_command(remove_local)


@click.command(name="add-local")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--name", default=None, help="包名（默认取目录中的描述文件）")
@click.option("--version", "version", default=None, help="版本（默认取目录中的描述文件）")
@click.option("--scope", type=SCOPE_CHOICES, default=StorageTier.USER.value, help="清单所在层级")
@handle_errors
def add_local(path: str, name: str | None, version: str | None, scope: str) -> None:
    """把本地目录登记为包"""
    pkg = _svc().packages.add_local(path, name=name, version=version, scope=StorageTier(scope))
    click.echo(f"已登记本地包: {pkg.name}@{pkg.version} -> {pkg.root}")


@click.command(name="remove-local")
@click.argument("path", type=click.Path())
@click.option("--scope", type=SCOPE_CHOICES, default=StorageTier.USER.value, help="清单所在层级")
@handle_errors
def remove_local(path: str, scope: str) -> None:
    """取消本地目录的包登记"""
    if _svc().packages.remove_local(path, scope=StorageTier(scope)):
        click.echo(f"已移除: {path}")
    else:
        click.echo(f"未登记: {path}")
