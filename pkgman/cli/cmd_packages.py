"""CLI - 包查询、安装与卸载"""

from __future__ import annotations

from pathlib import Path

import click

from pkgman.cli import _svc, handle_errors
from pkgman.core.pkg.models import StorageTier

TIER_CHOICES = click.Choice([t.value for t in StorageTier])


def register(group: click.Group) -> None:
    group.add_command(list_packages)
    group.add_command(resolve)
    group.add_command(install)
    group.add_command(uninstall)
    group.add_command(scan)


@click.command(name="list")
@handle_errors
def list_packages() -> None:
    """列出所有已知的包（按查找优先级）"""
    packages = _svc().packages.list_packages()
    if not packages:
        click.echo("没有已知的包。")
        return
    for p in packages:
        click.echo(f"  {p['name']:24s} {p['version']:14s} [{p['tier']:7s}] {p['path']}")


@click.command()
@click.argument("name")
@click.option("--version", "version", default=None, help="精确版本")
@click.option("--constraint", "-C", default=None, help="版本约束，如 '>=1.0.0 <2.0.0'")
@handle_errors
def resolve(name: str, version: str | None, constraint: str | None) -> None:
    """解析包路径：指定 --version 做精确查找，否则按约束选最高版本"""
    if version and constraint:
        raise click.UsageError("--version 与 --constraint 只能指定一个")
    pm = _svc().packages
    if version:
        pkg = pm.get_package(name, version)
        wanted = version
    else:
        pkg = pm.get_best_package(name, constraint or "*")
        wanted = constraint or "*"
    if pkg is None:
        raise click.ClickException(f"未找到满足条件的包: {name} ({wanted})")
    click.echo(f"{pkg.name}@{pkg.version} [{pkg.tier.value}] {pkg.root}")


@click.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tier", "-t", type=TIER_CHOICES, default=StorageTier.USER.value, help="安装层级")
@click.option("--name", default=None, help="包名（默认取归档中的描述文件）")
@click.option("--version", "version", default=None, help="安装版本（默认取归档中的描述文件）")
@handle_errors
def install(archive: Path, tier: str, name: str | None, version: str | None) -> None:
    """从 zip / tar 归档安装包"""
    pm = _svc().packages
    data = archive.read_bytes()
    info = pm.describe_archive(data)
    if name:
        info["name"] = name
    if version:
        info["version"] = version
    if not info.get("name") or not info.get("version"):
        raise click.ClickException("无法确定包名或版本，请通过 --name / --version 指定")
    pkg = pm.install(data, info, StorageTier(tier))
    click.echo(f"已安装: {pkg.name}@{pkg.version} -> {pkg.root}")


@click.command()
@click.argument("name")
@click.argument("version")
@click.option(
    "--tier", "-t",
    type=click.Choice([StorageTier.PROJECT.value, StorageTier.USER.value, StorageTier.SYSTEM.value]),
    default=StorageTier.USER.value, help="所在层级",
)
@handle_errors
def uninstall(name: str, version: str, tier: str) -> None:
    """按安装日志卸载包"""
    pm = _svc().packages
    pkg = pm.find(name, version, StorageTier(tier))
    if pkg is None:
        raise click.ClickException(f"{tier} 层级中没有安装 {name}@{version}")
    report = pm.uninstall(pkg)
    click.echo(
        f"已卸载: {name}@{version} "
        f"(文件 {report.removed_files}, 目录 {report.removed_dirs})"
    )
    for issue in report.issues:
        click.echo(f"  [{issue.code.value}] {issue.message}", err=True)


@click.command()
@handle_errors
def scan() -> None:
    """重新扫描包目录并列出被跳过的条目"""
    result = _svc().packages.refresh()
    click.echo(f"发现 {len(result.registry)} 个包，{len(result.issues)} 个问题")
    for issue in result.issues:
        click.echo(f"  [{issue.code.value}] {issue.path}: {issue.message}")
