"""pkgman 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import functools
import os
from typing import Any, Callable

import click

from pkgman import __version__
from pkgman.core.config import DEFAULT_CONFIG_PATH, init_config
from pkgman.core.exceptions import PkgManError
from pkgman.services.container import get_container, reset_container
from pkgman.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """把业务异常转换为一行 "[code] message" 的 CLI 错误（退出码 1）"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PkgManError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e
        except ValueError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default=DEFAULT_CONFIG_PATH,
    envvar="PKGMAN_CONFIG", help="配置文件路径",
)
@click.option("--verbose", "-v", is_flag=True, help="输出 DEBUG 日志")
def main(config_path: str, verbose: bool) -> None:
    """pkgman - 本地包管理"""
    try:
        cfg = init_config(config_path)
    except PkgManError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e
    reset_container()
    level = "DEBUG" if verbose else os.getenv("PKGMAN_LOG_LEVEL", cfg.log_level)
    setup_logging(
        level=level,
        json_output=cfg.log_json or os.getenv("PKGMAN_LOG_JSON", "") == "1",
    )


# 注册各领域子命令
from pkgman.cli.cmd_packages import register as _reg_packages  # noqa: E402
from pkgman.cli.cmd_local import register as _reg_local  # noqa: E402
from pkgman.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_packages(main)
_reg_local(main)
_reg_misc(main)
