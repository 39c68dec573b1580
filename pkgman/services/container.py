"""服务容器 - CLI 与 Web 共享同一个 PackageManager 实例

PackageManager 构造时会扫描磁盘，因此按需懒加载；同一容器内的调用方
共享同一份注册表。

用法:
    container = ServiceContainer()
    pm = container.packages            # 懒加载

    # 显式注入配置
    cfg = Config.from_file("my_config.yml")
    container = ServiceContainer(config=cfg)

    # 全局单例（Web / 多模块共享）
    from pkgman.services.container import get_container
    pm = get_container().packages
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pkgman.core.config import Config
    from pkgman.core.package_manager import PackageManager

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from pkgman.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def packages(self) -> PackageManager:
        if "packages" not in self._instances:
            from pkgman.core.package_manager import PackageManager
            logger.debug("初始化 PackageManager")
            self._instances["packages"] = PackageManager.from_config(self._config)
        return self._instances["packages"]  # type: ignore[return-value]


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
