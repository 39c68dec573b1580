"""集中配置管理

三个存储层级的根目录、日志选项和扫描策略统一从这里读取。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from pkgman.core.exceptions import ConfigError
from pkgman.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/default.yml"


@dataclass
class Config:
    """全局配置"""

    # 存储层级根目录
    system_dir: str = "/var/lib/pkgman/packages"
    user_dir: str = "~/.pkgman/packages"
    project_dir: str = ".pkgman/packages"
    local_dir: str = "."

    # 日志
    log_level: str = "INFO"
    log_json: bool = False

    # 扫描策略: True 时仅接受同时带有 journal.json 的包目录
    strict_scan: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_PATH) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"配置文件无法读取: {path} ({e})") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def root(self, key: str) -> Path:
        """展开 ~ 与环境变量后的层级根目录"""
        raw = getattr(self, key)
        return Path(os.path.expandvars(os.path.expanduser(raw)))

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str = DEFAULT_CONFIG_PATH) -> None:
        """写回 YAML，extra 中的键平铺到顶层"""
        data = asdict(self)
        extra = data.pop("extra")
        data.update(extra)
        save_yaml(path, data)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
