"""YAML 读写（仅用于 pkgman 配置文件）"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from pkgman.utils.fs import atomic_write, check_size

logger = logging.getLogger(__name__)


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取顶层为映射的 YAML 文件

    文件不存在或为空时返回 {}；顶层不是映射时记录警告并返回 {}。

    异常:
        yaml.YAMLError: YAML 格式错误
        ValueError: 文件超过 fs.MAX_FILE_SIZE
        OSError: IO 错误
    """
    p = Path(path)
    if not p.is_file():
        return {}
    check_size(p)
    with open(p, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是映射 (%s)，按空配置处理", p, type(data).__name__)
        return {}
    return data


def save_yaml(path: str | Path, data: dict[str, Any]) -> None:
    """按字段声明顺序写出 YAML"""
    atomic_write(Path(path), yaml.safe_dump(data, allow_unicode=True, sort_keys=False))
