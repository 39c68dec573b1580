"""JSON 文件读写工具

包描述文件 (package.json)、安装日志 (journal.json) 和本地包清单
(local-packages.json) 都是 JSON，统一在这里读写。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pkgman.utils.fs import atomic_write, check_size


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件

    异常:
        FileNotFoundError: 文件不存在
        json.JSONDecodeError: 内容不是合法 JSON
        ValueError: 文件超过 fs.MAX_FILE_SIZE
    """
    check_size(Path(path))
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """原子写入带缩进的 JSON 文件"""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    atomic_write(Path(path), content)
