"""文件系统辅助函数

安装 / 卸载 / 清单维护共用的几个小工具：原子写入、空目录判断、
归档与日志中相对路径的安全校验。
"""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path, PurePosixPath


def atomic_write(path: Path, content: str) -> None:
    """原子写入文本文件：先写同目录临时文件再 rename

    异常:
        OSError: 文件写入或移动失败
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        # mkstemp 固定创建 0600 的文件，改成与普通写入一致的权限
        os.chmod(tmp, mode)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _target_mode(path: Path) -> int:
    """覆盖已有文件时沿用其权限，新文件按 umask 计算"""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


# 描述文件、安装日志、清单和配置文件的大小上限 (10MB)
MAX_FILE_SIZE = 10 * 1024 * 1024


def check_size(path: Path) -> None:
    size = path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise ValueError(f"文件过大: {path} ({size} 字节，上限 {MAX_FILE_SIZE})")


def is_empty_dir(path: Path) -> bool:
    """目录存在且为空"""
    if not path.is_dir():
        return False
    with os.scandir(path) as it:
        return next(it, None) is None


def safe_relative(path: str) -> PurePosixPath | None:
    """把归档 / 日志里的相对路径规范化，不安全时返回 None

    拒绝绝对路径、Windows 盘符以及任何 ".." 片段；"." 片段被丢弃。
    """
    text = path.replace("\\", "/")
    if text.startswith("/") or (len(text) > 1 and text[1] == ":"):
        return None
    parts = [p for p in text.split("/") if p not in ("", ".")]
    if any(p == ".." for p in parts):
        return None
    return PurePosixPath(*parts)
