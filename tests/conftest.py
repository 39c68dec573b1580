"""测试公共工具：在内存中构造 zip / tar 归档，准备三个层级根目录"""

from __future__ import annotations

import io
import json
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import pytest

# 归档内容: 路径 -> 文件内容；以 "/" 结尾的路径表示目录
ArchiveSpec = dict[str, "str | bytes | dict"]


def _as_bytes(content: str | bytes | dict) -> bytes:
    if isinstance(content, dict):
        return json.dumps(content).encode("utf-8")
    if isinstance(content, str):
        return content.encode("utf-8")
    return content


def make_zip(files: ArchiveSpec) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for path, content in files.items():
            zf.writestr(path, b"" if path.endswith("/") else _as_bytes(content))
    return buf.getvalue()


def make_tar(files: ArchiveSpec, mode: str = "w:gz") -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for path, content in files.items():
            info = tarfile.TarInfo(path.rstrip("/"))
            if path.endswith("/"):
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tf.addfile(info)
            else:
                data = _as_bytes(content)
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def mylib_archive(version_in_descriptor: str = "0.0.0") -> bytes:
    """GitHub 风格的归档：内容位于一层顶级目录下"""
    return make_zip({
        "mylib-1.0.0/": "",
        "mylib-1.0.0/package.json": {"name": "mylib", "version": version_in_descriptor},
        "mylib-1.0.0/src/": "",
        "mylib-1.0.0/src/main.d": "void main() {}\n",
    })


def write_package(root: Path, name: str, version: str, **extra) -> Path:
    """在 root 下直接写一个描述文件（不经过安装流程）"""
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(
        json.dumps({"name": name, "version": version, **extra}), encoding="utf-8",
    )
    return root


@dataclass
class Roots:
    system: Path
    user: Path
    project: Path
    local: Path


@pytest.fixture()
def roots(tmp_path: Path) -> Roots:
    return Roots(
        system=tmp_path / "system",
        user=tmp_path / "user",
        project=tmp_path / "project",
        local=tmp_path / "local",
    )
