"""归档读取与目录布局解析

职责:
- 把 zip / tar(.gz/.bz2/.xz) 字节流展开为有序的 ArchiveEntry 列表
- 计算需要剥离的公共前缀（GitHub 之类的归档内容放在一层子目录里）

前缀规则:
  1. 优先取深度最浅的描述文件 (package.json) 所在目录
  2. 归档中没有描述文件时，退而取最短的目录（目录条目或文件的父目录）
  3. 两者都没有则无法解析
"""

from __future__ import annotations

import io
import json
import logging
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Callable

from pkgman.core.exceptions import ArchiveLayoutError
from pkgman.core.pkg.models import DESCRIPTOR_FILE
from pkgman.utils.fs import safe_relative

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveEntry:
    """归档中的一个条目，目录条目的 path 以 "/" 结尾"""

    path: str
    is_dir: bool
    content: bytes = b""


ArchiveReader = Callable[[bytes], list[ArchiveEntry]]


def read_archive(data: bytes) -> list[ArchiveEntry]:
    """按归档内的顺序列出全部条目"""
    buf = io.BytesIO(data)
    if zipfile.is_zipfile(buf):
        buf.seek(0)
        return _read_zip(buf)
    buf.seek(0)
    return _read_tar(buf)


def _read_zip(buf: io.BytesIO) -> list[ArchiveEntry]:
    entries: list[ArchiveEntry] = []
    try:
        with zipfile.ZipFile(buf) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    entries.append(ArchiveEntry(info.filename, True))
                else:
                    entries.append(ArchiveEntry(info.filename, False, zf.read(info)))
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveLayoutError(f"zip 归档无法读取: {e}") from e
    return entries


def _read_tar(buf: io.BytesIO) -> list[ArchiveEntry]:
    entries: list[ArchiveEntry] = []
    try:
        with tarfile.open(fileobj=buf, mode="r:*") as tf:
            for member in tf.getmembers():
                if member.isdir():
                    entries.append(ArchiveEntry(member.name.rstrip("/") + "/", True))
                elif member.isfile():
                    fobj = tf.extractfile(member)
                    if fobj is None:
                        continue
                    with fobj:
                        entries.append(ArchiveEntry(member.name, False, fobj.read()))
                else:
                    logger.warning("跳过非普通文件的归档条目: %s", member.name)
    except (tarfile.TarError, OSError) as e:
        raise ArchiveLayoutError(f"归档格式无法识别（支持 zip / tar）: {e}") from e
    return entries


def resolve_prefix(entries: list[ArchiveEntry]) -> PurePosixPath:
    """计算需要剥离的公共前缀，空前缀表示归档根目录即包根目录

    同时校验所有条目路径，任何绝对路径或 ".." 都会让整个归档被拒绝，
    此时目标目录里还没有写入任何东西。
    """
    if not entries:
        raise ArchiveLayoutError("归档为空")

    descriptors: list[PurePosixPath] = []
    directories: list[PurePosixPath] = []
    for entry in entries:
        rel = safe_relative(entry.path)
        if rel is None:
            raise ArchiveLayoutError(f"归档条目路径不安全: {entry.path!r}")
        if not rel.parts:
            continue
        if entry.is_dir:
            directories.append(rel)
            continue
        if rel.name == DESCRIPTOR_FILE:
            descriptors.append(rel)
        # 很多 zip 工具不写目录条目，文件的父目录同样算作候选
        if len(rel.parts) > 1:
            directories.append(rel.parent)

    if descriptors:
        shallowest = min(descriptors, key=lambda p: len(p.parts))
        return shallowest.parent

    if directories:
        shortest = min(directories, key=lambda p: len(p.parts))
        logger.warning("归档中没有 %s，按最短目录剥离前缀: %s", DESCRIPTOR_FILE, shortest)
        return shortest

    raise ArchiveLayoutError(f"归档中既没有 {DESCRIPTOR_FILE} 也没有目录，无法确定包根目录")


def strip_prefix(path: str, prefix: PurePosixPath) -> PurePosixPath | None:
    """去掉前缀，返回包内相对路径；不在前缀下（或正是前缀本身）时返回 None"""
    rel = safe_relative(path)
    if rel is None:
        return None
    depth = len(prefix.parts)
    if rel.parts[:depth] != prefix.parts or len(rel.parts) <= depth:
        return None
    return PurePosixPath(*rel.parts[depth:])


def archive_descriptor(entries: list[ArchiveEntry]) -> dict[str, Any]:
    """读取归档中最浅一层的描述文件内容，没有时返回空字典"""
    found: tuple[int, ArchiveEntry] | None = None
    for entry in entries:
        rel = safe_relative(entry.path)
        if entry.is_dir or rel is None or rel.name != DESCRIPTOR_FILE:
            continue
        if found is None or len(rel.parts) < found[0]:
            found = (len(rel.parts), entry)
    if found is None:
        return {}
    try:
        data = json.loads(found[1].content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ArchiveLayoutError(f"归档中的 {DESCRIPTOR_FILE} 无法解析: {e}") from e
    return data if isinstance(data, dict) else {}
