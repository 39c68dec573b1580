"""包安装（文件系统部分）

流程:
  1. 由 (层级, 包名, 版本) 计算目标目录
  2. 目标目录已存在 → AlreadyInstalledError
  3. 枚举归档条目，计算需要剥离的前缀（同时校验路径安全）
  4. 按归档顺序写出目录和文件，每个新建的目录 / 文件都记入安装日志
  5. 把描述文件的 version 字段强制改写为调用方给出的版本
  6. 追加日志自身的条目，保存 journal.json
注册表的更新不在这里做，由 PackageManager 在文件系统步骤成功后进行。

第 6 步之前的任何失败都会在磁盘上留下一个没有 journal.json 的目标目录，
这里不做自动回滚，需要人工清理。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from pkgman.core.exceptions import AlreadyInstalledError, DescriptorError, PkgManError
from pkgman.core.pkg.archive import (
    ArchiveEntry,
    ArchiveReader,
    read_archive,
    resolve_prefix,
    strip_prefix,
)
from pkgman.core.pkg.journal import Journal
from pkgman.core.pkg.models import (
    DESCRIPTOR_FILE,
    JOURNAL_FILE,
    StorageTier,
    read_descriptor,
    validate_info,
)
from pkgman.utils.fs import safe_relative
from pkgman.utils.json_io import save_json

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """一次成功安装的文件系统产出"""

    name: str
    version: str
    tier: StorageTier
    destination: Path
    journal: Journal


class PackageInstaller:
    """把归档解压到层级对应的目标目录，并记录安装日志"""

    def __init__(
        self,
        system_root: Path,
        user_root: Path,
        project_root: Path,
        local_root: Path = Path("."),
        reader: ArchiveReader = read_archive,
    ) -> None:
        self.system_root = Path(system_root)
        self.user_root = Path(user_root)
        self.project_root = Path(project_root)
        self.local_root = Path(local_root)
        self._reader = reader

    def destination(self, tier: StorageTier, name: str, version: str) -> Path:
        """计算安装目标目录

        路径规则:
          - LOCAL:   local_root/<name>
          - PROJECT: project_root/<name>
          - USER:    user_root/<name>/<version>
          - SYSTEM:  system_root/<name>/<version>
        """
        if tier is StorageTier.LOCAL:
            return self.local_root / name
        if tier is StorageTier.PROJECT:
            return self.project_root / name
        if tier is StorageTier.USER:
            return self.user_root / name / version
        return self.system_root / name / version

    def install(self, archive: bytes, info: dict[str, Any], tier: StorageTier) -> InstallResult:
        name, _ = validate_info(info, "安装元数据")
        version = info["version"]
        for field_name, value in (("name", name), ("version", version)):
            if safe_relative(value) != PurePosixPath(value) or len(PurePosixPath(value).parts) != 1:
                raise DescriptorError(f"{field_name} 不能作为目录名: {value!r}")

        dest = self.destination(tier, name, version)
        if dest.exists() or dest.is_symlink():
            raise AlreadyInstalledError(f"{name} 需要先卸载才能重新安装: {dest}")

        entries = self._reader(archive)
        prefix = resolve_prefix(entries)
        logger.debug("归档根目录: '%s'", prefix)

        logger.info("安装 %s@%s -> %s", name, version, dest)
        dest.mkdir(parents=True)
        journal = Journal()
        try:
            self._extract(entries, prefix, dest, journal)
            self._rewrite_descriptor(dest, info, journal)
            journal.add_file(JOURNAL_FILE)
            logger.debug("保存安装日志: %d 条", len(journal))
            journal.save(dest / JOURNAL_FILE)
        except (PkgManError, OSError):
            logger.error(
                "安装 %s@%s 中断，%s 中没有安装日志，需要手动清理", name, version, dest,
                extra={"package": name, "path": str(dest)},
            )
            raise

        logger.info("%s 已安装，版本 %s", name, version, extra={"package": name})
        return InstallResult(name=name, version=version, tier=tier, destination=dest, journal=journal)

    def _extract(
        self, entries: list[ArchiveEntry], prefix: PurePosixPath, dest: Path, journal: Journal,
    ) -> None:
        created: set[PurePosixPath] = set()
        for entry in entries:
            rel = strip_prefix(entry.path, prefix)
            if rel is None:
                continue
            logger.debug("创建 %s", rel)
            if entry.is_dir:
                self._ensure_dir(dest, rel, journal, created)
            else:
                self._ensure_dir(dest, rel.parent, journal, created)
                (dest / rel).write_bytes(entry.content)
                journal.add_file(rel)

    @staticmethod
    def _ensure_dir(
        dest: Path, rel: PurePosixPath, journal: Journal, created: set[PurePosixPath],
    ) -> None:
        """逐级创建目录，只有本次新建的目录才记入日志"""
        current = PurePosixPath()
        for part in rel.parts:
            current = current / part
            if current in created:
                continue
            target = dest / current
            if not target.is_dir():
                target.mkdir()
            created.add(current)
            journal.add_directory(current)

    @staticmethod
    def _rewrite_descriptor(dest: Path, info: dict[str, Any], journal: Journal) -> None:
        """描述文件的 version 以调用方为准；归档里没有描述文件时按元数据生成一份"""
        descriptor = dest / DESCRIPTOR_FILE
        if descriptor.is_file():
            data = read_descriptor(dest)
            data.setdefault("name", info["name"])
            data["version"] = info["version"]
            save_json(descriptor, data)
            return
        logger.warning("归档中没有 %s，按安装元数据生成: %s", DESCRIPTOR_FILE, descriptor)
        save_json(descriptor, dict(info))
        journal.add_file(DESCRIPTOR_FILE)
