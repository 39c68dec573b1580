"""文件系统扫描器

每次刷新都完整重建注册表，不做增量比对。扫描对单个条目的错误是容忍的:
某个版本目录、某条清单记录或某个清单文件出错，只会记录一条 Issue 并跳过，
绝不会中断其余包的发现。

目录约定:
  system_root/<name>/<version>/package.json
  user_root/<name>/<version>/package.json
  project_root/<name>/package.json
  system_root/local-packages.json, user_root/local-packages.json
      [{"name": ..., "version": ..., "path": ...}, ...]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pkgman.core.exceptions import DescriptorError
from pkgman.core.pkg.models import (
    DESCRIPTOR_FILE,
    JOURNAL_FILE,
    LOCAL_MANIFEST_FILE,
    Issue,
    IssueCode,
    Package,
    StorageTier,
    read_descriptor,
)
from pkgman.core.pkg.registry import PackageRegistry
from pkgman.utils.json_io import load_json

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """一次扫描的产出：新的注册表 + 被跳过条目的记录"""

    registry: PackageRegistry
    issues: list[Issue] = field(default_factory=list)


class PackageScanner:
    """扫描三个根目录，重建注册表（只读，不修改文件系统）"""

    def __init__(
        self,
        system_root: Path,
        user_root: Path,
        project_root: Path,
        *,
        strict: bool = False,
    ) -> None:
        self.system_root = Path(system_root)
        self.user_root = Path(user_root)
        self.project_root = Path(project_root)
        self.strict = strict

    def scan(self) -> ScanResult:
        result = ScanResult(registry=PackageRegistry())
        self._scan_versioned(self.system_root, StorageTier.SYSTEM, result)
        self._scan_versioned(self.user_root, StorageTier.USER, result)
        self._scan_project(result)
        for list_root in (self.system_root, self.user_root):
            self._load_local_manifest(list_root / LOCAL_MANIFEST_FILE, result)
        logger.info(
            "扫描完成: %d 个包, %d 个问题", len(result.registry), len(result.issues),
        )
        return result

    # ---- 各层级 ----

    def _scan_versioned(self, root: Path, tier: StorageTier, result: ScanResult) -> None:
        """<root>/<name>/<version>/ 两级目录"""
        if not root.is_dir():
            logger.debug("%s 目录不存在，跳过: %s", tier.value, root)
            return
        logger.debug("扫描 %s 包目录: %s", tier.value, root)
        for name_dir in self._subdirs(root, result):
            for ver_dir in self._subdirs(name_dir, result):
                if not self._looks_installed(ver_dir, result):
                    continue
                pkg = self._load(tier, ver_dir, result)
                if pkg is not None:
                    self._warn_name_mismatch(pkg, name_dir.name)
                    result.registry.add(pkg, key=name_dir.name)

    def _scan_project(self, result: ScanResult) -> None:
        """<project_root>/<name>/ 单级目录，同名只有一个"""
        root = self.project_root
        if not root.is_dir():
            logger.debug("project 目录不存在，跳过: %s", root)
            return
        logger.debug("扫描 project 包目录: %s", root)
        for pkg_dir in self._subdirs(root, result):
            if not self._looks_installed(pkg_dir, result):
                continue
            pkg = self._load(StorageTier.PROJECT, pkg_dir, result)
            if pkg is not None:
                self._warn_name_mismatch(pkg, pkg_dir.name)
                result.registry.add(pkg, key=pkg_dir.name)

    def _load_local_manifest(self, manifest: Path, result: ScanResult) -> None:
        """加载本地包清单；清单缺失或损坏只影响这一个文件"""
        if not manifest.is_file():
            logger.debug("本地包清单不存在: %s", manifest)
            return
        try:
            entries = load_json(manifest)
        except (OSError, ValueError) as e:
            self._issue(result, IssueCode.MANIFEST_UNAVAILABLE, manifest,
                        f"本地包清单无法读取: {e}", level=logging.WARNING)
            return
        if not isinstance(entries, list):
            self._issue(result, IssueCode.MANIFEST_UNAVAILABLE, manifest,
                        f"{LOCAL_MANIFEST_FILE} 必须是数组", level=logging.WARNING)
            return

        logger.debug("加载本地包清单: %s (%d 条)", manifest, len(entries))
        for entry in entries:
            pkg = self._local_package(entry, manifest.parent, result)
            if pkg is not None:
                result.registry.add(pkg)

    def _local_package(self, entry: Any, base: Path, result: ScanResult) -> Package | None:
        where = base / LOCAL_MANIFEST_FILE
        if not isinstance(entry, dict) or not all(
            isinstance(entry.get(k), str) and entry.get(k) for k in ("name", "version", "path")
        ):
            self._issue(result, IssueCode.CORRUPT_ENTRY, where,
                        f"本地包条目缺少 name/version/path: {entry!r}", level=logging.WARNING)
            return None

        name, version = entry["name"], entry["version"]
        path = Path(entry["path"])
        if not path.is_absolute():
            path = base / path

        info: dict[str, Any] = {}
        if (path / DESCRIPTOR_FILE).is_file():
            try:
                info = read_descriptor(path)
            except DescriptorError as e:
                self._issue(result, IssueCode.CORRUPT_ENTRY, path, str(e), level=logging.WARNING)
                return None
        if "name" in info and info["name"] != name:
            logger.warning(
                "本地包 %s 的描述文件名称不一致: 清单为 %s, 描述文件为 %s",
                path, name, info["name"],
            )
        info["name"] = name
        info["version"] = version
        try:
            return Package.from_info(info, StorageTier.LOCAL, path)
        except DescriptorError as e:
            self._issue(result, IssueCode.CORRUPT_ENTRY, path, str(e), level=logging.WARNING)
            return None

    # ---- 辅助 ----

    def _subdirs(self, parent: Path, result: ScanResult) -> list[Path]:
        """按名称排序的子目录，忽略隐藏目录"""
        try:
            children = sorted(parent.iterdir(), key=lambda p: p.name)
        except OSError as e:
            self._issue(result, IssueCode.CORRUPT_ENTRY, parent, f"无法枚举目录: {e}")
            return []
        return [c for c in children if c.is_dir() and not c.name.startswith(".")]

    def _looks_installed(self, pkg_dir: Path, result: ScanResult) -> bool:
        if not (pkg_dir / DESCRIPTOR_FILE).is_file():
            return False
        if self.strict and not (pkg_dir / JOURNAL_FILE).is_file():
            self._issue(result, IssueCode.CORRUPT_ENTRY, pkg_dir,
                        f"缺少 {JOURNAL_FILE}，可能是未完成的安装，已跳过")
            return False
        return True

    def _load(self, tier: StorageTier, pkg_dir: Path, result: ScanResult) -> Package | None:
        try:
            return Package.load(tier, pkg_dir)
        except DescriptorError as e:
            self._issue(result, IssueCode.CORRUPT_ENTRY, pkg_dir, f"加载包失败: {e}")
            return None

    @staticmethod
    def _warn_name_mismatch(pkg: Package, dir_name: str) -> None:
        if pkg.name != dir_name:
            logger.warning("包目录名 %s 与描述文件中的名称 %s 不一致: %s", dir_name, pkg.name, pkg.root)

    @staticmethod
    def _issue(
        result: ScanResult,
        code: IssueCode,
        path: Path,
        message: str,
        *,
        level: int = logging.ERROR,
    ) -> None:
        logger.log(level, "%s", message, extra={"path": str(path), "code": code.value})
        result.issues.append(Issue(code, str(path), message))
