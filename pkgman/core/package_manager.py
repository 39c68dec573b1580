"""包管理器

持有三个层级根目录和内存注册表，把文件系统操作与注册表操作串起来:

  refresh()           扫描磁盘，整体替换注册表
  get_package()       精确版本查找（层级顺序即优先级）
  get_best_package()  按约束选最高版本（层级不影响选择）
  install()           解压归档 + 写安装日志，成功后登记到注册表
  uninstall()         先确认注册表中登记的正是该实例，再按日志删除，最后注销

单线程同步模型：调用方需要保证同一棵包目录上的 install / uninstall / refresh
不会并发执行。

用法:
    from pkgman.core.package_manager import PackageManager

    pm = PackageManager("/var/lib/pkgman/packages", "~/.pkgman/packages", ".pkgman/packages")
    pkg = pm.get_best_package("mylib", ">=1.0.0 <2.0.0")
    pm.install(Path("mylib-1.2.0.zip").read_bytes(), {"name": "mylib", "version": "1.2.0"},
               StorageTier.USER)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pkgman.core.exceptions import (
    AlienFilesError,
    AlreadyInstalledError,
    ConfigError,
    ConsistencyError,
    DescriptorError,
)
from pkgman.core.pkg.archive import ArchiveReader, archive_descriptor, read_archive
from pkgman.core.pkg.installer import PackageInstaller
from pkgman.core.pkg.models import (
    LOCAL_MANIFEST_FILE,
    Issue,
    Package,
    StorageTier,
    read_descriptor,
    validate_info,
)
from pkgman.core.pkg.registry import CandidateSequence, PackageRegistry
from pkgman.core.pkg.scanner import PackageScanner, ScanResult
from pkgman.core.pkg.uninstaller import PackageUninstaller, UninstallReport
from pkgman.core.pkg.version import Constraint, Version
from pkgman.utils.json_io import load_json, save_json

if TYPE_CHECKING:
    from pkgman.core.config import Config

logger = logging.getLogger(__name__)


class PackageManager:
    """本地包管理器，注册表由本实例独占"""

    def __init__(
        self,
        system_root: str | Path,
        user_root: str | Path,
        project_root: str | Path,
        *,
        local_root: str | Path = ".",
        strict_scan: bool = False,
        reader: ArchiveReader = read_archive,
    ) -> None:
        self.system_root = Path(system_root)
        self.user_root = Path(user_root)
        self.project_root = Path(project_root)
        self.scanner = PackageScanner(
            self.system_root, self.user_root, self.project_root, strict=strict_scan,
        )
        self.installer = PackageInstaller(
            self.system_root, self.user_root, self.project_root,
            local_root=Path(local_root), reader=reader,
        )
        self.uninstaller = PackageUninstaller()
        self._reader = reader
        self.registry = PackageRegistry()
        self.issues: list[Issue] = []
        self.refresh()

    @classmethod
    def from_config(cls, cfg: Config | None = None) -> PackageManager:
        if cfg is None:
            from pkgman.core.config import get_config
            cfg = get_config()
        return cls(
            cfg.root("system_dir"), cfg.root("user_dir"), cfg.root("project_dir"),
            local_root=cfg.root("local_dir"), strict_scan=cfg.strict_scan,
        )

    # ---- 查询 ----

    def refresh(self) -> ScanResult:
        """重新扫描磁盘，整体替换注册表"""
        result = self.scanner.scan()
        self.registry = result.registry
        self.issues = result.issues
        return result

    def candidates(self, name: str) -> CandidateSequence:
        return self.registry.candidates(name)

    def get_package(self, name: str, version: Version | str) -> Package | None:
        if isinstance(version, str):
            version = Version.parse(version)
        return self.registry.get_exact(name, version)

    def get_best_package(self, name: str, constraint: Constraint | str) -> Package | None:
        if isinstance(constraint, str):
            constraint = Constraint.parse(constraint)
        return self.registry.get_best(name, constraint)

    def find(self, name: str, version: Version | str, tier: StorageTier) -> Package | None:
        if isinstance(version, str):
            version = Version.parse(version)
        return self.registry.find(name, version, tier)

    def list_packages(self) -> list[dict[str, str]]:
        return [pkg.to_dict() for pkg in self.registry]

    # ---- 安装 / 卸载 ----

    def describe_archive(self, archive: bytes) -> dict[str, Any]:
        """读取归档自带的描述文件（调用方未提供元数据时使用）"""
        return archive_descriptor(self._reader(archive))

    def install(self, archive: bytes, info: dict[str, Any], tier: StorageTier) -> Package:
        name, version = validate_info(info, "安装元数据")
        if tier is not StorageTier.LOCAL:
            existing = self.registry.find(name, version, tier)
            if existing is not None:
                # build 元数据不参与比较，1.0.0+a 与 1.0.0+b 视为同一版本
                raise AlreadyInstalledError(
                    f"{tier.value} 层级中已有等价版本 {existing.version}: {existing.root}"
                )
        result = self.installer.install(archive, info, tier)
        pkg = Package.load(tier, result.destination)
        if tier is StorageTier.LOCAL:
            # 本地包只通过 local-packages.json 登记
            return pkg
        # 与扫描器一致，按安装目录名（即元数据中的包名）登记
        self.registry.add(pkg, key=result.name)
        logger.debug("已登记 %s", pkg)
        return pkg

    def uninstall(self, pkg: Package) -> UninstallReport:
        if pkg.tier is StorageTier.LOCAL:
            raise ConsistencyError(f"本地包不由安装流程管理，无法卸载: {pkg}")
        self.registry.check_removable(pkg)
        try:
            report = self.uninstaller.uninstall(pkg)
        except AlienFilesError:
            # 日志中的文件（包括描述文件）已经删除，包不再有效
            self.registry.remove(pkg)
            raise
        self.registry.remove(pkg)
        return report

    # ---- 本地包清单 ----

    def _manifest_path(self, scope: StorageTier) -> Path:
        if scope is StorageTier.SYSTEM:
            return self.system_root / LOCAL_MANIFEST_FILE
        if scope is StorageTier.USER:
            return self.user_root / LOCAL_MANIFEST_FILE
        raise ValueError(f"本地包清单只能放在 user / system 层级: {scope.value}")

    def _read_manifest(self, manifest: Path) -> list[Any]:
        if not manifest.exists():
            return []
        try:
            entries = load_json(manifest)
        except (OSError, ValueError) as e:
            raise ConfigError(f"本地包清单无法读取: {manifest} ({e})") from e
        if not isinstance(entries, list):
            raise ConfigError(f"{LOCAL_MANIFEST_FILE} 必须是数组: {manifest}")
        return entries

    def add_local(
        self,
        path: str | Path,
        name: str | None = None,
        version: str | None = None,
        scope: StorageTier = StorageTier.USER,
    ) -> Package:
        """把一个目录登记为本地包；同一路径已登记时覆盖原条目"""
        pkg_path = Path(path).resolve()
        if name is None or version is None:
            info = read_descriptor(pkg_path)
            name = name or info.get("name")
            version = version or info.get("version")
        validate_info({"name": name, "version": version}, str(pkg_path))

        manifest = self._manifest_path(scope)
        entries = [
            e for e in self._read_manifest(manifest)
            if not (isinstance(e, dict) and e.get("path") == str(pkg_path))
        ]
        entries.append({"name": name, "version": version, "path": str(pkg_path)})
        save_json(manifest, entries)
        logger.info("已登记本地包 %s@%s -> %s", name, version, pkg_path)

        self.refresh()
        for pkg in self.registry.partition(StorageTier.LOCAL):
            if pkg.root == pkg_path and pkg.name == name:
                return pkg
        raise DescriptorError(f"本地包登记后未能加载: {pkg_path}")

    def remove_local(self, path: str | Path, scope: StorageTier = StorageTier.USER) -> bool:
        pkg_path = str(Path(path).resolve())
        manifest = self._manifest_path(scope)
        entries = self._read_manifest(manifest)
        kept = [e for e in entries if not (isinstance(e, dict) and e.get("path") == pkg_path)]
        if len(kept) == len(entries):
            return False
        save_json(manifest, kept)
        logger.info("已移除本地包登记: %s", pkg_path)
        self.refresh()
        return True
