"""包管理器测试 - 安装 / 卸载与注册表联动"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import Roots, make_zip, mylib_archive, write_package
from pkgman.core.config import Config
from pkgman.core.exceptions import (
    AlienFilesError,
    AlreadyInstalledError,
    ConsistencyError,
    NoJournalFoundError,
)
from pkgman.core.package_manager import PackageManager
from pkgman.core.pkg.models import IssueCode, StorageTier

MYLIB = {"name": "mylib", "version": "1.0.0"}


@pytest.fixture()
def pm(roots: Roots) -> PackageManager:
    return PackageManager(roots.system, roots.user, roots.project, local_root=roots.local)


class TestInstallUninstall:
    def test_install_registers_package(self, pm: PackageManager, roots: Roots) -> None:
        installed = pm.install(mylib_archive(), MYLIB, StorageTier.USER)
        found = pm.get_package("mylib", "1.0.0")
        assert found is installed
        assert found.tier is StorageTier.USER
        assert found.root == roots.user / "mylib" / "1.0.0"

    def test_uninstall_unregisters_and_deletes(self, pm: PackageManager) -> None:
        pkg = pm.install(mylib_archive(), MYLIB, StorageTier.USER)
        pm.uninstall(pkg)
        assert pm.get_package("mylib", "1.0.0") is None
        assert not pkg.root.exists()

    def test_install_visible_after_refresh(self, pm: PackageManager) -> None:
        pm.install(mylib_archive(), MYLIB, StorageTier.SYSTEM)
        pm.refresh()
        best = pm.get_best_package("mylib", ">=1.0.0 <2.0.0")
        assert best is not None
        assert best.tier is StorageTier.SYSTEM

    def test_uninstall_targets_own_tier(self, pm: PackageManager) -> None:
        """同版本同时装在 user 和 system：卸载 user 后 system 仍可见"""
        user_pkg = pm.install(mylib_archive(), MYLIB, StorageTier.USER)
        system_pkg = pm.install(mylib_archive(), MYLIB, StorageTier.SYSTEM)
        assert pm.get_package("mylib", "1.0.0") is user_pkg

        pm.uninstall(user_pkg)
        assert pm.get_package("mylib", "1.0.0") is system_pkg
        assert system_pkg.root.exists()

    def test_stale_instance_rejected(self, pm: PackageManager) -> None:
        pkg = pm.install(mylib_archive(), MYLIB, StorageTier.USER)
        pm.refresh()
        with pytest.raises(ConsistencyError):
            pm.uninstall(pkg)
        assert pkg.root.exists()

    def test_alien_files_still_unregister(self, pm: PackageManager) -> None:
        pkg = pm.install(mylib_archive(), MYLIB, StorageTier.PROJECT)
        (pkg.root / "build.log").write_text("x")
        with pytest.raises(AlienFilesError):
            pm.uninstall(pkg)
        assert pm.get_package("mylib", "1.0.0") is None
        assert (pkg.root / "build.log").exists()

    def test_no_journal_keeps_registration(self, pm: PackageManager) -> None:
        pkg = pm.install(mylib_archive(), MYLIB, StorageTier.USER)
        (pkg.root / "journal.json").unlink()
        with pytest.raises(NoJournalFoundError):
            pm.uninstall(pkg)
        assert pm.get_package("mylib", "1.0.0") is pkg

    def test_local_install_not_registered(self, pm: PackageManager, roots: Roots) -> None:
        pkg = pm.install(mylib_archive(), MYLIB, StorageTier.LOCAL)
        assert pkg.root == roots.local / "mylib"
        assert pm.get_package("mylib", "1.0.0") is None
        with pytest.raises(ConsistencyError):
            pm.uninstall(pkg)

    def test_registered_under_metadata_name(self, pm: PackageManager) -> None:
        """归档描述文件中的包名与安装元数据不同时，按元数据中的包名登记"""
        archive = make_zip({"x/package.json": {"name": "upstream-name", "version": "0.0.1"}})
        installed = pm.install(archive, MYLIB, StorageTier.USER)
        assert pm.get_package("mylib", "1.0.0") is installed
        assert pm.find("mylib", "1.0.0", StorageTier.USER) is installed

        pm.refresh()
        found = pm.get_package("mylib", "1.0.0")
        assert found is not None
        assert found.root == installed.root
        pm.uninstall(found)
        assert not installed.root.exists()

    def test_equal_version_in_tier_rejected(self, pm: PackageManager, roots: Roots) -> None:
        """build 元数据不同但版本等价，不允许在同一层级再装一份"""
        pm.install(mylib_archive(), {"name": "mylib", "version": "1.0.0+a"}, StorageTier.USER)
        with pytest.raises(AlreadyInstalledError, match="等价版本"):
            pm.install(mylib_archive(), {"name": "mylib", "version": "1.0.0+b"}, StorageTier.USER)
        assert not (roots.user / "mylib" / "1.0.0+b").exists()

        other = pm.install(mylib_archive(), {"name": "mylib", "version": "1.0.0+b"}, StorageTier.SYSTEM)
        assert other.tier is StorageTier.SYSTEM

    def test_describe_archive(self, pm: PackageManager) -> None:
        assert pm.describe_archive(mylib_archive("3.1.4")) == {"name": "mylib", "version": "3.1.4"}
        assert pm.describe_archive(make_zip({"pkg/": ""})) == {}


class TestQueries:
    def test_list_in_precedence_order(self, roots: Roots) -> None:
        write_package(roots.system / "a" / "1.0.0", "a", "1.0.0")
        write_package(roots.project / "b", "b", "2.0.0")
        pm = PackageManager(roots.system, roots.user, roots.project)
        assert [(p["name"], p["tier"]) for p in pm.list_packages()] == [
            ("b", "project"), ("a", "system"),
        ]

    def test_refresh_replaces_registry(self, pm: PackageManager, roots: Roots) -> None:
        assert pm.get_package("a", "1.0.0") is None
        write_package(roots.user / "a" / "1.0.0", "a", "1.0.0")
        bad = roots.user / "b" / "1.0.0"
        bad.mkdir(parents=True)
        (bad / "package.json").write_text("[]")

        result = pm.refresh()
        assert pm.get_package("a", "1.0.0") is not None
        assert pm.issues == result.issues
        assert [i.code for i in pm.issues] == [IssueCode.CORRUPT_ENTRY]

    def test_invalid_query_strings(self, pm: PackageManager) -> None:
        with pytest.raises(ValueError):
            pm.get_package("a", "latest")
        with pytest.raises(ValueError):
            pm.get_best_package("a", ">>1")

    def test_from_config(self, roots: Roots) -> None:
        write_package(roots.user / "a" / "1.0.0", "a", "1.0.0")
        cfg = Config(
            system_dir=str(roots.system), user_dir=str(roots.user),
            project_dir=str(roots.project), local_dir=str(roots.local),
        )
        pm = PackageManager.from_config(cfg)
        assert pm.user_root == roots.user
        assert pm.get_package("a", "1.0.0") is not None


class TestLocalManifest:
    def test_add_and_remove(self, pm: PackageManager, roots: Roots, tmp_path: Path) -> None:
        checkout = write_package(tmp_path / "work" / "dep", "dep", "0.5.0")
        pkg = pm.add_local(checkout)
        assert pkg.tier is StorageTier.LOCAL
        assert pm.get_package("dep", "0.5.0") is pkg

        entries = json.loads((roots.user / "local-packages.json").read_text(encoding="utf-8"))
        assert entries == [{"name": "dep", "version": "0.5.0", "path": str(checkout.resolve())}]

        assert pm.remove_local(checkout) is True
        assert pm.get_package("dep", "0.5.0") is None
        assert pm.remove_local(checkout) is False

    def test_re_adding_same_path_replaces_entry(self, pm: PackageManager, roots: Roots, tmp_path: Path) -> None:
        checkout = tmp_path / "dep"
        checkout.mkdir()
        pm.add_local(checkout, name="dep", version="1.0.0", scope=StorageTier.SYSTEM)
        pm.add_local(checkout, name="dep", version="~master", scope=StorageTier.SYSTEM)
        entries = json.loads((roots.system / "local-packages.json").read_text(encoding="utf-8"))
        assert [e["version"] for e in entries] == ["~master"]
        assert pm.get_package("dep", "1.0.0") is None

    def test_project_scope_rejected(self, pm: PackageManager, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="user / system"):
            pm.add_local(tmp_path, name="x", version="1.0.0", scope=StorageTier.PROJECT)
