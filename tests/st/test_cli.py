"""命令行端到端测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from conftest import Roots, mylib_archive, write_package
from pkgman.cli import main
from pkgman.services.container import reset_container
from pkgman.utils.logger import reset_logging


@pytest.fixture()
def config_file(tmp_path: Path, roots: Roots):
    path = tmp_path / "pkgman.yml"
    path.write_text(yaml.dump({
        "system_dir": str(roots.system),
        "user_dir": str(roots.user),
        "project_dir": str(roots.project),
        "local_dir": str(roots.local),
        "log_level": "WARNING",
    }))
    yield path
    reset_container()
    reset_logging()


@pytest.fixture()
def archive(tmp_path: Path) -> Path:
    path = tmp_path / "mylib-1.0.0.zip"
    path.write_bytes(mylib_archive("1.0.0"))
    return path


def _run(config_file: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(config_file), *args])


class TestPackageCommands:
    def test_install_resolve_uninstall(self, config_file: Path, archive: Path, roots: Roots) -> None:
        result = _run(config_file, "install", str(archive))
        assert result.exit_code == 0, result.output
        assert "已安装: mylib@1.0.0" in result.output
        assert (roots.user / "mylib" / "1.0.0" / "journal.json").exists()

        result = _run(config_file, "resolve", "mylib", "-C", "^1.0.0")
        assert result.exit_code == 0
        assert "[user]" in result.output

        result = _run(config_file, "uninstall", "mylib", "1.0.0")
        assert result.exit_code == 0, result.output
        assert not (roots.user / "mylib" / "1.0.0").exists()

    def test_install_overrides(self, config_file: Path, archive: Path, roots: Roots) -> None:
        result = _run(config_file, "install", str(archive), "--tier", "project", "--version", "2.0.0")
        assert result.exit_code == 0, result.output
        assert (roots.project / "mylib" / "package.json").exists()

    def test_already_installed_reports_code(self, config_file: Path, archive: Path) -> None:
        _run(config_file, "install", str(archive))
        result = _run(config_file, "install", str(archive))
        assert result.exit_code == 1
        assert "[ALREADY_INSTALLED]" in result.output

    def test_resolve_not_found(self, config_file: Path) -> None:
        result = _run(config_file, "resolve", "ghost")
        assert result.exit_code == 1
        assert "未找到" in result.output

    def test_resolve_bad_constraint(self, config_file: Path) -> None:
        result = _run(config_file, "resolve", "ghost", "-C", ">>1")
        assert result.exit_code == 1
        assert "无效的版本号" in result.output

    def test_list_and_scan(self, config_file: Path, roots: Roots) -> None:
        write_package(roots.system / "a" / "1.0.0", "a", "1.0.0")
        broken = roots.system / "b" / "1.0.0"
        broken.mkdir(parents=True)
        (broken / "package.json").write_text("{")

        result = _run(config_file, "list")
        assert result.exit_code == 0
        assert "a" in result.output and "[system" in result.output

        result = _run(config_file, "scan")
        assert result.exit_code == 0
        assert "发现 1 个包，1 个问题" in result.output
        assert "CORRUPT_PACKAGE_ENTRY" in result.output

    def test_list_empty(self, config_file: Path) -> None:
        result = _run(config_file, "list")
        assert "没有已知的包" in result.output


class TestLocalCommands:
    def test_add_and_remove_local(self, config_file: Path, tmp_path: Path, roots: Roots) -> None:
        checkout = write_package(tmp_path / "dep", "dep", "0.1.0")
        result = _run(config_file, "add-local", str(checkout))
        assert result.exit_code == 0, result.output
        assert (roots.user / "local-packages.json").exists()

        result = _run(config_file, "resolve", "dep", "--version", "0.1.0")
        assert "[local]" in result.output

        result = _run(config_file, "remove-local", str(checkout))
        assert "已移除" in result.output
        result = _run(config_file, "remove-local", str(checkout))
        assert "未登记" in result.output


class TestMiscCommands:
    def test_show_config(self, config_file: Path, roots: Roots) -> None:
        result = _run(config_file, "config")
        assert result.exit_code == 0
        assert str(roots.user) in result.output

    def test_write_config(self, config_file: Path, tmp_path: Path) -> None:
        target = tmp_path / "copy.yml"
        result = _run(config_file, "config", "--write", str(target))
        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text())["log_level"] == "WARNING"

    def test_broken_config_file(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("user_dir: [")
        result = CliRunner().invoke(main, ["--config", str(bad), "list"])
        assert result.exit_code == 1
        assert "[CONFIG_ERROR]" in result.output
