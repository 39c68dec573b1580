"""ServiceContainer 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import pkgman.core.config as cfgmod
from pkgman.services.container import (
    ServiceContainer,
    get_container,
    reset_container,
)


@pytest.fixture(autouse=True)
def _setup_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """确保测试有独立的配置和包目录"""
    cfg = cfgmod.Config(
        system_dir=str(tmp_path / "system"),
        user_dir=str(tmp_path / "user"),
        project_dir=str(tmp_path / "project"),
        local_dir=str(tmp_path),
    )
    monkeypatch.setattr(cfgmod, "_current", cfg)
    reset_container()
    yield
    reset_container()


class TestServiceContainer:
    def test_lazy_loading(self) -> None:
        c = ServiceContainer()
        assert len(c._instances) == 0
        _ = c.packages
        assert "packages" in c._instances

    def test_shared_instances(self) -> None:
        c = ServiceContainer()
        assert c.packages is c.packages

    def test_uses_injected_config(self, tmp_path: Path) -> None:
        cfg = cfgmod.Config(user_dir=str(tmp_path / "other"))
        c = ServiceContainer(config=cfg)
        assert c.config is cfg
        assert c.packages.user_root == tmp_path / "other"


class TestGlobalContainer:
    def test_singleton(self) -> None:
        assert get_container() is get_container()

    def test_reset(self) -> None:
        first = get_container()
        reset_container()
        assert get_container() is not first

    def test_picks_up_current_config(self, tmp_path: Path) -> None:
        assert get_container().packages.system_root == tmp_path / "system"
