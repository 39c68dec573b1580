"""日志配置测试"""

from __future__ import annotations

import json
import logging

import pytest

from pkgman.utils.logger import JSONFormatter, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    reset_logging()
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "pkgman.core.pkg.scanner", logging.WARNING, __file__, 10, "跳过 %s", ("foo",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self) -> None:
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "WARNING"
        assert data["logger"] == "pkgman.core.pkg.scanner"
        assert data["message"] == "跳过 foo"
        assert "package" not in data

    def test_context_fields(self) -> None:
        data = json.loads(JSONFormatter().format(
            _record(package="foo", path="/tmp/foo", code="CORRUPT_PACKAGE_ENTRY"),
        ))
        assert data["package"] == "foo"
        assert data["path"] == "/tmp/foo"
        assert data["code"] == "CORRUPT_PACKAGE_ENTRY"


class TestSetupLogging:
    def test_single_handler(self) -> None:
        setup_logging("DEBUG")
        setup_logging("WARNING", json_output=True)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO
