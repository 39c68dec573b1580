"""安装日志测试"""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath

import pytest

from pkgman.core.exceptions import JournalError
from pkgman.core.pkg.journal import EntryType, Journal


class TestJournalPersistence:
    def test_save_format(self, tmp_path: Path) -> None:
        journal = Journal()
        journal.add_directory("src")
        journal.add_file("src/main.d")
        journal.add_file("journal.json")
        target = tmp_path / "journal.json"
        journal.save(target)

        assert json.loads(target.read_text(encoding="utf-8")) == [
            {"type": "directory", "path": "src"},
            {"type": "file", "path": "src/main.d"},
            {"type": "file", "path": "journal.json"},
        ]

    def test_load_restores_order(self, tmp_path: Path) -> None:
        target = tmp_path / "journal.json"
        target.write_text(json.dumps([
            {"type": "file", "path": "a.txt"},
            {"type": "directory", "path": "lib"},
            {"type": "file", "path": "lib/b.txt"},
        ]), encoding="utf-8")
        journal = Journal.load(target)
        assert [e.type for e in journal] == [
            EntryType.REGULAR_FILE, EntryType.DIRECTORY, EntryType.REGULAR_FILE,
        ]
        assert [e.path for e in journal.files()] == [PurePosixPath("a.txt"), PurePosixPath("lib/b.txt")]
        assert [e.path for e in journal.directories()] == [PurePosixPath("lib")]


class TestJournalValidation:
    @pytest.mark.parametrize("content", [
        "{not json",
        json.dumps({"type": "file", "path": "a"}),
        json.dumps(["a.txt"]),
        json.dumps([{"type": "symlink", "path": "a"}]),
        json.dumps([{"type": "file", "path": "../outside"}]),
        json.dumps([{"type": "file", "path": "/etc/passwd"}]),
        json.dumps([{"type": "directory", "path": ""}]),
    ])
    def test_rejects_corrupt_journal(self, tmp_path: Path, content: str) -> None:
        target = tmp_path / "journal.json"
        target.write_text(content, encoding="utf-8")
        with pytest.raises(JournalError):
            Journal.load(target)
