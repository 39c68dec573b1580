"""安装日志

记录一次安装创建的每个目录和文件（相对包根目录），按创建顺序追加，
持久化为包根目录下的 journal.json:

    [
      {"type": "directory", "path": "src"},
      {"type": "file", "path": "src/main.py"},
      ...
      {"type": "file", "path": "journal.json"}
    ]

卸载完全依据这份日志删除文件，注册表本身不足以安全卸载。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Iterator

from pkgman.core.exceptions import JournalError
from pkgman.utils.fs import safe_relative
from pkgman.utils.json_io import load_json, save_json


class EntryType(str, Enum):
    DIRECTORY = "directory"
    REGULAR_FILE = "file"


@dataclass(frozen=True)
class JournalEntry:
    type: EntryType
    path: PurePosixPath

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "path": self.path.as_posix()}


@dataclass
class Journal:
    """只追加的安装日志"""

    entries: list[JournalEntry] = field(default_factory=list)

    def add(self, entry: JournalEntry) -> None:
        self.entries.append(entry)

    def add_directory(self, path: PurePosixPath | str) -> None:
        self.add(JournalEntry(EntryType.DIRECTORY, PurePosixPath(path)))

    def add_file(self, path: PurePosixPath | str) -> None:
        self.add(JournalEntry(EntryType.REGULAR_FILE, PurePosixPath(path)))

    def files(self) -> Iterator[JournalEntry]:
        return (e for e in self.entries if e.type is EntryType.REGULAR_FILE)

    def directories(self) -> Iterator[JournalEntry]:
        return (e for e in self.entries if e.type is EntryType.DIRECTORY)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[JournalEntry]:
        return iter(self.entries)

    def save(self, path: Path) -> None:
        save_json(path, [e.to_dict() for e in self.entries])

    @classmethod
    def load(cls, path: Path) -> Journal:
        """从 journal.json 重建日志

        条目类型未知、路径为绝对路径或含 ".." 时整体拒绝，
        避免按被篡改的日志删除包目录以外的文件。
        """
        try:
            data = load_json(path)
        except (OSError, ValueError) as e:
            raise JournalError(f"安装日志无法读取: {path} ({e})，请手动清理。") from e
        if not isinstance(data, list):
            raise JournalError(f"安装日志格式错误（应为数组）: {path}，请手动清理。")

        journal = cls()
        for idx, item in enumerate(data):
            if not isinstance(item, dict):
                raise JournalError(f"安装日志第 {idx} 项不是对象: {path}")
            try:
                entry_type = EntryType(item.get("type"))
            except ValueError:
                raise JournalError(
                    f"安装日志第 {idx} 项类型未知: {item.get('type')!r} ({path})"
                ) from None
            rel = safe_relative(str(item.get("path", "")))
            if rel is None or not rel.parts:
                raise JournalError(
                    f"安装日志第 {idx} 项路径不安全: {item.get('path')!r} ({path})"
                )
            journal.add(JournalEntry(entry_type, rel))
        return journal
