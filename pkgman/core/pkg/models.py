"""包管理数据模型

- StorageTier: 四个存储层级
- Package: 已知包（构造后不可变）
- Issue: 非致命问题记录（扫描 / 卸载过程中跳过的条目）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pkgman.core.exceptions import DescriptorError
from pkgman.core.pkg.version import Version
from pkgman.utils.json_io import load_json

DESCRIPTOR_FILE = "package.json"
JOURNAL_FILE = "journal.json"
LOCAL_MANIFEST_FILE = "local-packages.json"


class StorageTier(str, Enum):
    """存储层级，声明顺序即查找优先级"""

    PROJECT = "project"
    LOCAL = "local"
    USER = "user"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: str) -> StorageTier:
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(t.value for t in cls)
            raise ValueError(f"未知的存储层级: '{value}'，可选: {choices}") from None


class IssueCode(str, Enum):
    """可恢复问题的类别"""

    PER_ENTRY_IO = "PER_ENTRY_IO_WARNING"
    CORRUPT_ENTRY = "CORRUPT_PACKAGE_ENTRY"
    MANIFEST_UNAVAILABLE = "MANIFEST_UNAVAILABLE"


@dataclass(frozen=True)
class Issue:
    """一次被跳过的条目：调用方按 code 分支，而不是靠捕获异常"""

    code: IssueCode
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "path": self.path, "message": self.message}


def validate_info(info: Any, source: str) -> tuple[str, Version]:
    """校验元数据至少包含字符串类型的 name 和合法的 version"""
    if not isinstance(info, dict):
        raise DescriptorError(f"包描述必须是 JSON 对象: {source}")
    name = info.get("name")
    raw_version = info.get("version")
    errors: list[str] = []
    if not isinstance(name, str) or not name:
        errors.append("缺少 name 字段")
    if not isinstance(raw_version, str) or not raw_version:
        errors.append("缺少 version 字段")
    if errors:
        raise DescriptorError(f"包描述无效: {source} ({'; '.join(errors)})", errors)
    try:
        version = Version.parse(raw_version)
    except ValueError as e:
        raise DescriptorError(f"包描述无效: {source} ({e})", [str(e)]) from e
    return name, version


def read_descriptor(root: Path) -> dict[str, Any]:
    """读取包根目录下的描述文件"""
    path = root / DESCRIPTOR_FILE
    try:
        data = load_json(path)
    except FileNotFoundError as e:
        raise DescriptorError(f"描述文件不存在: {path}") from e
    except (OSError, ValueError) as e:
        raise DescriptorError(f"描述文件无法解析: {path} ({e})") from e
    if not isinstance(data, dict):
        raise DescriptorError(f"包描述必须是 JSON 对象: {path}")
    return data


@dataclass(frozen=True, eq=False)
class Package:
    """一个已知的包

    相等性按对象身份判断：注册表的移除操作要求传入的正是登记的那个实例。
    """

    name: str
    version: Version
    tier: StorageTier
    root: Path
    info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, tier: StorageTier, root: Path) -> Package:
        """从磁盘上的描述文件构造"""
        info = read_descriptor(root)
        return cls.from_info(info, tier, root)

    @classmethod
    def from_info(cls, info: dict[str, Any], tier: StorageTier, root: Path) -> Package:
        """由已合并好的元数据构造（本地包清单使用）"""
        name, version = validate_info(info, str(root))
        return cls(name=name, version=version, tier=tier, root=Path(root), info=dict(info))

    @property
    def descriptor_path(self) -> Path:
        return self.root / DESCRIPTOR_FILE

    @property
    def journal_path(self) -> Path:
        return self.root / JOURNAL_FILE

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "version": str(self.version),
            "tier": self.tier.value,
            "path": str(self.root),
        }

    def __str__(self) -> str:
        return f"{self.name}@{self.version} [{self.tier.value}]"
