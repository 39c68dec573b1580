"""统一异常体系

所有致命的业务异常继承 PkgManError，每个子类通过 code 标识错误类别。
Web 层据此映射 HTTP 状态码，CLI 层据此输出 "[code] message" 形式的提示。

可恢复的问题（扫描时的损坏条目、卸载时已缺失的文件等）不抛异常，
而是以 Issue 记录返回给调用方，见 core/pkg/models.py。
"""

from __future__ import annotations

from typing import Any


class PkgManError(Exception):
    """包管理基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(PkgManError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class AlreadyInstalledError(PkgManError):
    """安装目标目录已存在"""

    code = "ALREADY_INSTALLED"


class ArchiveLayoutError(PkgManError):
    """归档无法读取，或无法确定需要剥离的公共前缀"""

    code = "ARCHIVE_LAYOUT_UNRESOLVABLE"


class NoJournalFoundError(PkgManError):
    """卸载时包根目录下没有 journal.json"""

    code = "NO_JOURNAL_FOUND"


class JournalError(PkgManError):
    """journal.json 存在但内容无效"""

    code = "CORRUPT_JOURNAL"


class AlienFilesError(PkgManError):
    """卸载完成后包根目录仍不为空"""

    code = "ALIEN_FILES_REMAINING"

    def __init__(self, message: str, issues: list[Any] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class ConsistencyError(PkgManError):
    """调用方使用错误（注册表对象不一致、卸载 Local 包等），不可恢复"""

    code = "CONSISTENCY_VIOLATION"


class DescriptorError(PkgManError):
    """描述文件缺失、无法解析，或缺少 name / version"""

    code = "CORRUPT_PACKAGE_ENTRY"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []
