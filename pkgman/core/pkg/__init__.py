"""本地包管理模块

拆分说明:
- models.py: 存储层级 / Package / Issue
- version.py: 版本号与版本约束
- journal.py: 安装日志
- archive.py: 归档读取与前缀解析
- registry.py: 注册表与版本解析
- scanner.py: 文件系统扫描
- installer.py: 安装（文件系统部分）
- uninstaller.py: 卸载（文件系统部分）
"""

from pkgman.core.pkg.installer import InstallResult, PackageInstaller
from pkgman.core.pkg.journal import EntryType, Journal, JournalEntry
from pkgman.core.pkg.models import Issue, IssueCode, Package, StorageTier
from pkgman.core.pkg.registry import PackageRegistry
from pkgman.core.pkg.scanner import PackageScanner, ScanResult
from pkgman.core.pkg.uninstaller import PackageUninstaller, UninstallReport
from pkgman.core.pkg.version import Constraint, Version

__all__ = [
    "Constraint",
    "EntryType",
    "InstallResult",
    "Issue",
    "IssueCode",
    "Journal",
    "JournalEntry",
    "Package",
    "PackageInstaller",
    "PackageRegistry",
    "PackageScanner",
    "PackageUninstaller",
    "ScanResult",
    "StorageTier",
    "UninstallReport",
    "Version",
]
