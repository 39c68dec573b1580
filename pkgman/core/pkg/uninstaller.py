"""包卸载（文件系统部分）

按 journal.json 精确删除安装时创建的内容:
  1. 没有日志 → NoJournalFoundError，不做任何删除，也不去猜该删什么
  2. 删除日志中的全部文件；文件已不存在只记录警告并继续
  3. 目录按路径长度从长到短删除（子目录先于父目录），
     只删除存在、是目录且为空的；否则记录"外来文件"错误并跳过
  4. 最后包根目录仍不为空 → AlienFilesError，交给人工处理；否则删除根目录
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pkgman.core.exceptions import AlienFilesError, ConsistencyError, NoJournalFoundError
from pkgman.core.pkg.journal import Journal
from pkgman.core.pkg.models import Issue, IssueCode, Package, StorageTier
from pkgman.utils.fs import is_empty_dir

logger = logging.getLogger(__name__)


@dataclass
class UninstallReport:
    package: Package
    removed_files: int = 0
    removed_dirs: int = 0
    issues: list[Issue] = field(default_factory=list)


class PackageUninstaller:
    """依据安装日志删除包文件"""

    def uninstall(self, pkg: Package) -> UninstallReport:
        if pkg.tier is StorageTier.LOCAL:
            raise ConsistencyError(f"本地包不由安装流程管理，无法卸载: {pkg}")

        journal_file = pkg.journal_path
        if not journal_file.is_file():
            raise NoJournalFoundError(
                f"卸载失败: 未找到 '{pkg.name}' 的安装日志 ({journal_file})，需要手动清理。"
            )
        journal = Journal.load(journal_file)
        report = UninstallReport(package=pkg)

        logger.debug("删除文件: %s", pkg.root)
        for entry in journal.files():
            self._remove_file(pkg.root / entry.path, report)

        logger.debug("删除目录: %s", pkg.root)
        dirs = {pkg.root / entry.path for entry in journal.directories()}
        for path in sorted(dirs, key=lambda p: len(str(p)), reverse=True):
            if path.is_symlink() or not is_empty_dir(path):
                self._issue(
                    report, path,
                    f"发现外来文件，目录不为空或不是目录: '{path}'",
                    level=logging.ERROR,
                )
                continue
            path.rmdir()
            report.removed_dirs += 1

        if not is_empty_dir(pkg.root):
            raise AlienFilesError(
                f"'{pkg.root}' 中存在外来文件，需要手动删除。", report.issues,
            )
        pkg.root.rmdir()
        logger.info("已卸载: '%s'", pkg.name, extra={"package": pkg.name, "path": str(pkg.root)})
        return report

    def _remove_file(self, path: Path, report: UninstallReport) -> None:
        if not path.exists() and not path.is_symlink():
            self._issue(report, path, f"之前安装的文件已不存在: '{path}'")
            return
        if path.is_dir() and not path.is_symlink():
            self._issue(report, path, f"日志中的文件现在是目录，已跳过: '{path}'")
            return
        try:
            path.unlink()
        except OSError as e:
            self._issue(report, path, f"删除文件失败: '{path}' ({e})")
            return
        report.removed_files += 1

    @staticmethod
    def _issue(report: UninstallReport, path: Path, message: str, *, level: int = logging.WARNING) -> None:
        logger.log(level, "%s", message, extra={"path": str(path), "code": IssueCode.PER_ENTRY_IO.value})
        report.issues.append(Issue(IssueCode.PER_ENTRY_IO, str(path), message))
