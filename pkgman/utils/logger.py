"""pkgman 日志配置

两种输出：人类可读文本（默认）和单行 JSON（log_json: true 或 PKGMAN_LOG_JSON=1）。
扫描、安装、卸载的日志通过 extra={"package": ..., "path": ..., "code": ...}
携带上下文，JSON 输出中这些键作为独立字段出现，便于按包或错误码过滤。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

# 通过 extra= 传入、在 JSON 中单独输出的字段
CONTEXT_FIELDS = ("package", "path", "code")

TEXT_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """每条记录输出为一行 JSON

    固定字段: timestamp / level / logger / message / module / function / line，
    另有 CONTEXT_FIELDS 中出现的上下文字段和异常堆栈 (exception)。
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, object] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        entry.update(
            (key, str(getattr(record, key)))
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """把根日志器重置为单个 stderr handler

    未知的级别名按 INFO 处理。CLI 每次调用都会执行，重复调用不会叠加 handler。
    """
    reset_logging()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.addHandler(handler)


def reset_logging() -> None:
    """移除并关闭根日志器上的全部 handler"""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
