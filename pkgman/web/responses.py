"""Web 层统一响应辅助函数

Blueprint 和 app.py 共用的 jsonify(error=...) 模式，业务异常统一带上 code。
"""

from __future__ import annotations

from flask import Response, jsonify

from pkgman.core.exceptions import PkgManError

# 业务异常 code → HTTP 状态码，未列出的按 500 处理
ERROR_STATUS: dict[str, int] = {
    "ALREADY_INSTALLED": 409,
    "NO_JOURNAL_FOUND": 409,
    "ALIEN_FILES_REMAINING": 409,
    "CORRUPT_JOURNAL": 409,
    "ARCHIVE_LAYOUT_UNRESOLVABLE": 400,
    "CORRUPT_PACKAGE_ENTRY": 400,
}


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def not_found(resource: str) -> tuple[Response, int]:
    """资源不存在"""
    return jsonify(error=f"{resource}不存在"), 404


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message), 400


def pkgman_error(exc: PkgManError) -> tuple[Response, int]:
    """业务异常 → {"error", "code"}"""
    return jsonify(error=str(exc), code=exc.code), ERROR_STATUS.get(exc.code, 500)
