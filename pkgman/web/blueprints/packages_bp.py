"""包管理 API Blueprint"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, jsonify, request
from werkzeug.utils import secure_filename

from pkgman.core.pkg.models import StorageTier
from pkgman.web.responses import bad_request, not_found, ok

logger = logging.getLogger(__name__)

packages_bp = Blueprint("packages", __name__, url_prefix="/api/packages")


def _pm():  # type: ignore[no-untyped-def]
    from pkgman.services.container import get_container
    return get_container().packages


def _parse_tier(value: str | None, default: StorageTier) -> StorageTier:
    if not value:
        return default
    return StorageTier.parse(value)


@packages_bp.route("", methods=["GET"])
def list_all() -> Response:
    return jsonify(packages=_pm().list_packages())


@packages_bp.route("/<name>", methods=["GET"])
def resolve(name: str) -> tuple[Response, int] | Response:
    version = request.args.get("version")
    constraint = request.args.get("constraint")
    if version and constraint:
        return bad_request("version 与 constraint 只能指定一个")
    try:
        if version:
            pkg = _pm().get_package(name, version)
        else:
            pkg = _pm().get_best_package(name, constraint or "*")
    except ValueError as e:
        return bad_request(str(e))
    if pkg is None:
        return not_found(f"包 {name} ")
    return jsonify(package=pkg.to_dict())


@packages_bp.route("/refresh", methods=["POST"])
def refresh() -> Response:
    result = _pm().refresh()
    return jsonify(
        count=len(result.registry),
        issues=[i.to_dict() for i in result.issues],
    )


@packages_bp.route("/install", methods=["POST"])
def install() -> tuple[Response, int] | Response:
    file = request.files.get("file")
    if not file or not file.filename or not secure_filename(file.filename):
        return bad_request("需要上传归档文件 file")
    try:
        tier = _parse_tier(request.form.get("tier"), StorageTier.USER)
    except ValueError as e:
        return bad_request(str(e))

    data = file.read()
    pm = _pm()
    info = pm.describe_archive(data)
    for key in ("name", "version"):
        if request.form.get(key):
            info[key] = request.form[key]
    if not info.get("name") or not info.get("version"):
        return bad_request("无法确定包名或版本，需要提供 name 和 version")

    pkg = pm.install(data, info, tier)
    logger.info("已通过 API 安装 %s@%s (%s)", pkg.name, pkg.version, tier.value)
    return ok({"message": f"已安装 {pkg.name}@{pkg.version}", "package": pkg.to_dict()}, 201)


@packages_bp.route("/<name>/<version>", methods=["DELETE"])
def uninstall(name: str, version: str) -> tuple[Response, int] | Response:
    try:
        tier = _parse_tier(request.args.get("tier"), StorageTier.USER)
        pkg = _pm().find(name, version, tier)
    except ValueError as e:
        return bad_request(str(e))
    if pkg is None:
        return not_found(f"{tier.value} 层级中的 {name}@{version} ")
    report = _pm().uninstall(pkg)
    return jsonify(
        message=f"已卸载 {name}@{version}",
        removed_files=report.removed_files,
        removed_dirs=report.removed_dirs,
        issues=[i.to_dict() for i in report.issues],
    )
