"""轻量级 Web API（基于 Flask）

提供：包列表、版本解析、重新扫描、上传安装、按日志卸载。

启动方式: pkgman dashboard --port 8888
生产部署: gunicorn --config deploy/gunicorn.conf.py pkgman.web.app:app
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from pkgman.core.exceptions import PkgManError
from pkgman.web.blueprints.packages_bp import packages_bp
from pkgman.web.responses import pkgman_error

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 100 * 1024 * 1024  # 100 MB

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(PkgManError)
def handle_pkgman_error(exc):
    logger.warning("请求失败 [%s]: %s", exc.code, exc, extra={"code": exc.code})
    return pkgman_error(exc)


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/api/health")
def health():
    from pkgman import __version__
    return jsonify(status="ok", version=__version__)


app.register_blueprint(packages_bp)


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("pkgman 看板已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
