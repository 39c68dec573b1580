"""Gunicorn 生产配置（包管理 Web API）

用法:
  PKGMAN_CONFIG=/etc/pkgman/config.yml \
      gunicorn --config deploy/gunicorn.conf.py pkgman.web.app:app

注册表由每个 worker 进程各自持有，安装 / 卸载不会跨进程同步，
因此只使用单 worker，并发由线程承担。
"""

import os

# ---------- 网络 ----------
bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8888")

# ---------- 并发 ----------
workers = 1
threads = int(os.getenv("GUNICORN_THREADS", "4"))
worker_class = "gthread"
timeout = 300

# ---------- 日志 ----------
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")


def post_worker_init(worker):  # noqa: ARG001
    """worker 启动后按配置文件初始化日志与配置"""
    from pkgman.core.config import DEFAULT_CONFIG_PATH, init_config
    from pkgman.utils.logger import setup_logging

    cfg = init_config(os.getenv("PKGMAN_CONFIG", DEFAULT_CONFIG_PATH))
    setup_logging(
        level=os.getenv("PKGMAN_LOG_LEVEL", cfg.log_level),
        json_output=cfg.log_json or os.getenv("PKGMAN_LOG_JSON") == "1",
    )
