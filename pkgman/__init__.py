"""pkgman - 构建工具的本地包管理核心"""

__version__ = "0.3.0"
