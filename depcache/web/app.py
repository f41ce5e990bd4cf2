"""包服务 HTTP API（基于 Flask）

提供：依赖解析、包 lib 目录获取、批量准备、缓存查询与清空、解析器版本。

启动方式: depcache serve --port 8890
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from depcache.core.exceptions import DepCacheError
from depcache.web.packages_bp import packages_bp
from depcache.web.responses import error_response

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.register_blueprint(packages_bp)


# =========================================================================
# 全局 JSON 错误处理
# =========================================================================


@app.errorhandler(DepCacheError)
def handle_depcache_error(exc: DepCacheError):  # type: ignore[no-untyped-def]
    """业务异常按错误码映射 HTTP 状态"""
    logger.warning("请求失败 [%s]: %s", exc.code, exc)
    return error_response(exc)


@app.errorhandler(HTTPException)
def handle_http_exception(exc):  # type: ignore[no-untyped-def]
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # type: ignore[no-untyped-def]  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/api/health")
def health():  # type: ignore[no-untyped-def]
    return jsonify(status="ok")


def run_server(host: str = "127.0.0.1", port: int = 8890) -> None:
    """启动开发服务器（生产环境请使用 gunicorn）"""
    logger.info("包服务启动: http://%s:%d", host, port)
    app.run(host=host, port=port, threaded=True)
