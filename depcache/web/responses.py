"""Web 层统一响应辅助函数"""

from __future__ import annotations

from flask import Response, jsonify

from depcache.core.exceptions import DepCacheError

# 错误码 -> HTTP 状态码，未列出的按 500 处理
STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "CONFIG_ERROR": 500,
    "RESOLUTION_FAILED": 422,
    "MALFORMED_LOCK": 502,
    "RESOLUTION_TIMEOUT": 504,
    "FETCH_FAILED": 502,
    "NETWORK_ERROR": 502,
    "CORRUPT_ARCHIVE": 502,
    "UNSAFE_ENTRY_PATH": 502,
    "CACHE_IO_ERROR": 500,
}


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message, code="VALIDATION_ERROR"), 400


def error_response(exc: DepCacheError) -> tuple[Response, int]:
    """业务异常 -> JSON 错误响应"""
    status = STATUS_BY_CODE.get(exc.code, 500)
    return jsonify(error=str(exc), code=exc.code), status
