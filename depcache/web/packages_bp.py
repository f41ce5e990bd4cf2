"""包解析 / 缓存 API Blueprint"""

from __future__ import annotations

from flask import Blueprint, Response, request

from depcache.web.responses import bad_request, ok

packages_bp = Blueprint("packages", __name__, url_prefix="/api")


def _pkg_svc():  # type: ignore[no-untyped-def]
    from depcache.services.container import get_container
    return get_container().packages


def _names_from_body() -> list[str] | None:
    body = request.get_json(silent=True)
    names = body.get("packages") if isinstance(body, dict) else None
    if not isinstance(names, list) or not names or not all(isinstance(n, str) for n in names):
        return None
    return names


@packages_bp.route("/packages/resolve", methods=["POST"])
def resolve() -> tuple[Response, int] | Response:
    names = _names_from_body()
    if names is None:
        return bad_request("需要提供非空的 packages 列表")
    resolved = _pkg_svc().resolve(names)
    return ok({"packages": [{"name": p.name, "version": p.version} for p in resolved]})


@packages_bp.route("/packages/<name>/<version>/lib", methods=["GET"])
def lib_dir(name: str, version: str) -> tuple[Response, int] | Response:
    path = _pkg_svc().library_dir(name, version)
    return ok({"name": name, "version": version, "path": str(path)})


@packages_bp.route("/packages/prepare", methods=["POST"])
def prepare() -> tuple[Response, int] | Response:
    names = _names_from_body()
    if names is None:
        return bad_request("需要提供非空的 packages 列表")
    dirs = _pkg_svc().prepare(names)
    return ok({"libraries": {name: str(path) for name, path in dirs.items()}})


@packages_bp.route("/packages/cached", methods=["GET"])
def cached() -> tuple[Response, int] | Response:
    packages = _pkg_svc().cached()
    return ok({"packages": [{"name": p.name, "version": p.version} for p in packages]})


@packages_bp.route("/cache/flush", methods=["POST"])
def flush() -> tuple[Response, int] | Response:
    _pkg_svc().flush()
    return ok({"message": "缓存已清空"})


@packages_bp.route("/tool-version", methods=["GET"])
def tool_version() -> tuple[Response, int] | Response:
    return ok({"version": _pkg_svc().tool_version()})
