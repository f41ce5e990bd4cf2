"""锁文件解析

锁文件格式（pubspec.lock）:

    packages:
      collection:
        dependency: "direct main"
        description: collection
        source: hosted
        version: "1.1.0"
      matcher:
        ...

只提取包名（映射键）与 version，其余字段忽略，兼容新增字段。
version 必须是 YAML 字符串（pub 总会加引号）。
纯函数，无 IO。
"""

from __future__ import annotations

from typing import Any

import yaml

from depcache.core.dep.models import PackageInfo, ResolvedSet
from depcache.core.exceptions import MalformedLock, ValidationError


def parse_lock(lock_text: str) -> ResolvedSet:
    """解析锁文件文本为 ResolvedSet

    Raises:
        MalformedLock: YAML 无效、缺少 packages 映射、条目缺少 version 或包名/版本非法
    """
    try:
        root = yaml.safe_load(lock_text)
    except yaml.YAMLError as e:
        raise MalformedLock(f"锁文件不是有效的 YAML: {e}") from e

    if not isinstance(root, dict):
        raise MalformedLock("锁文件顶层必须是映射")

    packages = root.get("packages")
    if packages is None:
        raise MalformedLock("锁文件缺少 packages 段")
    if not isinstance(packages, dict):
        raise MalformedLock(
            f"锁文件 packages 段必须是映射，实际类型: {type(packages).__name__}"
        )

    return ResolvedSet(tuple(_parse_entry(name, entry) for name, entry in packages.items()))


def _parse_entry(name: Any, entry: Any) -> PackageInfo:
    if not isinstance(entry, dict):
        raise MalformedLock(f"锁文件条目 '{name}' 必须是映射")
    version = entry.get("version")
    if version is None:
        raise MalformedLock(f"锁文件条目 '{name}' 缺少 version")
    if not isinstance(version, str):
        # 未加引号的 1.10 会被 YAML 读成浮点数 1.1，无法还原
        raise MalformedLock(
            f"锁文件条目 '{name}' 的 version 必须是字符串，实际: {version!r}"
        )
    try:
        return PackageInfo(str(name), version)
    except ValidationError as e:
        raise MalformedLock(f"锁文件条目无效: {e}") from e
