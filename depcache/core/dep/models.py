"""依赖包数据模型

数据类:
- PackageRequirement: 调用方声明的依赖（只有包名，版本由解析器决定）
- PackageInfo: 已解析的 (name, version)，缓存键
- ResolvedSet: 一次解析得到的完整传递闭包
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from depcache.core.exceptions import ValidationError

# 包名与版本号最终会拼进文件名和 URL，构造时即拒绝非法字符
_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
_VERSION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.+\-_]*$")


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not _NAME_RE.fullmatch(name):
        raise ValidationError(f"非法包名: {name!r}")


@dataclass(frozen=True)
class PackageRequirement:
    """依赖声明，解析时统一按 any 约束处理"""

    name: str

    def __post_init__(self) -> None:
        _check_name(self.name)


@dataclass(frozen=True)
class PackageInfo:
    """单个已解析包，相等性与哈希基于 (name, version)"""

    name: str
    version: str

    def __post_init__(self) -> None:
        _check_name(self.name)
        if not isinstance(self.version, str) or not _VERSION_RE.fullmatch(self.version):
            raise ValidationError(f"包 '{self.name}' 版本号非法: {self.version!r}")

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.version)

    @property
    def dir_name(self) -> str:
        """缓存目录名 / 归档文件名主干，如 collection-1.1.0"""
        return f"{self.name}-{self.version}"

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class ResolvedSet:
    """解析结果，顺序即锁文件中的出现顺序"""

    packages: tuple[PackageInfo, ...] = ()

    def __iter__(self) -> Iterator[PackageInfo]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def names(self) -> list[str]:
        return [p.name for p in self.packages]

    def get(self, name: str) -> PackageInfo | None:
        for p in self.packages:
            if p.name == name:
                return p
        return None

    def to_dict(self) -> dict[str, str]:
        """{name: version}，供 CLI / Web 输出"""
        return {p.name: p.version for p in self.packages}

    def __str__(self) -> str:
        return ", ".join(str(p) for p in self.packages)
