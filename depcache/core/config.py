"""集中配置管理

解析器命令、归档仓库地址、缓存目录、超时等统一从这里读取。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields

from depcache.core.exceptions import ConfigError
from depcache.utils.shell import split_command
from depcache.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://storage.googleapis.com/pub.dartlang.org/packages"


@dataclass
class Config:
    """全局配置"""

    # 缓存（为空时在系统临时目录下新建）
    cache_dir: str = ""
    lib_subdir: str = "lib"
    keep_archives: bool = False

    # 归档仓库
    registry_url: str = DEFAULT_REGISTRY_URL
    fetch_timeout: float = 60

    # 外部解析器
    # 字符串按 shell 规则拆分，也可直接写成列表
    resolver_command: str | list[str] = "pub get"
    version_command: str | list[str] = "pub --version"
    manifest_file: str = "pubspec.yaml"
    lock_file: str = "pubspec.lock"
    sdk_constraint: str = ""
    resolve_timeout: float = 20

    # 并发
    max_workers: int = 8

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """校验配置取值，无效时抛 ConfigError"""
        errors: list[str] = []
        if self.resolve_timeout <= 0:
            errors.append(f"resolve_timeout 必须为正数: {self.resolve_timeout}")
        if self.fetch_timeout <= 0:
            errors.append(f"fetch_timeout 必须为正数: {self.fetch_timeout}")
        if self.max_workers < 1:
            errors.append(f"max_workers 必须 >= 1: {self.max_workers}")
        for key in ("resolver_command", "version_command"):
            if not _valid_command(getattr(self, key)):
                errors.append(f"{key} 必须是非空字符串或字符串列表: {getattr(self, key)!r}")
        lib = self.lib_subdir
        if not isinstance(lib, str) or not lib.strip() or lib.startswith(("/", "..")):
            errors.append(f"lib_subdir 必须是相对路径: {self.lib_subdir!r}")
        if errors:
            raise ConfigError("; ".join(errors))

    @classmethod
    def from_file(cls, path: str = "configs/depcache.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in fields(cls)} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件字段类型错误 {path}: {e}") from e
        cfg.extra = extra
        if extra:
            logger.debug("未识别的配置项已放入 extra: %s", sorted(extra))
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


def _valid_command(cmd: object) -> bool:
    if isinstance(cmd, list):
        return bool(cmd) and all(isinstance(a, str) and a.strip() for a in cmd)
    if not isinstance(cmd, str):
        return False
    try:
        return bool(split_command(cmd))
    except ValueError:
        # 引号不配对
        return False


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/depcache.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
