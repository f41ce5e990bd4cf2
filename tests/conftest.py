"""测试共享 fixture"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tests.helpers import FakeExecutor, FakeFetcher


@pytest.fixture()
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture(autouse=True)
def _isolate_globals() -> Iterator[None]:
    """每个用例结束后恢复全局配置 / 容器 / 执行器 / 日志"""
    import depcache.core.config as cfgmod
    from depcache.services.container import reset_container
    from depcache.utils import shell

    root = logging.getLogger()
    saved_executor = shell.get_executor()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    shell.set_executor(saved_executor)
    cfgmod._current = None
    reset_container()
    for h in root.handlers[:]:
        # setup_logging 添加的 stderr handler；pytest 自身的 handler 是子类，保留
        if h not in saved_handlers and type(h) is logging.StreamHandler:
            root.removeHandler(h)
    root.setLevel(saved_level)
