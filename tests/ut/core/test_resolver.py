"""依赖解析编排测试 - 假执行器替代 pub get"""

from __future__ import annotations

import pytest

from depcache.core.dep.models import PackageInfo, PackageRequirement
from depcache.core.dep.resolver import CommandLockResolver, ResolutionOrchestrator
from depcache.core.exceptions import (
    MalformedLock,
    ResolutionFailed,
    ResolutionTimeout,
    ValidationError,
)
from tests.helpers import SAMPLE_LOCK, FakeExecutor, timeout_error


def _orchestrator(executor: FakeExecutor, **kwargs) -> ResolutionOrchestrator:
    return ResolutionOrchestrator(
        CommandLockResolver("pub get", executor=executor, timeout=20),
        executor=executor, **kwargs,
    )


class TestResolve:
    def test_resolves_transitive_closure(self, fake_executor: FakeExecutor) -> None:
        rs = _orchestrator(fake_executor).resolve({PackageRequirement("collection")})
        assert list(rs) == [
            PackageInfo("collection", "1.1.0"),
            PackageInfo("matcher", "0.11.3"),
        ]
        assert set(rs.names()) >= {"collection"}
        assert len(set(rs.names())) == len(rs)

    def test_manifest_declares_any(self, fake_executor: FakeExecutor) -> None:
        _orchestrator(fake_executor).resolve(["collection", "matcher", "collection"])
        assert fake_executor.manifest == {
            "name": "temp",
            "dependencies": {"collection": "any", "matcher": "any"},
        }

    def test_sdk_constraint_written(self, fake_executor: FakeExecutor) -> None:
        _orchestrator(fake_executor, sdk_constraint=">=2.12.0 <4.0.0").resolve(["collection"])
        assert fake_executor.manifest["environment"] == {"sdk": ">=2.12.0 <4.0.0"}

    def test_single_string_requirement(self, fake_executor: FakeExecutor) -> None:
        rs = _orchestrator(fake_executor).resolve("collection")
        assert rs.get("collection") is not None

    def test_runs_in_workspace_with_timeout(self, fake_executor: FakeExecutor) -> None:
        _orchestrator(fake_executor).resolve(["collection"])
        call = fake_executor.calls[0]
        assert call["cmd"] == "pub get"
        assert call["timeout"] == 20
        assert fake_executor.workspace.name.startswith("temp_package")

    def test_workspace_deleted_on_success(self, fake_executor: FakeExecutor) -> None:
        _orchestrator(fake_executor).resolve(["collection"])
        assert not fake_executor.workspace.exists()

    def test_empty_requirements_rejected(self, fake_executor: FakeExecutor) -> None:
        with pytest.raises(ValidationError):
            _orchestrator(fake_executor).resolve([])
        assert fake_executor.calls == []


class TestResolveFailures:
    def test_nonzero_exit_uses_stderr(self) -> None:
        ex = FakeExecutor(returncode=65, stderr="Because temp depends on nope any...\n")
        with pytest.raises(ResolutionFailed, match="Because temp depends on nope"):
            _orchestrator(ex).resolve(["nope"])
        assert not ex.workspace.exists()

    def test_nonzero_exit_without_stderr(self) -> None:
        ex = FakeExecutor(returncode=1)
        with pytest.raises(ResolutionFailed, match="failed to get packages: 1"):
            _orchestrator(ex).resolve(["collection"])

    def test_timeout_is_distinct(self) -> None:
        ex = FakeExecutor(raise_exc=timeout_error())
        with pytest.raises(ResolutionTimeout) as info:
            _orchestrator(ex).resolve(["collection"])
        assert info.value.code == "RESOLUTION_TIMEOUT"
        assert info.value.timeout == 20
        assert not ex.workspace.exists()

    def test_missing_executable(self) -> None:
        ex = FakeExecutor(raise_exc=FileNotFoundError("pub"))
        with pytest.raises(ResolutionFailed, match="找不到解析器"):
            _orchestrator(ex).resolve(["collection"])

    def test_no_lock_file(self) -> None:
        ex = FakeExecutor(lock_text=None)
        with pytest.raises(ResolutionFailed, match="未生成锁文件"):
            _orchestrator(ex).resolve(["collection"])
        assert not ex.workspace.exists()

    def test_malformed_lock(self) -> None:
        ex = FakeExecutor(lock_text="not: [valid")
        with pytest.raises(MalformedLock):
            _orchestrator(ex).resolve(["collection"])
        assert not ex.workspace.exists()

    def test_requested_package_missing_from_lock(self) -> None:
        ex = FakeExecutor(lock_text=SAMPLE_LOCK)
        with pytest.raises(ResolutionFailed, match="path"):
            _orchestrator(ex).resolve(["collection", "path"])


class TestToolVersion:
    def test_returns_trimmed_stdout(self) -> None:
        ex = FakeExecutor(stdout="Pub 1.9.0\n")
        orch = ResolutionOrchestrator(
            CommandLockResolver(executor=ex), version_command="pub --version", executor=ex,
        )
        assert orch.tool_version() == "Pub 1.9.0"
        assert ex.calls[0]["cmd"] == "pub --version"

    def test_failure(self) -> None:
        ex = FakeExecutor(returncode=127, stderr="not found")
        orch = ResolutionOrchestrator(CommandLockResolver(executor=ex), executor=ex)
        with pytest.raises(ResolutionFailed, match="rc=127"):
            orch.tool_version()
