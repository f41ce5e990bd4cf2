"""命令行接口测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from depcache.cli import main
from depcache.utils.shell import set_executor
from tests.helpers import FakeExecutor, package_archive


class _FakeResponse:
    status = 200

    def __init__(self, body: bytes) -> None:
        self.body = body

    def read(self) -> bytes:
        return self.body

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *exc) -> None:
        return None


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    p = tmp_path / "depcache.yml"
    p.write_text(yaml.dump({
        "cache_dir": str(tmp_path / "cache"),
        "registry_url": "https://archive.example.com/packages",
    }))
    return p


@pytest.fixture()
def urls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    seen: list[str] = []

    def fake_urlopen(url, timeout=None):
        seen.append(url)
        return _FakeResponse(package_archive())

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    return seen


def _invoke(config_file: Path, *args: str):
    # 压低日志级别，保证 stdout 只含命令输出
    return CliRunner().invoke(
        main, ["--config", str(config_file), *args],
        env={"DEPCACHE_LOG_LEVEL": "WARNING"},
    )


class TestCli:
    def test_resolve(self, config_file: Path) -> None:
        set_executor(FakeExecutor())
        result = _invoke(config_file, "resolve", "collection")
        assert result.exit_code == 0, result.output
        assert "collection" in result.stdout
        assert "0.11.3" in result.stdout

    def test_resolve_failure_friendly_message(self, config_file: Path) -> None:
        set_executor(FakeExecutor(returncode=1, stderr="Could not find package nope"))
        result = _invoke(config_file, "resolve", "nope")
        assert result.exit_code == 1
        assert "[RESOLUTION_FAILED]" in result.output
        assert "Could not find package nope" in result.output

    def test_lib_dir_downloads_once(self, config_file: Path, tmp_path: Path, urls) -> None:
        first = _invoke(config_file, "lib-dir", "collection", "1.1.0")
        assert first.exit_code == 0, first.output
        assert first.stdout.strip() == str(tmp_path / "cache" / "collection-1.1.0" / "lib")
        second = _invoke(config_file, "lib-dir", "collection", "1.1.0")
        assert second.stdout == first.stdout
        assert urls == ["https://archive.example.com/packages/collection-1.1.0.tar.gz"]

    def test_prepare_cached_flush(self, config_file: Path, urls) -> None:
        set_executor(FakeExecutor())
        assert _invoke(config_file, "prepare", "collection").exit_code == 0
        assert len(urls) == 2

        listed = _invoke(config_file, "cached")
        assert "collection" in listed.stdout and "matcher" in listed.stdout

        flushed = _invoke(config_file, "flush", "--yes")
        assert flushed.exit_code == 0
        assert "缓存为空" in _invoke(config_file, "cached").stdout

    def test_flush_requires_confirmation(self, config_file: Path) -> None:
        result = CliRunner().invoke(main, ["--config", str(config_file), "flush"], input="n\n")
        assert result.exit_code == 1

    def test_tool_version(self, config_file: Path) -> None:
        set_executor(FakeExecutor(stdout="Pub 1.9.0\n"))
        result = _invoke(config_file, "tool-version")
        assert result.stdout.strip() == "Pub 1.9.0"

    def test_invalid_config(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("max_workers: 0\n")
        result = CliRunner().invoke(main, ["--config", str(bad), "cached"])
        assert result.exit_code == 1
        assert "[CONFIG_ERROR]" in result.output

    def test_list_resolver_command_in_config(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text(yaml.dump({
            "cache_dir": str(tmp_path / "cache"),
            "resolver_command": ["dart", "pub", "get"],
        }))
        executor = FakeExecutor()
        set_executor(executor)
        result = _invoke(p, "resolve", "collection")
        assert result.exit_code == 0, result.output
        assert executor.calls[0]["cmd"] == ["dart", "pub", "get"]

    def test_non_string_resolver_command_is_config_error(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("resolver_command: {pub: get}\n")
        result = _invoke(p, "cached")
        assert result.exit_code == 1
        assert "[CONFIG_ERROR]" in result.output
        assert "Traceback" not in result.output
