"""Tests for ptybridge.provider.loader (import, shape check, outcomes)."""

from __future__ import annotations

import importlib
import logging
import sys
import textwrap
import uuid
from pathlib import Path

import pytest

from ptybridge.provider.loader import (
    LoadStatus,
    NativeCapability,
    load_provider,
    resolve_export,
)
from ptybridge.session.base import SessionConfig


@pytest.fixture
def module_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.syspath_prepend(str(tmp_path))
    return tmp_path


def write_module(directory: Path, source: str) -> str:
    """Write a uniquely named module and return its import name."""
    name = f"ptybridge_fake_{uuid.uuid4().hex[:12]}"
    (directory / f"{name}.py").write_text(textwrap.dedent(source))
    importlib.invalidate_caches()
    return name


# ---------------------------------------------------------------------------
# load_provider outcomes
# ---------------------------------------------------------------------------


class TestLoadProvider:
    async def test_absent_module(self, debug_logs) -> None:
        result = await load_provider("ptybridge_definitely_not_installed", "missing")
        assert result.status is LoadStatus.ABSENT
        assert not result.available
        assert result.capability is None
        assert "Native module not found" in debug_logs.text
        assert not [r for r in debug_logs.records if r.levelno >= logging.ERROR]

    async def test_import_raising_is_failed(self, module_dir: Path, debug_logs) -> None:
        name = write_module(module_dir, "raise RuntimeError('native build is broken')\n")
        result = await load_provider(name, "broken")
        assert result.status is LoadStatus.FAILED
        assert isinstance(result.error, RuntimeError)
        errors = [r for r in debug_logs.records if r.levelno == logging.ERROR]
        assert errors and "Unexpected error loading native module" in errors[0].getMessage()

    async def test_import_error_other_than_not_found_is_failed(self, module_dir: Path) -> None:
        name = write_module(module_dir, "from os import no_such_symbol\n")
        result = await load_provider(name, "broken")
        assert result.status is LoadStatus.FAILED

    async def test_missing_dependency_is_absent(self, module_dir: Path) -> None:
        name = write_module(module_dir, "import ptybridge_definitely_not_installed\n")
        result = await load_provider(name, "needs-dep")
        assert result.status is LoadStatus.ABSENT

    async def test_invalid_export(self, module_dir: Path, debug_logs) -> None:
        name = write_module(module_dir, "VERSION = '1.0'\n")
        result = await load_provider(name, "shapeless")
        assert result.status is LoadStatus.INVALID_EXPORT
        assert not result.available
        assert "invalid export" in debug_logs.text
        assert not [r for r in debug_logs.records if r.levelno >= logging.ERROR]

    async def test_non_callable_spawn_is_invalid(self, module_dir: Path) -> None:
        name = write_module(module_dir, "spawn = 'not a function'\n")
        result = await load_provider(name, "shapeless")
        assert result.status is LoadStatus.INVALID_EXPORT

    async def test_module_level_spawn(self, module_dir: Path, debug_logs) -> None:
        name = write_module(
            module_dir,
            """
            def spawn(command, args, config):
                return ("session", command, args)
            """,
        )
        result = await load_provider(name, "plain")
        assert result.status is LoadStatus.LOADED
        assert result.available
        assert result.capability is not None
        assert result.capability.name == "plain"
        assert result.capability.export is sys.modules[name]
        assert "Native module loaded" in debug_logs.text

    async def test_default_export_slot(self, module_dir: Path) -> None:
        name = write_module(
            module_dir,
            """
            class _Provider:
                def spawn(self, command, args, config):
                    return "from provider"

            provider = _Provider()
            """,
        )
        result = await load_provider(name, "slotted")
        assert result.status is LoadStatus.LOADED
        assert result.capability is not None
        assert result.capability.export is sys.modules[name].provider

    async def test_absent_and_invalid_are_distinguishable(
        self, module_dir: Path, debug_logs
    ) -> None:
        invalid = write_module(module_dir, "x = 1\n")
        absent_result = await load_provider("ptybridge_definitely_not_installed", "a")
        invalid_result = await load_provider(invalid, "b")
        assert absent_result.status is not invalid_result.status
        messages = [r.getMessage() for r in debug_logs.records]
        assert any("not found" in m for m in messages)
        assert any("invalid export" in m for m in messages)

    @pytest.mark.skipif(sys.platform == "win32", reason="needs termios")
    async def test_bundled_posix_provider_loads(self) -> None:
        result = await load_provider("ptybridge.native.posix", "posix")
        assert result.status is LoadStatus.LOADED


# ---------------------------------------------------------------------------
# NativeCapability
# ---------------------------------------------------------------------------


class _SyncProvider:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def spawn(self, command, args, config):
        self.calls.append((command, args, config))
        return "sync-session"


class _AsyncProvider:
    async def spawn(self, command, args, config):
        return f"async-session:{command}:{','.join(args)}"


class TestNativeCapability:
    async def test_sync_spawn(self) -> None:
        provider = _SyncProvider()
        capability = NativeCapability(name="sync", export=provider)
        config = SessionConfig(columns=100)
        session = await capability.spawn("bash", ("-l",), config)
        assert session == "sync-session"
        assert provider.calls == [("bash", ["-l"], config)]

    async def test_async_spawn(self) -> None:
        capability = NativeCapability(name="async", export=_AsyncProvider())
        session = await capability.spawn("sh", ["-c", "true"], SessionConfig())
        assert session == "async-session:sh:-c,true"

    def test_resolve_export_prefers_provider_attr(self) -> None:
        class Module:
            provider = _SyncProvider()

        assert resolve_export(Module) is Module.provider

    def test_resolve_export_falls_back_to_module(self) -> None:
        class Module:
            pass

        assert resolve_export(Module) is Module
