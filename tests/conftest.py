"""Shared fixtures for ptybridge tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from ptybridge.diagnostics import set_debug


@pytest.fixture
def debug_logs(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """Enable the debug channel and capture everything it emits."""
    set_debug(True)
    caplog.set_level(logging.DEBUG, logger="ptybridge")
    yield caplog
    set_debug(None)
