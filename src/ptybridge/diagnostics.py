"""Diagnostic channel shared by the resolver, loader and session adapters.

Debug lines are opt-in through a single process-wide flag (``PTYBRIDGE_DEBUG``);
error lines are always emitted.

The ``ptybridge`` logger has no handler of its own. Until the application
configures logging, Python's last-resort handler shows error lines only, so
enabling the flag alone prints nothing. Callers wanting debug output must also
call e.g. ``logging.basicConfig(level=logging.DEBUG)``, as the CLI does in
``setup_logging``.
"""

from __future__ import annotations

import logging
from typing import Any

from ptybridge.config import PtyBridgeConfig

logger = logging.getLogger("ptybridge")

_PREFIX = "[PTY] "
_debug_enabled: bool | None = None


def debug_enabled() -> bool:
    """Whether debug diagnostics are on. Read once from configuration."""
    global _debug_enabled
    if _debug_enabled is None:
        _debug_enabled = PtyBridgeConfig.load().debug
    return _debug_enabled


def set_debug(enabled: bool | None) -> None:
    """Override the debug flag. ``None`` re-reads it from configuration."""
    global _debug_enabled
    _debug_enabled = enabled


def log_debug(message: str, *args: Any) -> None:
    if debug_enabled():
        logger.debug(_PREFIX + message, *args)


def log_error(message: str, *args: Any) -> None:
    logger.error(_PREFIX + message, *args)
