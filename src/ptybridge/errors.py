"""ptybridge exception hierarchy."""

from __future__ import annotations

import enum


class SessionErrorKind(enum.Enum):
    """Closed set of failure kinds raised by resolution and spawn paths."""

    NO_NATIVE_CAPABILITY = "NATIVE_NOT_FOUND"  # Expected; caller should fall back
    INVALID_CAPABILITY_EXPORT = "NATIVE_INVALID_EXPORT"
    SPAWN_FAILED = "SPAWN_FAILED"
    RESIZE_FAILED = "RESIZE_FAILED"  # Native path only


class PtyBridgeError(Exception):
    """Base exception for all ptybridge errors."""


class SessionError(PtyBridgeError):
    """Raised when a session cannot be resolved, spawned or resized."""

    def __init__(self, message: str, kind: SessionErrorKind) -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def message(self) -> str:
        return str(self)

    def __repr__(self) -> str:
        return f"SessionError({self.message!r}, kind={self.kind.name})"
