"""Session contract and the child-process fallback adapter."""

from ptybridge.session.base import (
    DataListener,
    ExitListener,
    Session,
    SessionConfig,
    SessionStatus,
    exit_status,
)
from ptybridge.session.events import SessionEvents
from ptybridge.session.fallback import (
    FallbackAdapter,
    FallbackSession,
    create_fallback_adapter,
)

__all__ = [
    "DataListener",
    "ExitListener",
    "Session",
    "SessionConfig",
    "SessionStatus",
    "exit_status",
    "SessionEvents",
    "FallbackAdapter",
    "FallbackSession",
    "create_fallback_adapter",
]
