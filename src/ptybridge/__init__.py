"""ptybridge — pseudo-terminal sessions with a child-process fallback.

Native providers are resolved once per process. When none is usable,
sessions run as plain child processes behind the same interface (resize
becomes a no-op).
"""

from ptybridge.errors import PtyBridgeError, SessionError, SessionErrorKind
from ptybridge.launcher import open_session
from ptybridge.provider import (
    ProviderResolver,
    Resolution,
    get_pty,
    spawn_pty,
)
from ptybridge.session import (
    FallbackAdapter,
    FallbackSession,
    Session,
    SessionConfig,
    create_fallback_adapter,
)

__all__ = [
    "PtyBridgeError",
    "SessionError",
    "SessionErrorKind",
    "open_session",
    "ProviderResolver",
    "Resolution",
    "get_pty",
    "spawn_pty",
    "FallbackAdapter",
    "FallbackSession",
    "Session",
    "SessionConfig",
    "create_fallback_adapter",
]

__version__ = "0.1.0"
