"""Open a session on the best available backend."""

from __future__ import annotations

from collections.abc import Sequence

from ptybridge.diagnostics import log_debug
from ptybridge.errors import SessionError, SessionErrorKind
from ptybridge.provider.resolver import ProviderResolver, default_resolver
from ptybridge.session.base import Session, SessionConfig
from ptybridge.session.fallback import create_fallback_adapter


async def open_session(
    command: str,
    args: Sequence[str] = (),
    config: SessionConfig | None = None,
    *,
    resolver: ProviderResolver | None = None,
) -> Session:
    """Spawn ``command`` on a native pty, or as a plain child process if none exists.

    Only NO_NATIVE_CAPABILITY triggers the fallback. A native provider that
    fails to spawn raises SessionError(SPAWN_FAILED) to the caller.
    """
    resolver = resolver or default_resolver()
    try:
        return await resolver.spawn_session(command, args, config)
    except SessionError as e:
        if e.kind != SessionErrorKind.NO_NATIVE_CAPABILITY:
            raise
    log_debug("Native PTY unavailable, spawning %s through fallback adapter", command)
    return await create_fallback_adapter().spawn(command, args, config)
