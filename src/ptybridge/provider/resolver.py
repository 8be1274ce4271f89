"""Provider resolver — pick the native pty provider once per process.

Resolution walks the applicable providers in priority order and caches the
first one that loads. ``None`` is cached too and means "use the fallback
adapter"; it is an expected outcome, not an error.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Callable

from ptybridge.diagnostics import log_debug, log_error
from ptybridge.errors import SessionError, SessionErrorKind
from ptybridge.provider.environment import EnvironmentFacts, classify, current_facts
from ptybridge.provider.loader import LoadResult, NativeCapability, load_provider
from ptybridge.provider.registry import DEFAULT_PROVIDERS, ProviderDescriptor
from ptybridge.session.base import Session, SessionConfig

Loader = Callable[[str, str], Awaitable[LoadResult]]


class ResolverState(enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"  # Terminal


@dataclass(frozen=True)
class Resolution:
    capability: NativeCapability
    provider_name: str


class ProviderResolver:
    """Memoized provider resolution.

    Concurrent ``resolve()`` calls made while a resolution is in flight all
    await the same task, so each provider's module is loaded at most once.
    """

    def __init__(
        self,
        providers: Sequence[ProviderDescriptor] | None = None,
        loader: Loader | None = None,
        facts: EnvironmentFacts | None = None,
    ) -> None:
        self._providers = tuple(providers if providers is not None else DEFAULT_PROVIDERS)
        self._loader: Loader = loader or load_provider
        self._facts = facts
        self._state = ResolverState.UNRESOLVED
        self._result: Resolution | None = None
        self._pending: asyncio.Task[Resolution | None] | None = None

    @property
    def state(self) -> ResolverState:
        return self._state

    async def resolve(self) -> Resolution | None:
        """Return the cached resolution, computing it on first use."""
        if self._state == ResolverState.RESOLVED:
            return self._result
        if self._pending is None:
            self._state = ResolverState.RESOLVING
            self._pending = asyncio.ensure_future(self._run())
        # Shield so one cancelled caller doesn't cancel resolution for the rest
        return await asyncio.shield(self._pending)

    async def _run(self) -> Resolution | None:
        try:
            result = await self._resolve_providers()
        except BaseException:
            self._state = ResolverState.UNRESOLVED
            self._pending = None
            raise
        self._result = result
        self._state = ResolverState.RESOLVED
        self._pending = None
        return result

    async def _resolve_providers(self) -> Resolution | None:
        facts = self._facts or current_facts()
        by_name = {d.name: d for d in self._providers}

        for name in classify(self._providers, facts):
            descriptor = by_name[name]
            outcome = await self._loader(descriptor.target, descriptor.name)
            if outcome.available:
                assert outcome.capability is not None
                log_debug("Using native PTY provider: %s", descriptor.name)
                return Resolution(outcome.capability, descriptor.name)
            log_debug("PTY provider %s unavailable, trying next provider", descriptor.name)

        log_debug("No native PTY provider, using fallback adapter with child process")
        return None

    async def spawn_session(
        self,
        command: str,
        args: Sequence[str] = (),
        config: SessionConfig | None = None,
    ) -> Session:
        """Spawn through the resolved native provider.

        Raises:
            SessionError: NO_NATIVE_CAPABILITY when there is no native provider
                (callers should fall back), SPAWN_FAILED when the provider raised.
        """
        resolution = await self.resolve()
        if resolution is None:
            raise SessionError("Native PTY not available", SessionErrorKind.NO_NATIVE_CAPABILITY)

        try:
            return await resolution.capability.spawn(command, args, config or SessionConfig())
        except Exception as e:
            log_error("Failed to spawn PTY process: %s", e)
            raise SessionError(
                str(e) or "Unknown spawn error", SessionErrorKind.SPAWN_FAILED
            ) from e


_default_resolver: ProviderResolver | None = None


def default_resolver() -> ProviderResolver:
    """The process-wide resolver over the built-in providers."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ProviderResolver()
    return _default_resolver


async def get_pty() -> Resolution | None:
    return await default_resolver().resolve()


async def spawn_pty(
    command: str,
    args: Sequence[str] = (),
    config: SessionConfig | None = None,
) -> Session:
    return await default_resolver().spawn_session(command, args, config)
