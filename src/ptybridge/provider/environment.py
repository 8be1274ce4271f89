"""Environment classifier — decides which native providers are candidates."""

from __future__ import annotations

import functools
import os
import platform
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ptybridge.config import PtyBridgeConfig
from ptybridge.diagnostics import log_error

if TYPE_CHECKING:
    from ptybridge.provider.registry import ProviderDescriptor

_POSIX_PLATFORMS = (
    "linux",
    "darwin",
    "android",
    "freebsd",
    "openbsd",
    "netbsd",
    "sunos",
    "aix",
    "cygwin",
)


@dataclass(frozen=True)
class EnvironmentFacts:
    """Read-only snapshot of the facts provider predicates look at."""

    platform: str
    machine: str = ""
    prefix: str = ""
    force_fallback: bool = False

    @classmethod
    def capture(cls) -> EnvironmentFacts:
        return cls(
            platform=sys.platform,
            machine=platform.machine().lower(),
            prefix=os.environ.get("PREFIX", ""),
            force_fallback=PtyBridgeConfig.load().force_fallback,
        )

    @property
    def is_termux(self) -> bool:
        return self.platform == "android" or "com.termux" in self.prefix

    @property
    def is_posix(self) -> bool:
        return self.platform.startswith(_POSIX_PLATFORMS)


@functools.lru_cache(maxsize=1)
def current_facts() -> EnvironmentFacts:
    """Facts for this process, captured once and then treated as immutable."""
    return EnvironmentFacts.capture()


def classify(
    providers: Sequence[ProviderDescriptor] | None = None,
    facts: EnvironmentFacts | None = None,
) -> tuple[str, ...]:
    """Names of the applicable providers, in priority order.

    Never raises: a predicate that fails is logged and counts as not applicable.
    """
    if providers is None:
        from ptybridge.provider.registry import DEFAULT_PROVIDERS

        providers = DEFAULT_PROVIDERS
    if facts is None:
        facts = current_facts()
    if facts.force_fallback:
        return ()

    applicable: list[str] = []
    for descriptor in sorted(providers, key=lambda d: d.priority):
        try:
            if descriptor.applies(facts):
                applicable.append(descriptor.name)
        except Exception as e:
            log_error("Provider predicate for %s failed: %r", descriptor.name, e)
    return tuple(applicable)
