"""Static registry of native pty providers, highest priority first."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ptybridge.provider.environment import EnvironmentFacts

TERMUX = "termux"
POSIX = "posix"


@dataclass(frozen=True)
class ProviderDescriptor:
    """A named source of native pty capability.

    ``target`` is the importable module path handed to the loader. Lower
    ``priority`` values are tried first.
    """

    name: str
    target: str
    priority: int
    applies: Callable[[EnvironmentFacts], bool]


DEFAULT_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    # Optional add-on distribution with an Android-specific build
    ProviderDescriptor(
        name=TERMUX,
        target="ptybridge_termux",
        priority=1,
        applies=lambda facts: facts.is_termux,
    ),
    ProviderDescriptor(
        name=POSIX,
        target="ptybridge.native.posix",
        priority=2,
        applies=lambda facts: facts.is_posix,
    ),
)


def get_descriptor(name: str) -> ProviderDescriptor | None:
    """Get a built-in provider descriptor by name."""
    for descriptor in DEFAULT_PROVIDERS:
        if descriptor.name == name:
            return descriptor
    return None
