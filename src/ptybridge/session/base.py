"""Session contract shared by native and fallback sessions."""

from __future__ import annotations

import codecs
import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

DataListener = Callable[[str], None]
ExitListener = Callable[[int, int], None]


class SessionStatus(enum.Enum):
    """Lifecycle states for a session."""

    PENDING = "pending"  # Constructed, not started
    RUNNING = "running"
    EXITED = "exited"


@dataclass(frozen=True)
class SessionConfig:
    """Options for spawning a session.

    ``columns``, ``rows``, ``name`` and ``flow_control`` only matter on the
    native path; the fallback adapter accepts and ignores them.
    """

    columns: int | None = None
    rows: int | None = None
    cwd: str | None = None
    env: Mapping[str, str] | None = None
    name: str | None = None  # Terminal type, exported as TERM
    flow_control: bool = False

    def merged_env(self) -> dict[str, str] | None:
        """Inherited environment overlaid with ``env``, or None to inherit as-is."""
        if not self.env:
            return None
        return {**os.environ, **self.env}


@runtime_checkable
class Session(Protocol):
    """A live handle to a spawned process."""

    @property
    def pid(self) -> int: ...

    def on_data(self, listener: DataListener) -> None: ...

    def on_exit(self, listener: ExitListener) -> None: ...

    def write(self, data: str | bytes) -> None: ...

    def resize(self, columns: int, rows: int) -> None: ...

    def kill(self) -> None: ...


def exit_status(returncode: int | None) -> tuple[int, int]:
    """Map a Python return code to ``(exit_code, signal)``.

    Signal deaths (negative return codes) become ``(-1, signum)``.
    """
    if returncode is None:
        return -1, 0
    if returncode < 0:
        return -1, -returncode
    return returncode, 0


def new_decoder() -> codecs.IncrementalDecoder:
    """UTF-8 decoder that tolerates multi-byte sequences split across reads."""
    return codecs.getincrementaldecoder("utf-8")(errors="replace")
