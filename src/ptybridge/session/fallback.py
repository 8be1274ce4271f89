"""Fallback session — a plain child process behind the session contract.

Used when no native pty provider is available. stdout and stderr are merged
into one data stream; there is no line discipline and resize is a no-op.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from ptybridge.diagnostics import log_debug, log_error
from ptybridge.errors import SessionError, SessionErrorKind
from ptybridge.session.base import (
    DataListener,
    ExitListener,
    SessionConfig,
    SessionStatus,
    exit_status,
    new_decoder,
)
from ptybridge.session.events import SessionEvents

_READ_SIZE = 4096
_REAP_INTERVAL = 0.05
_DRAIN_TIMEOUT = 0.5


@dataclass
class FallbackSession:
    """A child process wrapped to look like a pty session.

    Listeners can be attached before ``start()``; anything attached before
    the caller next yields to the event loop after ``start()`` also sees all
    output, since the pump tasks only run once control returns to the loop.
    """

    command: str
    args: list[str] = field(default_factory=list)
    config: SessionConfig = field(default_factory=SessionConfig)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    # Internal state
    _events: SessionEvents = field(default_factory=SessionEvents, init=False)
    _proc: asyncio.subprocess.Process | None = field(default=None, init=False)
    _watcher: asyncio.Task | None = field(default=None, init=False)
    _status: SessionStatus = field(default=SessionStatus.PENDING, init=False)

    @property
    def pid(self) -> int:
        return self._proc.pid if self._proc is not None else 0

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def alive(self) -> bool:
        return self._status == SessionStatus.RUNNING

    def on_data(self, listener: DataListener) -> None:
        self._events.add_data_listener(listener)

    def on_exit(self, listener: ExitListener) -> None:
        self._events.add_exit_listener(listener)

    async def start(self) -> None:
        """Launch the child process and start pumping its output.

        Raises:
            SessionError: SPAWN_FAILED if the process could not be created.
        """
        if self._status != SessionStatus.PENDING:
            raise RuntimeError(f"Session {self.id} already started")

        log_debug("Using fallback PTY adapter with child process")
        try:
            self._proc = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.config.cwd,
                env=self.config.merged_env(),
            )
        except OSError as e:
            log_error("Fallback adapter could not launch %s: %s", self.command, e)
            raise SessionError(str(e), SessionErrorKind.SPAWN_FAILED) from e

        self._status = SessionStatus.RUNNING
        self._watcher = asyncio.create_task(self._watch())
        log_debug(
            "Fallback session %s started: pid=%d cmd=%s",
            self.id,
            self._proc.pid,
            " ".join([self.command, *self.args]),
        )

    async def _pump(self, stream: asyncio.StreamReader | None) -> None:
        """Forward one output stream to the data listeners until EOF."""
        if stream is None:
            return
        decoder = new_decoder()
        while True:
            chunk = await stream.read(_READ_SIZE)
            if not chunk:
                break
            self._events.emit_data(decoder.decode(chunk))
        self._events.emit_data(decoder.decode(b"", final=True))

    async def _reap(self, proc: asyncio.subprocess.Process) -> int:
        """Wait for the child itself to exit, regardless of who holds its pipes."""
        # proc.wait() can block until every pipe closes, which a background
        # grandchild may never do
        while proc.returncode is None:
            await asyncio.sleep(_REAP_INTERVAL)
        return proc.returncode

    async def _watch(self) -> None:
        """Pump both streams until the child exits, then fire exit once."""
        proc = self._proc
        assert proc is not None
        pumps = asyncio.gather(self._pump(proc.stdout), self._pump(proc.stderr))
        returncode = await self._reap(proc)

        # Bounded drain: output still buffered in the pipes is delivered, but
        # a grandchild holding them open does not delay exit
        done, _ = await asyncio.wait({pumps}, timeout=_DRAIN_TIMEOUT)
        if not done:
            log_debug("Fallback session %s pipes still open after exit, detaching", self.id)
            pumps.cancel()
            await asyncio.wait({pumps})
        elif pumps.exception() is not None:
            log_error("Fallback session %s output error: %s", self.id, pumps.exception())

        self._status = SessionStatus.EXITED
        if proc.stdin is not None:
            proc.stdin.close()
        code, sig = exit_status(returncode)
        log_debug("Fallback session %s exited (code=%d signal=%d)", self.id, code, sig)
        self._events.emit_exit(code, sig)

    def write(self, data: str | bytes) -> None:
        """Send input to the child. Ignored once the child's stdin is gone."""
        stdin = self._proc.stdin if self._proc is not None else None
        if self._status != SessionStatus.RUNNING or stdin is None or stdin.is_closing():
            log_debug("Write ignored, session %s is not accepting input", self.id)
            return
        payload = data.encode() if isinstance(data, str) else data
        try:
            stdin.write(payload)
        except (BrokenPipeError, ConnectionResetError) as e:
            log_debug("Write to session %s failed: %s", self.id, e)

    def resize(self, columns: int, rows: int) -> None:
        log_debug("Resize not supported in fallback adapter (%sx%s ignored)", columns, rows)

    def kill(self) -> None:
        """Send SIGTERM to the child. Does not wait for it to exit."""
        if self._proc is None or self._status != SessionStatus.RUNNING:
            return
        try:
            self._proc.terminate()
        except ProcessLookupError:
            log_debug("Process already gone: %d", self._proc.pid)

    async def wait(self) -> tuple[int, int]:
        """Wait for the exit event and return ``(exit_code, signal)``."""
        if self._watcher is not None:
            await asyncio.shield(self._watcher)
        status = self._events.exit_status
        return status if status is not None else (-1, 0)


class FallbackAdapter:
    """Spawns :class:`FallbackSession` instances."""

    async def spawn(
        self,
        command: str,
        args: Sequence[str] = (),
        config: SessionConfig | None = None,
    ) -> FallbackSession:
        session = FallbackSession(
            command=command,
            args=list(args),
            config=config or SessionConfig(),
        )
        await session.start()
        return session


def create_fallback_adapter() -> FallbackAdapter:
    return FallbackAdapter()
