"""Native pty provider backed by the stdlib ``pty`` module.

Importing this module fails with ``ModuleNotFoundError`` where ``termios``
is unavailable, which the loader treats as "provider absent".
"""

from __future__ import annotations

import asyncio
import fcntl
import os
import pty
import signal
import struct
import subprocess
import termios
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

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24
DEFAULT_TERM = "xterm-256color"

XOFF = b"\x13"
XON = b"\x11"

_READ_SIZE = 4096


def _set_winsize(fd: int, columns: int, rows: int) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, columns, 0, 0))


@dataclass
class PosixPtySession:
    """A child process attached to a real pseudo-terminal.

    The child runs in its own session (``start_new_session``) so ``kill()``
    can signal its whole process group.
    """

    command: str
    args: list[str] = field(default_factory=list)
    config: SessionConfig = field(default_factory=SessionConfig)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    # Internal state
    _events: SessionEvents = field(default_factory=SessionEvents, init=False)
    _master_fd: int = field(default=-1, init=False)
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _reader_task: asyncio.Task | None = field(default=None, init=False)
    _status: SessionStatus = field(default=SessionStatus.PENDING, init=False)
    _flowing: asyncio.Event | None = field(default=None, init=False)

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
        """Spawn the process on a new pty with its own process group."""
        if self._status != SessionStatus.PENDING:
            raise RuntimeError(f"Session {self.id} already started")

        master_fd, slave_fd = pty.openpty()
        env = {**os.environ, **(self.config.env or {})}
        env["TERM"] = self.config.name or DEFAULT_TERM

        try:
            _set_winsize(
                slave_fd,
                self.config.columns or DEFAULT_COLUMNS,
                self.config.rows or DEFAULT_ROWS,
            )
            # Popen rather than os.fork: forking inside a running event loop
            # can deadlock on macOS
            self._proc = subprocess.Popen(
                [self.command, *self.args],
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                env=env,
                cwd=self.config.cwd,
            )
        except BaseException:
            os.close(master_fd)
            raise
        finally:
            os.close(slave_fd)

        self._master_fd = master_fd
        self._pgid = os.getpgid(self._proc.pid)
        self._status = SessionStatus.RUNNING
        self._flowing = asyncio.Event()
        self._flowing.set()
        self._reader_task = asyncio.create_task(self._read_loop())

        log_debug(
            "PTY session %s started: pid=%d pgid=%d cmd=%s",
            self.id,
            self._proc.pid,
            self._pgid,
            " ".join([self.command, *self.args]),
        )

    async def _read_loop(self) -> None:
        """Read the master fd until the child side closes, then fire exit."""
        loop = asyncio.get_running_loop()
        decoder = new_decoder()
        try:
            while True:
                if self._flowing is not None:
                    await self._flowing.wait()
                try:
                    data = await loop.run_in_executor(
                        None, os.read, self._master_fd, _READ_SIZE
                    )
                except OSError:
                    # EIO once every slave fd is closed
                    break
                if not data:
                    break
                self._events.emit_data(decoder.decode(data))
            self._events.emit_data(decoder.decode(b"", final=True))
        except Exception as e:
            log_error("PTY reader %s ended: %s", self.id, e)
        finally:
            returncode = None
            if self._proc is not None:
                returncode = await loop.run_in_executor(None, self._proc.wait)
            self._status = SessionStatus.EXITED
            try:
                os.close(self._master_fd)
            except OSError:
                pass
            code, sig = exit_status(returncode)
            log_debug("PTY session %s exited (code=%d signal=%d)", self.id, code, sig)
            self._events.emit_exit(code, sig)

    def write(self, data: str | bytes) -> None:
        """Send input to the pty. Ignored once the process has exited."""
        if self._status != SessionStatus.RUNNING:
            log_debug("Write ignored, PTY session %s is not running", self.id)
            return
        payload = data.encode() if isinstance(data, str) else bytes(data)
        if self.config.flow_control and self._flowing is not None:
            if XOFF in payload:
                self._flowing.clear()
            if XON in payload:
                self._flowing.set()
            payload = payload.replace(XOFF, b"").replace(XON, b"")
            if not payload:
                return
        try:
            os.write(self._master_fd, payload)
        except OSError as e:
            log_debug("Write to PTY session %s failed: %s", self.id, e)

    def resize(self, columns: int, rows: int) -> None:
        """Change the pty window size.

        Raises:
            SessionError: RESIZE_FAILED for non-positive sizes, an exited
                session, or an ioctl failure.
        """
        if columns <= 0 or rows <= 0:
            raise SessionError(
                f"Resize requires positive columns and rows, got {columns}x{rows}",
                SessionErrorKind.RESIZE_FAILED,
            )
        if self._status != SessionStatus.RUNNING:
            raise SessionError(
                "Cannot resize a pty that has already exited",
                SessionErrorKind.RESIZE_FAILED,
            )
        try:
            _set_winsize(self._master_fd, columns, rows)
        except OSError as e:
            raise SessionError(str(e), SessionErrorKind.RESIZE_FAILED) from e

    def kill(self, sig: int = signal.SIGHUP) -> None:
        """Signal the child's process group. Does not wait for exit."""
        if self._status != SessionStatus.RUNNING:
            return
        try:
            os.killpg(self._pgid, sig)
        except ProcessLookupError:
            log_debug("Process group already gone: %d", self._pgid)

    async def wait(self) -> tuple[int, int]:
        """Wait for the exit event and return ``(exit_code, signal)``."""
        if self._reader_task is not None:
            await asyncio.shield(self._reader_task)
        status = self._events.exit_status
        return status if status is not None else (-1, 0)


async def spawn(
    command: str,
    args: Sequence[str] = (),
    config: SessionConfig | None = None,
) -> PosixPtySession:
    """Start a native pty session. Entry point checked by the provider loader."""
    session = PosixPtySession(
        command=command,
        args=list(args),
        config=config or SessionConfig(),
    )
    await session.start()
    return session
