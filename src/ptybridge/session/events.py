"""Typed listener slots for session data and exit events."""

from __future__ import annotations

import logging

from ptybridge.session.base import DataListener, ExitListener

logger = logging.getLogger(__name__)


class SessionEvents:
    """Fan-out for the two session events.

    Listeners see every event emitted after they register, in order.
    Data emitted before the first listener attaches is not queued. Exit is
    delivered once per listener; an exit listener registered after the
    process exited is called immediately with the recorded status.
    """

    def __init__(self) -> None:
        self._data_listeners: list[DataListener] = []
        self._exit_listeners: list[ExitListener] = []
        self._exit_status: tuple[int, int] | None = None

    @property
    def exited(self) -> bool:
        return self._exit_status is not None

    @property
    def exit_status(self) -> tuple[int, int] | None:
        return self._exit_status

    def add_data_listener(self, listener: DataListener) -> None:
        self._data_listeners.append(listener)

    def add_exit_listener(self, listener: ExitListener) -> None:
        if self._exit_status is not None:
            self._call_exit(listener, *self._exit_status)
            return
        self._exit_listeners.append(listener)

    def emit_data(self, data: str) -> None:
        if not data or self._exit_status is not None:
            return
        for listener in list(self._data_listeners):
            try:
                listener(data)
            except Exception:
                logger.exception("Error in session data listener")

    def emit_exit(self, code: int, signal: int) -> None:
        """Fire exit. Only the first call has any effect."""
        if self._exit_status is not None:
            return
        self._exit_status = (code, signal)
        for listener in list(self._exit_listeners):
            self._call_exit(listener, code, signal)

    def _call_exit(self, listener: ExitListener, code: int, signal: int) -> None:
        try:
            listener(code, signal)
        except Exception:
            logger.exception("Error in session exit listener")
