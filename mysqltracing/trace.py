# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from threading import RLock
from typing import Any, List, Protocol, Sequence, Union

from mysqltracing.events import TraceEventType

_logger = logging.getLogger(__name__)


class TraceListener(Protocol):
    def trace_event(
        self, event_type: Union[TraceEventType, int], args: Sequence[Any]
    ) -> None:
        pass  # pragma: no cover


class DriverTrace:
    """
    The point where a database driver publishes its trace events.

    A driver calls emit() as connections open and close and as queries run.
    Events are delivered synchronously, on the driver's thread, to each
    registered listener whose severity switch lets them through.

    Listener failures are logged and never reach the driver.
    """

    def __init__(
        self, level: int = logging.WARNING, query_analysis_enabled: bool = False
    ):
        self._listeners: List[TraceListener] = []
        self._lock = RLock()
        self.level = level
        self.query_analysis_enabled = query_analysis_enabled

    @property
    def listeners(self) -> Sequence[TraceListener]:
        return tuple(self._listeners)

    def register(self, listener: TraceListener, replace: bool = True) -> None:
        """
        Registers a listener. With replace=True (the default) any other
        listeners are removed first. Registering a listener that is already
        registered does nothing.
        """
        with self._lock:
            if replace:
                self._listeners = [
                    existing for existing in self._listeners if existing is listener
                ]
            if not any(existing is listener for existing in self._listeners):
                self._listeners = self._listeners + [listener]

    def unregister(self, listener: TraceListener) -> None:
        with self._lock:
            self._listeners = [
                existing for existing in self._listeners if existing is not listener
            ]

    def clear(self) -> None:
        with self._lock:
            self._listeners = []

    def is_enabled_for(self, event_type: Union[TraceEventType, int]) -> bool:
        try:
            severity = TraceEventType(event_type).severity
        except ValueError:
            severity = logging.INFO
        return severity >= self.level

    def emit(self, event_type: Union[TraceEventType, int], *args: Any) -> None:
        if not self.is_enabled_for(event_type):
            return
        # Listeners are replaced, not mutated, so iterating needs no lock.
        for listener in self._listeners:
            try:
                listener.trace_event(event_type, args)
            except Exception:
                _logger.exception(
                    "Trace listener %r failed on event %r", listener, event_type
                )


mysql_trace = DriverTrace()
