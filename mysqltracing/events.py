# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Sequence, Type, Union

from typing_extensions import Self

from mysqltracing.exceptions import MalformedTraceEvent


class TraceEventType(IntEnum):
    """
    Event types emitted by the driver, numbered as the driver numbers them.
    """

    CONNECTION_OPENED = 1
    CONNECTION_CLOSED = 2
    QUERY_OPENED = 3
    RESULT_OPENED = 4
    RESULT_CLOSED = 5
    QUERY_CLOSED = 6
    STATEMENT_PREPARED = 7
    STATEMENT_EXECUTED = 8
    STATEMENT_CLOSED = 9
    NON_QUERY = 10
    USAGE_ADVISOR_WARNING = 11
    WARNING = 12
    ERROR = 13
    QUERY_NORMALIZED = 14

    @property
    def severity(self) -> int:
        return _SEVERITIES.get(self, logging.INFO)


_SEVERITIES = {
    TraceEventType.USAGE_ADVISOR_WARNING: logging.WARNING,
    TraceEventType.WARNING: logging.WARNING,
    TraceEventType.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class TraceEvent:
    """
    Base class for typed driver trace events.

    Every event carries the id the driver assigned to the connection.
    """

    connection_id: int

    @classmethod
    def from_args(cls, connection_id: int, args: Sequence[Any]) -> Self:
        return cls(connection_id=connection_id)


@dataclass(frozen=True)
class ConnectionOpened(TraceEvent):
    connection_string: str

    @classmethod
    def from_args(cls, connection_id: int, args: Sequence[Any]) -> Self:
        connection_string = _arg(args, 1)
        if not isinstance(connection_string, str):
            raise MalformedTraceEvent(
                f"Connection string is not a string: {connection_string!r}"
            )
        return cls(
            connection_id=connection_id,
            connection_string=connection_string,
        )


@dataclass(frozen=True)
class ConnectionClosed(TraceEvent):
    pass


@dataclass(frozen=True)
class QueryOpened(TraceEvent):
    thread_id: Optional[int]
    sql: Optional[str]

    @classmethod
    def from_args(cls, connection_id: int, args: Sequence[Any]) -> Self:
        sql = _arg(args, 2)
        thread_id = _arg(args, 1)
        return cls(
            connection_id=connection_id,
            thread_id=thread_id if isinstance(thread_id, int) else None,
            sql=None if sql is None else str(sql),
        )


@dataclass(frozen=True)
class QueryClosed(TraceEvent):
    pass


@dataclass(frozen=True)
class ErrorOccurred(TraceEvent):
    error_number: Optional[int]
    message: Optional[str]

    @classmethod
    def from_args(cls, connection_id: int, args: Sequence[Any]) -> Self:
        message = _arg(args, 2)
        error_number = _arg(args, 1)
        return cls(
            connection_id=connection_id,
            error_number=error_number if isinstance(error_number, int) else None,
            message=None if message is None else str(message),
        )


@dataclass(frozen=True)
class InertTraceEvent(TraceEvent):
    """
    An event that is recognised but not acted upon.
    """

    event_type: TraceEventType = TraceEventType.QUERY_NORMALIZED


_EVENT_CLASSES: Dict[TraceEventType, Type[TraceEvent]] = {
    TraceEventType.CONNECTION_OPENED: ConnectionOpened,
    TraceEventType.CONNECTION_CLOSED: ConnectionClosed,
    TraceEventType.QUERY_OPENED: QueryOpened,
    TraceEventType.QUERY_CLOSED: QueryClosed,
    TraceEventType.ERROR: ErrorOccurred,
}


def parse_trace_event(
    event_type: Union[TraceEventType, int],
    args: Sequence[Any],
    connection_id: Optional[int] = None,
) -> TraceEvent:
    """
    Converts the driver's positional event arguments into a typed event.

    The driver puts the connection id at position 0 of the arguments. It is
    read from there unless given explicitly.

    Raises MalformedTraceEvent if the event type is unknown, or if the
    arguments the event type needs are missing or have the wrong type.
    """
    try:
        event_type = TraceEventType(event_type)
    except (ValueError, TypeError):
        raise MalformedTraceEvent(
            f"Unknown trace event type: {event_type!r}"
        ) from None

    if connection_id is None:
        connection_id = connection_id_from_args(args)
    else:
        _check_connection_id(connection_id)

    event_class = _EVENT_CLASSES.get(event_type)
    if event_class is None:
        return InertTraceEvent(
            connection_id=connection_id,
            event_type=event_type,
        )
    try:
        return event_class.from_args(connection_id, args)
    except MalformedTraceEvent:
        raise
    except Exception as e:
        raise MalformedTraceEvent(
            f"Can't read {event_type.name} arguments: {e!r}"
        ) from e


def connection_id_from_args(args: Sequence[Any]) -> int:
    connection_id = _arg(args, 0)
    _check_connection_id(connection_id)
    return connection_id


def _check_connection_id(connection_id: Any) -> None:
    # bool is an int subclass, but never a driver id.
    if isinstance(connection_id, bool) or not isinstance(connection_id, int):
        raise MalformedTraceEvent(
            f"Connection id is not an integer: {connection_id!r}"
        )


def _arg(args: Sequence[Any], index: int) -> Any:
    try:
        return args[index]
    except (IndexError, TypeError, KeyError):
        raise MalformedTraceEvent(
            f"Trace event has no argument at position {index}: {args!r}"
        ) from None
