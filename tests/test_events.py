# -*- coding: utf-8 -*-
import logging
from unittest import TestCase

from mysqltracing import (
    ConnectionClosed,
    ConnectionOpened,
    ErrorOccurred,
    InertTraceEvent,
    MalformedTraceEvent,
    QueryClosed,
    QueryOpened,
    TraceEventType,
    parse_trace_event,
)
from mysqltracing.events import connection_id_from_args

CONNECTION_STRING = "Server=db1;Port=3306;Database=orders;User Id=app;Password=secret"


class TestTraceEventType(TestCase):
    def test_numbering(self) -> None:
        self.assertEqual(TraceEventType.CONNECTION_OPENED, 1)
        self.assertEqual(TraceEventType.QUERY_OPENED, 3)
        self.assertEqual(TraceEventType.QUERY_CLOSED, 6)
        self.assertEqual(TraceEventType.ERROR, 13)
        self.assertEqual(TraceEventType.QUERY_NORMALIZED, 14)
        self.assertEqual(14, len(TraceEventType))

    def test_severity(self) -> None:
        self.assertEqual(logging.INFO, TraceEventType.QUERY_OPENED.severity)
        self.assertEqual(logging.INFO, TraceEventType.CONNECTION_OPENED.severity)
        self.assertEqual(logging.WARNING, TraceEventType.WARNING.severity)
        self.assertEqual(
            logging.WARNING, TraceEventType.USAGE_ADVISOR_WARNING.severity
        )
        self.assertEqual(logging.ERROR, TraceEventType.ERROR.severity)


class TestParseTraceEvent(TestCase):
    def test_connection_opened(self) -> None:
        event = parse_trace_event(
            TraceEventType.CONNECTION_OPENED, [7, CONNECTION_STRING]
        )
        assert isinstance(event, ConnectionOpened)
        self.assertEqual(event.connection_id, 7)
        self.assertEqual(event.connection_string, CONNECTION_STRING)

        # Plain int event type.
        event = parse_trace_event(1, [7, CONNECTION_STRING])
        self.assertIsInstance(event, ConnectionOpened)

    def test_connection_opened_without_connection_string(self) -> None:
        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.CONNECTION_OPENED, [7])

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.CONNECTION_OPENED, [7, None])

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.CONNECTION_OPENED, [7, 12345])

    def test_query_opened(self) -> None:
        event = parse_trace_event(
            TraceEventType.QUERY_OPENED, [7, 42, "SELECT * FROM t"]
        )
        assert isinstance(event, QueryOpened)
        self.assertEqual(event.connection_id, 7)
        self.assertEqual(event.thread_id, 42)
        self.assertEqual(event.sql, "SELECT * FROM t")

    def test_query_opened_without_sql_text(self) -> None:
        # Query analysis disabled: the driver reports None.
        event = parse_trace_event(TraceEventType.QUERY_OPENED, [7, 42, None])
        assert isinstance(event, QueryOpened)
        self.assertIsNone(event.sql)

        # Too few arguments.
        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.QUERY_OPENED, [7, 42])

    def test_query_closed(self) -> None:
        event = parse_trace_event(TraceEventType.QUERY_CLOSED, [7])
        self.assertEqual(QueryClosed(connection_id=7), event)

    def test_connection_closed(self) -> None:
        event = parse_trace_event(TraceEventType.CONNECTION_CLOSED, [7])
        self.assertEqual(ConnectionClosed(connection_id=7), event)

    def test_error(self) -> None:
        event = parse_trace_event(
            TraceEventType.ERROR, [7, 1146, "Table 'orders.t' doesn't exist"]
        )
        assert isinstance(event, ErrorOccurred)
        self.assertEqual(event.connection_id, 7)
        self.assertEqual(event.error_number, 1146)
        self.assertEqual(event.message, "Table 'orders.t' doesn't exist")

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.ERROR, [7, 1146])

    def test_inert_events(self) -> None:
        for event_type in [
            TraceEventType.RESULT_OPENED,
            TraceEventType.RESULT_CLOSED,
            TraceEventType.STATEMENT_PREPARED,
            TraceEventType.STATEMENT_EXECUTED,
            TraceEventType.STATEMENT_CLOSED,
            TraceEventType.NON_QUERY,
            TraceEventType.USAGE_ADVISOR_WARNING,
            TraceEventType.WARNING,
            TraceEventType.QUERY_NORMALIZED,
        ]:
            event = parse_trace_event(event_type, [7])
            assert isinstance(event, InertTraceEvent)
            self.assertEqual(event.event_type, event_type)
            self.assertEqual(event.connection_id, 7)

    def test_unknown_event_type(self) -> None:
        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(99, [7])

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event("QueryOpened", [7])  # type: ignore[arg-type]

    def test_connection_id(self) -> None:
        self.assertEqual(7, connection_id_from_args([7, "x"]))

        with self.assertRaises(MalformedTraceEvent):
            connection_id_from_args([])

        with self.assertRaises(MalformedTraceEvent):
            connection_id_from_args(["7"])

        with self.assertRaises(MalformedTraceEvent):
            connection_id_from_args([True])

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.QUERY_CLOSED, None)  # type: ignore

    def test_explicit_connection_id(self) -> None:
        # Position 0 is ignored when the id is given.
        event = parse_trace_event(
            TraceEventType.CONNECTION_OPENED,
            [None, CONNECTION_STRING],
            connection_id=9,
        )
        self.assertEqual(9, event.connection_id)

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(
                TraceEventType.QUERY_CLOSED, [], connection_id="9"  # type: ignore
            )

    def test_events_are_immutable(self) -> None:
        event = parse_trace_event(TraceEventType.QUERY_CLOSED, [7])
        with self.assertRaises(AttributeError):
            event.connection_id = 8  # type: ignore[misc]

    def test_arguments_that_cannot_be_read(self) -> None:
        class Unprintable:
            def __str__(self) -> str:
                raise RuntimeError("Can't convert to string")

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.QUERY_OPENED, [7, 1, Unprintable()])

        with self.assertRaises(MalformedTraceEvent):
            parse_trace_event(TraceEventType.ERROR, [7, 1064, Unprintable()])
