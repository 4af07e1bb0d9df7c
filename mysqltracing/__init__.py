# -*- coding: utf-8 -*-
from mysqltracing.connection_spec import ConnectionSpec
from mysqltracing.events import (
    ConnectionClosed,
    ConnectionOpened,
    ErrorOccurred,
    InertTraceEvent,
    QueryClosed,
    QueryOpened,
    TraceEvent,
    TraceEventType,
    parse_trace_event,
)
from mysqltracing.exceptions import (
    InvalidConnectionString,
    MalformedTraceEvent,
    MySqlServerError,
    MySqlTracingException,
)
from mysqltracing.metadata import ConnectionMetadata, ConnectionMetadataCache
from mysqltracing.trace import DriverTrace, TraceListener, mysql_trace

__version__ = "0.1.0"

__all__ = [
    "ConnectionClosed",
    "ConnectionMetadata",
    "ConnectionMetadataCache",
    "ConnectionOpened",
    "ConnectionSpec",
    "DriverTrace",
    "ErrorOccurred",
    "InertTraceEvent",
    "InvalidConnectionString",
    "MalformedTraceEvent",
    "MySqlServerError",
    "MySqlTracingException",
    "QueryClosed",
    "QueryOpened",
    "TraceEvent",
    "TraceEventType",
    "TraceListener",
    "mysql_trace",
    "parse_trace_event",
]
