# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence, Type, Union

from opentelemetry.trace import Span, Tracer
from opentelemetry.util.types import AttributeValue

from mysqltracing.events import (
    ConnectionClosed,
    ConnectionOpened,
    ErrorOccurred,
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
)
from mysqltracing.instrumentation.opentelemetry.attributes import (
    COMPONENT_MYSQL,
    DB_SYSTEM_MYSQL,
    Attributes,
)
from mysqltracing.instrumentation.opentelemetry.context import (
    ExitSpanContext,
    ExitSpanContextAccessor,
    create_exit_span_context,
    mark_exit_span_failed,
    release_exit_span_context,
)
from mysqltracing.instrumentation.opentelemetry.utils import extract_operation_name
from mysqltracing.metadata import ConnectionMetadata, ConnectionMetadataCache

_logger = logging.getLogger(__name__)


class MySqlTracingDiagnosticProcessor:
    """
    Turns the driver's trace events into client spans.

    Connection metadata is resolved once, when a connection opens, and is
    reused for every query run on that connection. A span is started when a
    query opens and is ended when the query closes. Errors reported in
    between are recorded on the span.

    Nothing raised while processing an event escapes to the driver: the
    worst outcome of a failure here is a missing or incomplete span.
    """

    def __init__(
        self,
        tracer: Tracer,
        cache: Optional[ConnectionMetadataCache] = None,
        context_accessor: Optional[ExitSpanContextAccessor] = None,
        evict_on_close: bool = True,
    ):
        self.tracer = tracer
        self.cache = cache if cache is not None else ConnectionMetadataCache()
        self.context_accessor = (
            context_accessor
            if context_accessor is not None
            else ExitSpanContextAccessor()
        )
        self.evict_on_close = evict_on_close
        self._handlers: Dict[Type[TraceEvent], Callable[[Any], None]] = {
            ConnectionOpened: self._on_connection_opened,
            ConnectionClosed: self._on_connection_closed,
            QueryOpened: self._on_query_opened,
            QueryClosed: self._on_query_closed,
            ErrorOccurred: self._on_error,
        }

    def trace_event(
        self, event_type: Union[TraceEventType, int], args: Sequence[Any]
    ) -> None:
        """
        Receives an event from the driver, which puts the connection id
        first in the event arguments.
        """
        self._process(event_type, args, connection_id=None)

    def on_trace_event(
        self,
        connection_id: int,
        event_type: Union[TraceEventType, int],
        args: Sequence[Any],
    ) -> None:
        self._process(event_type, args, connection_id=connection_id)

    def _process(
        self,
        event_type: Union[TraceEventType, int],
        args: Sequence[Any],
        connection_id: Optional[int],
    ) -> None:
        try:
            event = parse_trace_event(event_type, args, connection_id=connection_id)
        except MalformedTraceEvent as e:
            _logger.debug("Skipping malformed trace event: %s", e)
            return
        except Exception:
            _logger.exception("Failed to parse trace event: %r", event_type)
            return

        handler = self._handlers.get(type(event))
        if handler is None:
            return
        try:
            handler(event)
        except Exception:
            _logger.exception("Failed to process trace event: %r", event)

    def _on_connection_opened(self, event: ConnectionOpened) -> None:
        try:
            metadata = ConnectionMetadata.from_connection_string(
                event.connection_id, event.connection_string
            )
        except InvalidConnectionString as e:
            _logger.debug(
                "Not tracing connection %d, can't parse connection string: %s",
                event.connection_id,
                e,
            )
            return
        if not self.cache.put(event.connection_id, metadata):
            _logger.debug(
                "Keeping metadata already cached for connection %d",
                event.connection_id,
            )

    def _on_connection_closed(self, event: ConnectionClosed) -> None:
        if self.context_accessor.get(event.connection_id) is not None:
            _logger.warning(
                "Connection %d closed with a query span still open",
                event.connection_id,
            )
        if self.evict_on_close:
            self.cache.evict(event.connection_id)

    def _on_query_opened(self, event: QueryOpened) -> None:
        metadata = self.cache.get(event.connection_id)
        if metadata is None:
            _logger.debug(
                "Not tracing query, no metadata for connection %d",
                event.connection_id,
            )
            return
        self.before_sql_execute(metadata, event.sql)

    def _on_query_closed(self, event: QueryClosed) -> None:
        self.after_sql_execute(event.connection_id)

    def _on_error(self, event: ErrorOccurred) -> None:
        self.error_sql_execute(event.connection_id, event.message, event.error_number)

    def before_sql_execute(
        self, metadata: Optional[ConnectionMetadata], sql: Optional[str]
    ) -> Optional[ExitSpanContext]:
        """
        Starts a span for a query that is about to run on a connection.
        """
        operation_name = extract_operation_name(sql)
        if metadata is None or operation_name is None:
            return None
        assert sql is not None  # for mypy

        previous = self.context_accessor.deactivate(metadata.connection_id)
        if previous is not None:
            # Only one query at a time is expected on a connection.
            _logger.warning(
                "Query opened on connection %d before the previous one closed",
                metadata.connection_id,
            )
            release_exit_span_context(previous)

        context = create_exit_span_context(
            tracer=self.tracer,
            operation_name=operation_name,
            remote_peer=metadata.server,
            connection_id=metadata.connection_id,
        )
        try:
            _enrich_span(
                span=context.span,
                metadata=metadata,
                db_operation_name=operation_name,
                db_statement=sql,
            )
            self.context_accessor.activate(context)
        except Exception:
            # Don't leave the span current on this thread.
            release_exit_span_context(context)
            raise
        return context

    def after_sql_execute(self, connection_id: int) -> None:
        """
        Ends the span of the query that has just finished on a connection.
        """
        context = self.context_accessor.deactivate(connection_id)
        if context is not None:
            release_exit_span_context(context)

    def error_sql_execute(
        self,
        connection_id: int,
        error_message: Optional[str],
        error_number: Optional[int] = None,
    ) -> None:
        """
        Records an error reported by the driver on the query's span.
        """
        context = self.context_accessor.get(connection_id)
        if context is not None:
            mark_exit_span_failed(
                context, MySqlServerError(error_message, error_number)
            )
            if error_number is not None and context.span.is_recording():
                context.span.set_attribute(
                    Attributes.MYSQL_ERROR_NUMBER, error_number
                )


def _enrich_span(
    *,
    span: Span,
    metadata: ConnectionMetadata,
    db_operation_name: str,
    db_statement: str,
) -> None:
    if span.is_recording():

        # Gather attributes.
        attributes: Dict[str, AttributeValue] = {}

        # Gather db attributes.
        attributes[Attributes.DB_SYSTEM] = DB_SYSTEM_MYSQL
        attributes[Attributes.DB_NAME] = metadata.database
        attributes[Attributes.DB_OPERATION] = db_operation_name
        attributes[Attributes.DB_STATEMENT] = db_statement
        if metadata.user is not None:
            attributes[Attributes.DB_USER] = metadata.user
        attributes[Attributes.COMPONENT] = COMPONENT_MYSQL

        # Gather server attributes (address was set when the span started).
        if metadata.port is not None:
            attributes[Attributes.SERVER_PORT] = metadata.port

        # Set attributes on span.
        span.set_attributes(attributes)
