# -*- coding: utf-8 -*-
from __future__ import annotations

from contextvars import Token
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Optional

from opentelemetry import context as context_api
from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind, Tracer, set_span_in_context

from mysqltracing.instrumentation.opentelemetry.attributes import Attributes
from mysqltracing.instrumentation.opentelemetry.utils import (
    _set_span_error,
    _set_span_ok,
    _start_span,
)


@dataclass
class ExitSpanContext:
    """
    Handle for the span of a query that is in progress on a connection.

    The token detaches the span from the current context when released.
    """

    connection_id: int
    span: Span
    token: Token[Context]
    failed: bool = False
    released: bool = False


class ExitSpanContextAccessor:
    """
    Holds the active exit span context of each connection.

    The driver runs at most one query at a time on a connection, so at most
    one context is held per connection id.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._contexts: Dict[int, ExitSpanContext] = {}

    def activate(self, context: ExitSpanContext) -> Optional[ExitSpanContext]:
        """
        Makes the context active for its connection, returning the context
        it displaced, if any.
        """
        with self._lock:
            previous = self._contexts.get(context.connection_id)
            self._contexts[context.connection_id] = context
        return previous

    def get(self, connection_id: int) -> Optional[ExitSpanContext]:
        return self._contexts.get(connection_id)

    def deactivate(self, connection_id: int) -> Optional[ExitSpanContext]:
        with self._lock:
            return self._contexts.pop(connection_id, None)

    def __len__(self) -> int:
        return len(self._contexts)


def create_exit_span_context(
    tracer: Tracer,
    operation_name: str,
    remote_peer: str,
    connection_id: int,
) -> ExitSpanContext:
    """
    Starts a client span for a call to the database server and makes it the
    current span.
    """
    span = _start_span(tracer, operation_name, SpanKind.CLIENT)
    if span.is_recording():
        span.set_attribute(Attributes.SERVER_ADDRESS, remote_peer)
    token = context_api.attach(set_span_in_context(span))
    return ExitSpanContext(connection_id=connection_id, span=span, token=token)


def release_exit_span_context(context: ExitSpanContext) -> None:
    """
    Ends the span and detaches it from the current context.
    """
    if context.released:
        return
    context.released = True
    if not context.failed:
        _set_span_ok(context.span)
    try:
        context.span.end()
    finally:
        # Logs, rather than raises, if the query closed on another thread.
        context_api.detach(context.token)


def mark_exit_span_failed(context: ExitSpanContext, error: Exception) -> None:
    """
    Records the error on the span, which stays open until released.
    """
    context.failed = True
    _set_span_error(context.span, error)
