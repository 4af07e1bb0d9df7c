# -*- coding: utf-8 -*-
from __future__ import annotations

import re
import traceback
from typing import MutableMapping, Optional

from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer
from opentelemetry.util.types import AttributeValue

from mysqltracing.instrumentation.opentelemetry.attributes import Attributes


def extract_operation_name(sql: Optional[str]) -> Optional[str]:
    """
    Returns the leading keyword of an SQL statement, e.g. "SELECT".

    Leading whitespace is skipped. Returns None for missing or blank text.
    """
    if not sql:
        return None
    tokens = sql.split(None, 1)
    if not tokens:
        return None
    return tokens[0]


def _start_span(
    tracer: Tracer,
    span_name: str,
    span_kind: SpanKind = SpanKind.CLIENT,
    context: Optional[Context] = None,
) -> Span:
    return tracer.start_span(
        name=span_name,
        kind=span_kind,
        context=context,
        record_exception=False,
        set_status_on_exception=False,
    )


def _set_span_ok(span: Span) -> None:
    span.set_status(StatusCode.OK)


def _set_span_error(span: Span, error: Exception) -> None:
    # Set span status.
    exc_type = type(error)
    span.set_status(
        Status(
            status_code=StatusCode.ERROR,
            description=f"{exc_type.__name__}: {error}",
        )
    )
    # Log an event for the error.
    exception_type = (
        f"{exc_type.__module__}.{exc_type.__qualname__}"
        if exc_type.__module__ and exc_type.__module__ != "builtins"
        else exc_type.__qualname__
    )
    # Gather attributes.
    attributes: MutableMapping[str, AttributeValue] = {
        Attributes.EXCEPTION_TYPE: exception_type,
        Attributes.EXCEPTION_MESSAGE: str(error),
        Attributes.EXCEPTION_ESCAPED: str(True),
    }
    # Errors reported by the driver were never raised here, so have no stack.
    if error.__traceback__ is not None:
        stack = ["Traceback (most recent call last):\n"]
        stack += traceback.format_exception(exc_type, error, error.__traceback__)[1:]
        attributes[Attributes.EXCEPTION_STACKTRACE] = "".join(
            [line for line in stack if _stack_include(line)]
        )
    span.add_event(name="exception", attributes=attributes, timestamp=None)


_stack_exclude_patterns = [
    "opentelemetry",
]
_stack_exclude_regex = re.compile(".*(" + "|".join(_stack_exclude_patterns) + ").*")


def _stack_include(line: str) -> bool:
    return _stack_exclude_regex.match(line) is None
