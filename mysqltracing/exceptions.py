# -*- coding: utf-8 -*-
from typing import Optional


class MySqlTracingException(Exception):
    """
    Base class for exceptions raised by the tracing adapter.
    """


class MalformedTraceEvent(MySqlTracingException):
    """
    Raised when a driver trace event has missing or wrongly typed arguments.
    """


class InvalidConnectionString(MalformedTraceEvent, ValueError):
    """
    Raised when a connection string reported by the driver can't be parsed.
    """


class MySqlServerError(MySqlTracingException):
    """
    Recorded on a span when the driver reports that a query failed.
    """

    def __init__(self, message: Optional[str], error_number: Optional[int] = None):
        super().__init__(message or "")
        self.error_number = error_number
