# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Any, Collection, Optional

from opentelemetry.instrumentation.instrumentor import (  # type: ignore[attr-defined]
    BaseInstrumentor,
)
from opentelemetry.semconv.schemas import Schemas
from opentelemetry.trace import Tracer, get_tracer

from mysqltracing.instrumentation.opentelemetry.package import _instruments
from mysqltracing.instrumentation.opentelemetry.processor import (
    MySqlTracingDiagnosticProcessor,
)
from mysqltracing.instrumentation.opentelemetry.version import __version__
from mysqltracing.metadata import ConnectionMetadataCache
from mysqltracing.trace import DriverTrace, mysql_trace

__all__ = [
    "MySqlInstrumentor",
    "MySqlTracingDiagnosticProcessor",
]


class _RedefinedBaseInstrumentor(BaseInstrumentor):  # type: ignore[misc]
    pass


class MySqlInstrumentor(_RedefinedBaseInstrumentor):
    """
    Traces the queries a driver reports to a DriverTrace.

    Like all OpenTelemetry instrumentors this is a process-wide singleton,
    and calling instrument() again while instrumented does nothing.

    Keyword arguments of instrument():

    - tracer_provider: the provider of the tracer (default: the global one)
    - trace_source: the DriverTrace to listen to (default: mysql_trace)
    - cache: a ConnectionMetadataCache to use (default: a new one)
    - evict_on_close: forget a connection's metadata when it closes
      (default: True)
    """

    _processor: Optional[MySqlTracingDiagnosticProcessor] = None
    _trace_source: Optional[DriverTrace] = None
    _previous_level: int = logging.WARNING
    _previous_query_analysis_enabled: bool = False

    def instrumentation_dependencies(self) -> Collection[str]:
        return _instruments

    @property
    def processor(self) -> Optional[MySqlTracingDiagnosticProcessor]:
        return self._processor

    def _instrument(self, **kwargs: Any) -> None:
        trace_source: DriverTrace = kwargs.get("trace_source") or mysql_trace
        cache: Optional[ConnectionMetadataCache] = kwargs.get("cache")
        evict_on_close = bool(kwargs.get("evict_on_close", True))

        processor = MySqlTracingDiagnosticProcessor(
            tracer=self._get_tracer(**kwargs),
            cache=cache,
            evict_on_close=evict_on_close,
        )

        # Exactly one processor receives the driver's events.
        trace_source.register(processor, replace=True)

        # Query events are informational, so need at least that verbosity.
        self._previous_level = trace_source.level
        trace_source.level = min(trace_source.level, logging.INFO)

        # Without query analysis the driver doesn't report the SQL text.
        self._previous_query_analysis_enabled = trace_source.query_analysis_enabled
        trace_source.query_analysis_enabled = True

        self._processor = processor
        self._trace_source = trace_source

    def _uninstrument(self, **kwargs: Any) -> None:
        if self._trace_source is not None and self._processor is not None:
            self._trace_source.unregister(self._processor)
            self._trace_source.level = self._previous_level
            self._trace_source.query_analysis_enabled = (
                self._previous_query_analysis_enabled
            )
        self._processor = None
        self._trace_source = None

    def _get_tracer(self, **kwargs: Any) -> Tracer:
        tracer_provider = kwargs.get("tracer_provider")
        tracer = get_tracer(
            __name__,
            __version__,
            tracer_provider=tracer_provider,
            schema_url=Schemas.V1_25_0.value,
        )
        return tracer
