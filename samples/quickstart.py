# -*- coding: utf-8 -*-
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from mysqltracing import DriverTrace, TraceEventType
from mysqltracing.instrumentation.opentelemetry import MySqlInstrumentor

# region setUpTracing
exporter = InMemorySpanExporter()
tracer_provider = TracerProvider()
tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))
# endregion setUpTracing

# region instrument
driver_trace = DriverTrace()
MySqlInstrumentor().instrument(
    tracer_provider=tracer_provider,
    trace_source=driver_trace,
)
# endregion instrument

# region emitEvents
# This is what a driver does as it opens a connection and runs a query.
driver_trace.emit(
    TraceEventType.CONNECTION_OPENED,
    7,
    "Server=db1;Database=orders;User Id=app;Password=secret",
)
driver_trace.emit(TraceEventType.QUERY_OPENED, 7, 1, "DELETE FROM orders WHERE id=5")
driver_trace.emit(TraceEventType.QUERY_CLOSED, 7)
driver_trace.emit(TraceEventType.CONNECTION_CLOSED, 7)
# endregion emitEvents

# region checkSpans
spans = exporter.get_finished_spans()
assert len(spans) == 1
span = spans[0]
assert span.name == "DELETE"
assert span.attributes is not None
assert span.attributes["db.name"] == "orders"
assert span.attributes["db.statement"] == "DELETE FROM orders WHERE id=5"
assert span.attributes["server.address"] == "db1"
print(f"{span.name} on {span.attributes['server.address']}")
# endregion checkSpans

MySqlInstrumentor().uninstrument()
