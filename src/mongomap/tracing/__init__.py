"""Public tracing API for mongomap."""

from mongomap.tracing.decorators import (
    CustomSpanKinds,
    trace_operation,
)
from mongomap.tracing.instrumentation import (
    MongoMapInstrumentor,
    instrument,
    is_instrumented,
    uninstrument,
)

__all__ = [
    "trace_operation",
    "CustomSpanKinds",
    "MongoMapInstrumentor",
    "instrument",
    "uninstrument",
    "is_instrumented",
]
