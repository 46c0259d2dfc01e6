"""OpenTelemetry instrumentor for mongomap provider spans."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from opentelemetry import trace
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor

from mongomap.tracing import runtime as tracing_runtime


class MongoMapInstrumentor(BaseInstrumentor):  # type: ignore[misc]
    """Instrument mongomap tracing decorators with a tracer provider."""

    def instrumentation_dependencies(self) -> Collection[str]:
        return []

    def _instrument(self, **kwargs: Any) -> None:
        tracer_provider = kwargs.get("tracer_provider") or trace.get_tracer_provider()
        tracing_runtime._set_tracer_provider(tracer_provider)
        tracing_runtime._set_instrumented(True)

    def _uninstrument(self, **kwargs: Any) -> None:
        tracing_runtime._clear_tracer_provider()
        tracing_runtime._set_instrumented(False)


def instrument(tracer_provider: Any | None = None) -> None:
    """Route mongomap spans to ``tracer_provider`` (or the global provider)."""
    MongoMapInstrumentor().instrument(tracer_provider=tracer_provider)


def uninstrument() -> None:
    MongoMapInstrumentor().uninstrument()


def is_instrumented() -> bool:
    return tracing_runtime._get_instrumented()


__all__ = ["MongoMapInstrumentor", "instrument", "uninstrument", "is_instrumented"]
