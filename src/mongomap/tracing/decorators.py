"""Tracing decorators and span-kind helpers."""

from __future__ import annotations

from enum import Enum
from functools import wraps
from typing import Any, Callable

from openinference.semconv.trace import SpanAttributes
from opentelemetry.trace import Status, StatusCode

from mongomap.tracing.helpers import _attach_output_to_span
from mongomap.tracing.runtime import _get_tracer


class CustomSpanKinds(Enum):
    INIT = "INIT"
    DATABASE = "DATABASE"


def trace_operation(
    kind: Any = None,
    open_inference_kind: Any = None,
    capture_input: bool = False,
    capture_output: bool = False,
):
    """Decorator for tracing async store operations on a provider."""

    def decorator(func: Callable):
        @wraps(func)
        async def async_wrapper(self, *args, **kwargs):
            tracer = _get_tracer(__name__)
            span_kwargs = {"name": f"{self.__class__.__name__}.{func.__name__}"}
            if kind:
                span_kwargs["kind"] = kind

            with tracer.start_as_current_span(**span_kwargs) as span:
                try:
                    if capture_input:
                        span.set_attribute("input.args", str(args))
                        span.set_attribute("input.kwargs", str(kwargs))
                    if open_inference_kind:
                        kind_value = getattr(open_inference_kind, "value", open_inference_kind)
                        span.set_attribute(SpanAttributes.OPENINFERENCE_SPAN_KIND, kind_value)

                    result = await func(self, *args, **kwargs)
                    if capture_output:
                        _attach_output_to_span(span, result)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as exc:
                    error_msg = str(exc) if str(exc) else type(exc).__name__
                    span.set_status(Status(StatusCode.ERROR, error_msg))
                    span.record_exception(exc)
                    raise

        return async_wrapper

    return decorator
