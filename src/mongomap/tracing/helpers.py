"""Serialization helpers for attaching operation output to spans."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
import json
import logging
from typing import Any

from bson import ObjectId
from openinference.semconv.trace import SpanAttributes
from opentelemetry import trace

logger = logging.getLogger(__name__)


def _serialize_for_json(obj: Any) -> Any:
    """Custom JSON serializer for enums, datetimes, ObjectIds, and model objects."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, ObjectId):
        return str(obj)
    if hasattr(obj, "model_dump"):
        return _serialize_for_json(obj.model_dump(by_alias=True))
    if isinstance(obj, dict):
        return {str(k): _serialize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize_for_json(item) for item in obj]
    return obj


def _attach_output_to_span(span: trace.Span, result: Any) -> None:
    """Attach serializable output value to a span."""
    from mongomap.config import OUTPUT_CAPTURE_MAX_LENGTH

    if result is None:
        return
    try:
        output_value = json.dumps(_serialize_for_json(result), default=str)
    except (TypeError, ValueError) as exc:
        logger.debug("Could not serialize output of type %s: %s", type(result), exc)
        return

    if len(output_value) > OUTPUT_CAPTURE_MAX_LENGTH:
        output_value = output_value[:OUTPUT_CAPTURE_MAX_LENGTH] + "... [truncated]"
        logger.debug("Output truncated to %s chars for span", OUTPUT_CAPTURE_MAX_LENGTH)

    span.set_attribute(SpanAttributes.OUTPUT_VALUE, output_value)
