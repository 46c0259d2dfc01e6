"""
Apply MongoDB change-stream events to a local map.

Every write goes through the map's raw surface (``RawMapProtocol``) so that an
event coming from the store is never written back to the store.

Update events are merged one level deep only: for a path ``value.a.b`` the new
value replaces ``current["a"]`` as a whole. Deeper merging is not supported.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from mongomap.protocols import RawMapProtocol

logger = logging.getLogger(__name__)

VALUE_FIELD = "value"


def apply_change(container: RawMapProtocol, change: Mapping[str, Any]) -> None:
    """Apply one change event to ``container``. Unhandled operation types are ignored."""
    operation = change.get("operationType")

    if operation in ("insert", "replace"):
        document = change.get("fullDocument") or {}
        container.raw_set(document["_id"], document.get(VALUE_FIELD))
    elif operation == "update":
        _apply_update(container, change)
    elif operation == "delete":
        container.raw_delete(change["documentKey"]["_id"])
    else:
        logger.debug("Ignoring change event with operationType=%s", operation)


def _apply_update(container: RawMapProtocol, change: Mapping[str, Any]) -> None:
    description = change.get("updateDescription") or {}
    updated_fields: Mapping[str, Any] = description.get("updatedFields") or {}
    removed_fields: list[str] = description.get("removedFields") or []
    if not updated_fields and not removed_fields:
        return

    key = change["documentKey"]["_id"]
    current = container.raw_get(key)
    touched = False

    for path, new_value in updated_fields.items():
        segments = path.split(".")
        if segments[0] != VALUE_FIELD:
            # expireAt and other bookkeeping fields are not part of the map value
            continue
        touched = True
        if len(segments) == 1:
            current = new_value
            continue
        if len(segments) > 2:
            logger.debug("Change to %s on %r merged at the first nested level only", path, key)
        current = _set_field(current, segments[1], new_value)

    for path in removed_fields:
        segments = path.split(".")
        if segments[0] != VALUE_FIELD:
            continue
        touched = True
        if len(segments) == 1:
            current = None
        elif len(segments) == 2 and isinstance(current, dict):
            current.pop(segments[1], None)

    if touched:
        container.raw_set(key, current)


def _set_field(current: Any, field: str, new_value: Any) -> Any:
    if current is None:
        current = {}
    if isinstance(current, list) and field.isdigit():
        index = int(field)
        if index >= len(current):
            # the store pads the gap with nulls
            current.extend([None] * (index + 1 - len(current)))
        current[index] = new_value
        return current
    if isinstance(current, dict):
        current[field] = new_value
        return current
    logger.warning("Cannot merge field %r into value of type %s", field, type(current).__name__)
    return current


__all__ = [
    "apply_change",
]
