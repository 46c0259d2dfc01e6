"""Provider configuration and stored document types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

# bool is excluded even though it subclasses int
KEY_TYPES: tuple[type, ...] = (str, int, float)

Key = str | int | float


def is_valid_key(key: Any) -> bool:
    return isinstance(key, KEY_TYPES) and not isinstance(key, bool)


@dataclass(slots=True, frozen=True)
class AdapterConfig:
    """Resolved provider settings. Built once at construction, never mutated."""

    name: str
    url: str
    db_name: str
    document_ttl: bool = False
    monitor_changes: bool = False


class StoredRecord(BaseModel):
    """One map entry as stored in the collection: ``{_id, value, expireAt?}``."""

    model_config = ConfigDict(populate_by_name=True)

    id: Key = Field(alias="_id")
    value: Any = None
    expire_at: datetime | None = Field(default=None, alias="expireAt")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "StoredRecord":
        return cls.model_validate(dict(document))

    @field_validator("expire_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # pymongo decodes BSON dates as naive UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
