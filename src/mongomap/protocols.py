"""
Protocol classes for mongomap.

These protocols define the contract a map must offer so a provider can write
store-origin data into it without triggering the map's own persistence hooks.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RawMapProtocol(Protocol):
    """Local-only mutation surface of a persisted map."""

    def raw_get(self, key: Any) -> Any:
        """Read a value without touching the store."""
        ...

    def raw_set(self, key: Any, value: Any) -> None:
        """Write a value locally without notifying the provider."""
        ...

    def raw_delete(self, key: Any) -> None:
        """Remove a key locally without notifying the provider."""
        ...


__all__ = [
    "RawMapProtocol",
]
