"""
mongomap - MongoDB persistence and change-stream sync for in-memory maps.
"""

from importlib.metadata import PackageNotFoundError, version

from mongomap.container import PersistentMap
from mongomap.protocols import RawMapProtocol
from mongomap.provider import MongoProvider
from mongomap.tracing import instrument, is_instrumented
from mongomap.types import AdapterConfig, StoredRecord
from mongomap.utils.logger import setup_logging

try:
    __version__ = version("mongomap")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "MongoProvider",
    "PersistentMap",
    "RawMapProtocol",
    "AdapterConfig",
    "StoredRecord",
    "instrument",
    "is_instrumented",
    "setup_logging",
    "__version__",
]
