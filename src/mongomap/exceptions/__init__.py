"""
mongomap exceptions module.

All exceptions are exported from this module for convenient imports:
    from mongomap.exceptions import ConfigurationError, KeyValidationError
"""

from mongomap.exceptions.base import MongoMapError

from mongomap.exceptions.provider import (
    ProviderError,
    ConfigurationError,
    KeyValidationError,
    NotInitializedError,
)

__all__ = [
    # Base
    "MongoMapError",
    # Provider
    "ProviderError",
    "ConfigurationError",
    "KeyValidationError",
    "NotInitializedError",
]
