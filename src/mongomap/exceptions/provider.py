"""
Provider-related exceptions for mongomap.
"""

from mongomap.exceptions.base import MongoMapError


class ProviderError(MongoMapError):
    """Base exception for all provider errors."""
    pass


class ConfigurationError(ProviderError):
    """Raised when a provider is constructed with missing or invalid options."""
    pass


class KeyValidationError(ProviderError, TypeError):
    """Raised when a key is not a string or a number."""
    pass


class NotInitializedError(ProviderError):
    """Raised when a store operation runs before init() or after close()."""
    pass
