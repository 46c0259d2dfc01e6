"""
Utility modules for mongomap.

This package provides common utilities for:
- General helpers (environment parsing, name sanitizing, connection URIs)
- Logging with colored output and OpenTelemetry integration
"""

from mongomap.utils.general import (
    get_env_int,
    _env_flag,
    sanitize_name,
    build_connection_uri,
)

from mongomap.utils.logger import (
    OTelColorFormatter,
    setup_logging,
)

__all__ = [
    # General utilities
    "get_env_int",
    "_env_flag",
    "sanitize_name",
    "build_connection_uri",
    # Logging
    "OTelColorFormatter",
    "setup_logging",
]
