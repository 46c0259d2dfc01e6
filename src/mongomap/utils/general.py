import os
import re
from urllib.parse import quote_plus

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def get_env_int(name: str, default: int | None = None) -> int | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}")

def _env_flag(name: str, default: bool = False) -> bool:
    """Parse boolean-like environment flags.

    Accepts true values: '1', 'true', 'yes', 'on' (case-insensitive). False for others or unset.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def sanitize_name(name: str) -> str:
    """
    Normalize a map name into a collection-safe identifier.

    Every character outside ``[a-z0-9]`` (case-insensitive) becomes ``_`` and the
    result is lowercased, so the name is valid on stores with strict naming rules.

    Example:
        >>> sanitize_name("My Collection!")
        'my_collection_'
    """
    return _INVALID_NAME_CHARS.sub("_", name).lower()


def build_connection_uri(
    *,
    host: str,
    port: int,
    db_name: str,
    user: str | None = None,
    password: str | None = None,
) -> str:
    """Build a ``mongodb://`` URI from components. Credentials are used only as a pair."""
    if user and password:
        auth = f"{quote_plus(user)}:{quote_plus(password)}@"
    else:
        auth = ""
    return f"mongodb://{auth}{host}:{port}/{db_name}"


__all__ = [
    "get_env_int",
    "_env_flag",
    "sanitize_name",
    "build_connection_uri",
]
