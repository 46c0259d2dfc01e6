## Configuration file for mongomap

import os

from mongomap.utils.general import _env_flag, get_env_int

# Connection defaults, used when the provider is built without explicit values
DEFAULT_HOST = os.getenv("MONGOMAP_HOST", "localhost")
DEFAULT_PORT = get_env_int("MONGOMAP_PORT", 27017)
DEFAULT_DB_NAME = os.getenv("MONGOMAP_DB_NAME", "enmap")

# Hydration default; owning maps override it per provider
FETCH_ALL = _env_flag("MONGOMAP_FETCH_ALL", False)

# Logging
LOG_LEVEL = os.getenv("MONGOMAP_LOG_LEVEL", "INFO").upper()

# Tracing
OUTPUT_CAPTURE_MAX_LENGTH = get_env_int("MONGOMAP_OUTPUT_CAPTURE_MAX_LENGTH", 10000)
