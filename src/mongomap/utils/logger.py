"""
Logging setup with colored console output and OpenTelemetry trace correlation.
"""

import logging

from opentelemetry import trace

_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class OTelColorFormatter(logging.Formatter):
    """Colors the level name and appends the active trace id, when there is one."""

    def format(self, record: logging.LogRecord) -> str:
        span_context = trace.get_current_span().get_span_context()
        record.trace_id = format(span_context.trace_id, "032x") if span_context.is_valid else "-"
        color = _COLORS.get(record.levelno, "")
        original_levelname = record.levelname
        record.levelname = f"{color}{original_levelname}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def setup_logging(level: str | int | None = None) -> None:
    """
    Attach a colored stream handler to the ``mongomap`` logger.

    Args:
        level: Logging level name or number (defaults to MONGOMAP_LOG_LEVEL env var)

    Calling it twice does not add a second handler.
    """
    from mongomap.config import LOG_LEVEL

    logger = logging.getLogger("mongomap")
    logger.setLevel(level or LOG_LEVEL)
    if any(isinstance(h.formatter, OTelColorFormatter) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        OTelColorFormatter("%(asctime)s %(levelname)s [%(name)s] [trace=%(trace_id)s] %(message)s")
    )
    logger.addHandler(handler)


__all__ = [
    "OTelColorFormatter",
    "setup_logging",
]
