"""
Logging for the Google Docs MCP server.

One package logger, "gdocs". Auth, adapters, retry and the executor log
through it; the renderer and the operation translator never do.

stdout is the MCP stdio transport, so the only handler writes to stderr.
Nothing is configured on import: server.main() calls configure_logging().
"""

import logging
import sys

logger = logging.getLogger("gdocs")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"

_HANDLER_NAME = "gdocs-stderr"


def configure_logging(level: str = "INFO") -> None:
    """
    Attach the stderr handler and set the package log level.

    Safe to call more than once. An unrecognised level name falls back
    to INFO and says so.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
    """
    levels = logging.getLevelNamesMapping()
    resolved = levels.get(level.strip().upper())
    logger.setLevel(resolved if resolved is not None else logging.INFO)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)

    if resolved is None:
        logger.warning(f"Unknown log level {level!r}, using INFO")


def log_api_call(service: str, method: str, **params: object) -> None:
    """DEBUG line for an outgoing Google API request. None-valued params are skipped."""
    args = " ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.debug(f"-> {service}.{method} {args}".rstrip())


def log_api_result(
    service: str,
    method: str,
    status: int,
    count: int | None = None,
    unit: str = "items",
) -> None:
    """DEBUG line for a successful response, e.g. `<- docs.documents.get 200 (3 tabs)`."""
    summary = f" ({count} {unit})" if count is not None else ""
    logger.debug(f"<- {service}.{method} {status}{summary}")


def log_retry(operation: str, attempt: int, max_attempts: int, delay_ms: int, reason: str) -> None:
    logger.warning(
        f"{operation}: attempt {attempt}/{max_attempts} failed, retrying in {delay_ms}ms: {reason}"
    )
