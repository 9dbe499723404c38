"""Logging configuration for clibrowse.

JSON (python-json-logger) or plain text on stderr. Uvicorn and FastAPI loggers
are aligned to the same handler so a served session logs in one format.

Request handling logs named events through :func:`log_event`: the text format
shows ``event key=value ...`` and the JSON format carries each key as a field.
"""

from __future__ import annotations

import logging
from typing import Any

from pythonjsonlogger import jsonlogger

_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")

# LogRecord attributes an extra field must not overwrite.
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _build_json_formatter() -> logging.Formatter:
    fields = [
        "asctime",
        "levelname",
        "name",
        "message",
        "module",
        "funcName",
        "lineno",
    ]
    fmt = " ".join([f"%({f})s" for f in fields])
    return jsonlogger.JsonFormatter(fmt=fmt)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` both in the message and as record extras."""
    if not logger.isEnabledFor(level):
        return
    pairs = " ".join(f"{key}={value}" for key, value in fields.items())
    message = f"{event} {pairs}" if pairs else event
    extra = {(f"{key}_" if key in _RESERVED else key): value for key, value in fields.items()}
    extra["event"] = event
    logger.log(level, message, extra=extra)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)

    # Remove default handlers to avoid duplicate logs
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if fmt.lower() == "json":
        handler.setFormatter(_build_json_formatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    root.addHandler(handler)

    for logger_name in _FRAMEWORK_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(log_level)
