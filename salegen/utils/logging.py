"""
Logging setup for salegen.

One place decides how the CLI, orchestrator, coordinator and workers log:
standard library logging, a compact console format that includes the thread
name (workers run on `salegen-worker_N` threads by default) and an optional
JSON format for runs driven from CI or a scheduler.

Spawned worker processes start with an unconfigured root logger, so the
options of the last `configure_logging` call are kept and handed to the
process pool as its initializer.

Usage:
    from salegen.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("[WORKER DONE] partition 2", extra={"worker": 2, "rows": 25000})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional, Tuple

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_active_options: Optional[Tuple[str, bool]] = None


def _json_formatter(record: logging.LogRecord) -> str:
    """Serialize a record; `extra=` fields become top-level keys."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "thread": record.threadName,
        "message": record.getMessage(),
    }
    payload.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and key != "extra"
    )
    # extra={"extra": {...}} is flattened as well
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def _logging_config(level: str, json_logs: bool) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": CONSOLE_DATEFMT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "json" if json_logs else "console",
                "level": level,
            }
        },
        "root": {"handlers": ["stderr"], "level": level},
    }


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure root logging for this process.

    Parameters
    ----------
    level : str
        Level name, case-insensitive (e.g. "debug", "INFO").
    json_logs : bool
        Emit JSON lines instead of the console format.
    """
    global _active_options
    level = level.upper()
    logging.config.dictConfig(_logging_config(level, json_logs))
    _active_options = (level, json_logs)


def current_logging_options() -> Optional[Tuple[str, bool]]:
    """`(level, json_logs)` of the last `configure_logging` call, if any."""
    return _active_options


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "current_logging_options",
    "get_logger",
]
