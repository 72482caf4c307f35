"""Logging configuration for Wirthmage.

Provides a simple setup function and module-level logger factory.
Uses Python's built-in logging module.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

DEFAULT_FORMAT = "%(levelname)-5s | %(name)-18s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-18s | %(message)s"
_SETUP_LOCK = threading.Lock()


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter for machine-readable aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_file: str | None = None,
    json_logs: bool = False,
) -> None:
    """Configure logging for the wirthmage package.

    Handlers are attached to the ``wirthmage`` logger.  Repeated calls
    reuse the existing stderr/file handlers instead of stacking new ones.

    Args:
        level: Logging level (default: INFO).
        verbose: If True, include timestamps in console output.
        log_file: Optional file path to write logs to (in addition to stderr).
        json_logs: Emit structured JSON log lines when True.
    """
    with _SETUP_LOCK:
        logger = logging.getLogger("wirthmage")
        logger.setLevel(level)

        # Console handler
        fmt = VERBOSE_FORMAT if verbose else DEFAULT_FORMAT
        stream_handlers = [
            h
            for h in logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
            and getattr(h, "stream", None) is sys.stderr
        ]
        if stream_handlers:
            stream_handler = stream_handlers[0]
            for extra in stream_handlers[1:]:
                logger.removeHandler(extra)
        else:
            stream_handler = logging.StreamHandler(sys.stderr)
            logger.addHandler(stream_handler)
        if json_logs:
            stream_handler.setFormatter(JsonFormatter())
        else:
            stream_handler.setFormatter(logging.Formatter(fmt))

        # Optional file handler
        if log_file:
            target = os.path.abspath(str(log_file))
            file_handlers = [
                h
                for h in logger.handlers
                if isinstance(h, logging.FileHandler)
                and getattr(h, "baseFilename", None) == target
            ]
            if file_handlers:
                file_handler = file_handlers[0]
            else:
                file_handler = logging.FileHandler(log_file, encoding="utf-8")
                logger.addHandler(file_handler)
            if json_logs:
                file_handler.setFormatter(JsonFormatter())
            else:
                file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a Wirthmage module.

    Args:
        name: Module name (e.g., ``"processor"``, ``"batch"``).

    Returns:
        A logger instance under the ``wirthmage`` namespace.
    """
    return logging.getLogger(f"wirthmage.{name}")


@contextmanager
def log_stage(logger: logging.Logger, stage: str, **fields: Any) -> Iterator[None]:
    """Log the wall time of one pipeline stage at DEBUG level.

    Extra keyword fields are appended to the message as ``key=value``
    pairs, e.g. ``log_stage(logger, "resize", size="74x94")``.
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        if logger.isEnabledFor(logging.DEBUG):
            extras = " ".join(f"{k}={v}" for k, v in fields.items())
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug("stage %-8s %7.1f ms %s", stage, elapsed_ms, extras)
