# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Logging configuration for meshmap.

Every log line emitted while a refresh is running is tagged with that
refresh: its sequence number, the filter query it fetched and a
correlation id. Superseded and current refreshes can interleave, so the
tag is what tells their lines apart.

Two output formats:
- JSON, one object per line, for unattended runs and log files
- Text with a short ``[#seq filter]`` prefix for terminals
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class RefreshContext:
    """Identity of one refresh cycle, attached to its log records."""

    sequence: int
    query: str
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def tag(self) -> str:
        return f"#{self.sequence} {self.query or '-'}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "filter": self.query,
            "correlation_id": self.correlation_id,
        }


_current_refresh: ContextVar[RefreshContext | None] = ContextVar("meshmap_refresh", default=None)


def current_refresh() -> RefreshContext | None:
    """The refresh running in this context, if any."""
    return _current_refresh.get()


@contextmanager
def refresh_context(sequence: int, query: str) -> Generator[RefreshContext, None, None]:
    """Tag log records emitted inside the block with one refresh.

    Example:
        with refresh_context(3, "p2p,ap") as ctx:
            logger.debug("Fetching")  # carries #3 and the filter
    """
    context = RefreshContext(sequence=sequence, query=query)
    token = _current_refresh.set(context)
    try:
        yield context
    finally:
        _current_refresh.reset(token)


class RefreshContextFilter(logging.Filter):
    """Copy the current refresh onto each record as ``record.refresh``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "refresh"):
            record.refresh = current_refresh()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    ``extra={"extra_data": {...}}`` on a logging call lands under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        refresh = getattr(record, "refresh", None) or current_refresh()
        if refresh is not None:
            log_data["refresh"] = refresh.to_dict()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data["extra"] = extra_data

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Text lines, level colored when writing to a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:
        # Decorate a copy so other handlers see the untouched record
        record = logging.makeLogRecord(record.__dict__)
        refresh = getattr(record, "refresh", None) or current_refresh()
        if refresh is not None:
            record.message = f"[{refresh.tag}] {record.message}"
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().formatMessage(record)


def _wants_json(log_format: str) -> bool:
    log_format = log_format.lower()
    if log_format in ("json", "text"):
        return log_format == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Install meshmap's handlers on the root logger.

    Arguments left as None fall back to MESHMAP_LOG_LEVEL, MESHMAP_LOG_FORMAT
    and MESHMAP_LOG_FILE. Without an explicit format, JSON is used unless
    stderr is a terminal. A log file always receives JSON.
    """
    from .config import get_config

    config = get_config()

    if level is None:
        level = config.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if json_format is None:
        json_format = _wants_json(config.log_format)
    if log_file is None:
        log_file = config.log_file

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(JSONFormatter() if json_format else StandardFormatter())
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.addFilter(RefreshContextFilter())
        root_logger.addHandler(handler)

    # aiohttp logs every connection at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
