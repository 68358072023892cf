# SPDX-License-Identifier: MIT
# Copyright (c) 2026 MeshLedger Contributors

"""Structured logging configuration for MeshLedger.

Provides:
- JSON formatter for machine-parseable runs
- Standard formatter for development (human-readable)
- A run ID and the logical clock of the driving scheduler, both carried in
  context and stamped onto every record emitted while they are set
- ``log_event`` for records that carry node/block fields as structured data
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)
_logical_time: ContextVar[int | None] = ContextVar("logical_time", default=None)


def get_run_id() -> str | None:
    """Get the current run ID, or None outside a run."""
    return _run_id.get()


def set_run_id(run_id: str | None) -> None:
    _run_id.set(run_id)


def generate_run_id() -> str:
    return str(uuid.uuid4())


def get_logical_time() -> int | None:
    """The scheduler clock of the event being processed, if any."""
    return _logical_time.get()


def set_logical_time(t: int | None) -> None:
    _logical_time.set(t)


@contextmanager
def run_context(run_id: str | None = None) -> Generator[str, None, None]:
    """Scope a run ID (and a fresh logical clock) over a block of work.

    Example:
        with run_context() as rid:
            scheduler.run()  # every record carries rid and the event time
    """
    rid = run_id or generate_run_id()
    run_token = _run_id.set(rid)
    time_token = _logical_time.set(None)
    try:
        yield rid
    finally:
        _logical_time.reset(time_token)
        _run_id.reset(run_token)


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    **fields: Any,
) -> None:
    """Log ``message`` with ``fields`` attached as structured ``extra_data``.

    The JSON formatter emits the fields under ``extra``; the standard
    formatter appends them as ``key=value`` pairs.
    """
    logger.log(level, message, extra={"extra_data": fields})


def _context_prefix() -> str:
    parts = []
    run_id = get_run_id()
    if run_id:
        parts.append(run_id[:8])
    t = get_logical_time()
    if t is not None:
        parts.append(f"t={t}")
    return f"[{' '.join(parts)}] " if parts else ""


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with run context and structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_data["run_id"] = run_id
        t = get_logical_time()
        if t is not None:
            log_data["logical_time"] = t

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["extra"] = record.extra_data

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable format, colored when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    CONTEXT_COLOR = "\033[90m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)

        msg = str(record.msg)
        fields = getattr(record, "extra_data", None)
        if fields:
            msg += " " + " ".join(f"{k}={v}" for k, v in fields.items())

        prefix = _context_prefix()
        if prefix and self.use_colors:
            prefix = f"{self.CONTEXT_COLOR}{prefix.rstrip()}{self.RESET} "
        record.msg = prefix + msg

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        return super().format(record)


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Install MeshLedger handlers on the root logger.

    Args:
        level: Log level name or number; defaults to MESHLEDGER_LOG_LEVEL.
        json_format: Force JSON (True) or text (False). When None,
            MESHLEDGER_LOG_FORMAT decides, falling back to JSON whenever
            stderr is not a terminal.
        log_file: Extra file destination (always JSON); defaults to
            MESHLEDGER_LOG_FILE.
    """
    from .config import get_config

    config = get_config()

    if level is None:
        level = config.log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        format_env = config.log_format.lower()
        if format_env in ("json", "text"):
            json_format = format_env == "json"
        else:
            json_format = not sys.stderr.isatty()

    log_file = config.log_file if log_file is None else log_file

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
