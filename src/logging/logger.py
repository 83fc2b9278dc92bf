# src/logging/logger.py
"""Formatters and root logger setup for the newsforge process.

Two consumers share the JSON formatter: the process-wide console/file log
configured here, and every per-run pipeline log file. Console output goes to
stderr so that CLI commands can print machine-readable results on stdout.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import IO, Any

from newsforge.logging.context import get_context

ROOT_LOGGER = "newsforge"

# Chatty per-request loggers of the HTTP stack.
QUIET_LOGGERS = ("httpx", "httpcore")


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, run context, data."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line format for terminals.

    ``2024-06-01 12:00:00 [INFO    ] newsforge.x <article/run> [digest] (step) - message``
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if ctx.article_id:
            scope = f"{ctx.article_id}/{ctx.run_id}" if ctx.run_id else ctx.article_id
            parts.append(f"<{scope}>")
        if ctx.pipeline:
            parts.append(f"[{ctx.pipeline}]")
        if ctx.step:
            parts.append(f"({ctx.step})")
        parts.append(f"- {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    if log_format == "text":
        return TextFormatter()
    raise ValueError(f"Unknown log format: {log_format!r} (expected 'json' or 'text')")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
    stream: IO[str] | None = None,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> logging.Logger:
    """Configure the ``newsforge`` logger tree and return its root.

    Calling it again replaces (and closes) the handlers installed before.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: "json" or "text".
        log_file: Optional process log file, rotated by size.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        stream: Console stream; stderr when None.
        quiet: Third-party loggers capped at WARNING.
    """
    formatter = build_formatter(log_format)
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        from newsforge.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(log_file, rotation=rotation, retention=retention)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
