# src/logging/logger.py - v1
"""Log formatting and setup for the ``docparse`` logger tree.

Every record is stamped with the current artifact/task/channel context
(see logging/context.py). JSON output is for deployments, text output for
terminals.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from docparse.logging.context import get_context

ROOT_LOGGER = "docparse"


def _utc(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _utc(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context
        extra = getattr(record, "data", None)
        if extra:
            entry["data"] = extra
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line format for interactive use."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_context()
        tag = ""
        if ctx.task_id:
            tag = f" [task={ctx.task_id}]"
        elif ctx.artifact_id:
            tag = f" [artifact={ctx.artifact_id}]"
        if ctx.channel:
            tag += f" ({ctx.channel})"

        line = (
            f"{_utc(record):%Y-%m-%d %H:%M:%S} [{record.levelname:8s}] "
            f"{record.name}{tag} - {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": JsonFormatter,
    "text": TextFormatter,
}


def get_logger(name: str) -> logging.Logger:
    """Child of the docparse logger; configured by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """(Re)configure the docparse logger: stderr, plus an optional rotating file.

    Calling it again replaces the previous handlers.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = _FORMATTERS.get(log_format, TextFormatter)()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from docparse.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
