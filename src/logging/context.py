# src/logging/context.py - v1
"""Contextual logging support: attach artifact_id, task_id and channel to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per operation.
_artifact_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "artifact_id", default=None
)
_task_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "task_id", default=None
)
_channel: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "channel", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    artifact_id: str | None = None
    task_id: str | None = None
    channel: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        artifact_id=_artifact_id.get(),
        task_id=_task_id.get(),
        channel=_channel.get(),
    )


def set_artifact_context(artifact_id: str | None, task_id: str | None = None) -> None:
    """Set artifact-level context (submission path). Clears the channel."""
    _artifact_id.set(artifact_id)
    _task_id.set(task_id)
    _channel.set(None)


def set_update_context(task_id: str, channel: str) -> None:
    """Set update-level context (callback or poll path). Clears the artifact."""
    _artifact_id.set(None)
    _task_id.set(task_id)
    _channel.set(channel)


def clear_context() -> None:
    """Reset all context variables."""
    _artifact_id.set(None)
    _task_id.set(None)
    _channel.set(None)
