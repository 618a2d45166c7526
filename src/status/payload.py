# src/status/payload.py - v1
"""Field-name normalization for upstream status payloads.

Callers of the callback endpoint, and the status query itself, disagree
on field names. Everything is folded into one StatusUpdate record here,
before it reaches the orchestrator.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docparse.core.errors import InvalidRequestError
from docparse.core.models import StatusUpdate

TASK_ID_FIELDS = ("taskId", "id", "task_id", "taskID")
STATUS_FIELDS = ("status", "taskStatus", "state")
RESULT_FIELDS = ("result", "data")
ERROR_FIELDS = ("error", "msg", "message")


def _first_present(body: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    """First field present in ``body`` (an explicit null counts as present)."""
    for name in fields:
        if name in body:
            return body[name]
    return None


def _first_truthy(body: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
    for name in fields:
        value = body.get(name)
        if value:
            return value
    return None


def extract_update(
    body: Mapping[str, Any],
    task_id: str | None = None,
) -> StatusUpdate:
    """Build a StatusUpdate from a raw payload.

    Args:
        body: Raw callback body or status-query data.
        task_id: Task id to use when the body carries none (poll replies).

    Raises:
        InvalidRequestError: If no task id can be determined.
    """
    found_id = _first_truthy(body, TASK_ID_FIELDS) or task_id
    if found_id is None or str(found_id).strip() == "":
        raise InvalidRequestError("Missing taskId in status payload")

    result = _first_truthy(body, RESULT_FIELDS)
    error = _first_truthy(body, ERROR_FIELDS)
    return StatusUpdate(
        task_id=str(found_id),
        raw_status=_first_present(body, STATUS_FIELDS),
        result=result if isinstance(result, dict) else None,
        error=str(error) if error is not None else None,
    )
