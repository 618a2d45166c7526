# src/transport/models.py - v1
"""Parsing-service response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ParseResponse(BaseModel):
    """Reply to a parse submission: code 0 carries the task id."""

    code: int | str | None = None
    task_id: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.code in (0, "0")


class StatusResponse(BaseModel):
    """Reply to a status query: code 0 carries the task data."""

    code: int | str | None = None
    data: dict[str, Any] | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.code in (0, "0")
