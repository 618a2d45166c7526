# src/api/models.py - v1
"""API-level models returned to the router layer."""

from __future__ import annotations

from pydantic import BaseModel


class CallbackAck(BaseModel):
    """Acknowledgement for an inbound callback.

    Unknown tasks are acknowledged too (``ignored=True``) so the parsing
    service does not keep redelivering foreign or stale callbacks.
    """

    success: bool = True
    task_id: str
    state: str
    applied: bool
    ignored: bool = False
    message: str = "Callback processed"
