# src/storage/models.py - v1
"""Object storage models."""

from __future__ import annotations

from pydantic import BaseModel


class StoredObject(BaseModel):
    """Outcome of a successful object-store put."""

    storage_key: str
    public_url: str
    size: int
