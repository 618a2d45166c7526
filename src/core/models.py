# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr

# === LIFECYCLE ===

LifecycleState = Literal["registered", "submitting", "processing", "completed", "failed"]

# States reachable from upstream reports (callback or poll).
RemoteState = Literal["processing", "completed", "failed"]

LIFECYCLE_STATES: tuple[str, ...] = (
    "registered",
    "submitting",
    "processing",
    "completed",
    "failed",
)

UpdateChannel = Literal["callback", "poll", "admin"]


# === CREDENTIALS ===


class Credential(BaseModel):
    """A registered signing credential. The secret never renders in repr/logs."""

    identifier: str
    secret: SecretStr


# === LEDGER RECORDS ===


class Artifact(BaseModel):
    """A registered source document tracked through its processing lifecycle."""

    # --- Identity ---
    id: str
    display_name: str
    storage_key: str
    source_uri: str | None = None
    size_bytes: int

    # --- Timestamps ---
    created_at: datetime
    updated_at: datetime

    # --- Lifecycle ---
    state: LifecycleState = "registered"
    linked_task_id: str | None = None

    # --- Outcome ---
    result_location: str | None = None
    result_metadata: dict[str, Any] | None = None
    failure_reason: str | None = None


class Task(BaseModel):
    """Remote unit of work for one artifact's processing attempt."""

    id: str
    artifact_id: str
    state: LifecycleState = "processing"
    created_at: datetime
    updated_at: datetime
    last_raw_status: str | None = None


class ArtifactPage(BaseModel):
    """One page of a filtered, ordered artifact listing."""

    items: list[Artifact] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class LedgerStats(BaseModel):
    """Artifact counts per lifecycle state."""

    total: int = 0
    registered: int = 0
    submitting: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class BatchSnapshot(BaseModel):
    """Snapshots for several artifacts and tasks; unknown ids are omitted."""

    artifacts: dict[str, Artifact] = Field(default_factory=dict)
    tasks: dict[str, Task] = Field(default_factory=dict)


# === UPDATES ===


class StatusUpdate(BaseModel):
    """Canonical update record produced at the boundary (callback or poll)."""

    task_id: str
    raw_status: Any = None
    result: dict[str, Any] | None = None
    error: str | None = None


class UpdateOutcome(BaseModel):
    """Result of applying one StatusUpdate."""

    task_id: str
    channel: UpdateChannel
    state: RemoteState
    applied: bool
    ignored: bool = False
    task: Task | None = None


class SyncResult(BaseModel):
    """Result of a reconciliation poll."""

    task_id: str
    state: LifecycleState
    synced: bool
    error: str | None = None


class IngestResult(BaseModel):
    """Return value of Orchestrator.ingest()."""

    artifact_id: str
    task_id: str
    display_name: str
    state: LifecycleState
