# src/ledger/store.py - v1
"""In-memory dual-entity ledger: artifacts and their remote tasks.

Transient, process-lifetime state. Construct one Ledger at start-up and
pass it to the orchestrator and poller. Both maps are guarded by a single
re-entrant lock held for the whole of every operation; no operation does
I/O or awaits while holding it. Reads hand out deep copies.
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from docparse.core.errors import NotFoundError
from docparse.core.models import (
    Artifact,
    ArtifactPage,
    BatchSnapshot,
    LedgerStats,
    LifecycleState,
    Task,
)
from docparse.ledger.lifecycle import accepts, is_terminal

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_REASON = "Document parsing failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ledger:
    """Lock-guarded artifact and task maps with reconciliation operations."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._artifacts: dict[str, Artifact] = {}
        self._tasks: dict[str, Task] = {}
        # Registration order, used to break created_at ties in listings.
        self._order: dict[str, int] = {}
        self._seq = itertools.count()

    # --- Registration and submission ---

    def register_artifact(
        self,
        storage_key: str,
        display_name: str,
        size_bytes: int,
        source_uri: str | None = None,
    ) -> str:
        """Insert a new artifact in ``registered`` and return its id."""
        now = self._clock()
        artifact = Artifact(
            id=uuid.uuid4().hex,
            display_name=display_name,
            storage_key=storage_key,
            source_uri=source_uri,
            size_bytes=size_bytes,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._artifacts[artifact.id] = artifact
            self._order[artifact.id] = next(self._seq)
        logger.info("Artifact registered: %s (%s, %d bytes)", artifact.id, display_name, size_bytes)
        return artifact.id

    def begin_submission(self, artifact_id: str) -> None:
        """Move an artifact to ``submitting`` while the remote call is in flight.

        Any previously linked task is detached, so its late updates stay on
        the task record and never reach the artifact.
        """
        with self._lock:
            artifact = self._require_artifact(artifact_id)
            artifact.linked_task_id = None
            artifact.state = "submitting"
            artifact.updated_at = self._clock()
        logger.debug("Artifact submitting: %s", artifact_id)

    def link_task(self, artifact_id: str, task_id: str) -> None:
        """Attach a remote task to an artifact; both enter ``processing``.

        Clears any result or failure left by a previous attempt and
        creates (or overwrites) the task record.
        """
        with self._lock:
            artifact = self._require_artifact(artifact_id)
            now = self._clock()
            artifact.linked_task_id = task_id
            artifact.state = "processing"
            artifact.result_location = None
            artifact.result_metadata = None
            artifact.failure_reason = None
            artifact.updated_at = now
            self._tasks[task_id] = Task(
                id=task_id,
                artifact_id=artifact_id,
                state="processing",
                created_at=now,
                updated_at=now,
            )
        logger.info("Task linked: %s -> %s", artifact_id, task_id)

    def mark_submission_failed(self, artifact_id: str, reason: str) -> None:
        """Record that the remote submission itself failed (no task exists)."""
        with self._lock:
            artifact = self._require_artifact(artifact_id)
            artifact.state = "failed"
            artifact.failure_reason = reason
            artifact.linked_task_id = None
            artifact.updated_at = self._clock()
        logger.warning("Submission failed for %s: %s", artifact_id, reason)

    # --- Convergence ---

    def transition(
        self,
        task_id: str,
        state: LifecycleState,
        *,
        result: dict[str, Any] | None = None,
        error: str | None = None,
        raw_status: Any = None,
    ) -> bool:
        """Apply an upstream status (already normalized) to a task.

        Terminal task states absorb every later call, which then only
        refreshes the task's raw status and timestamp. Otherwise the move
        is applied unless it would go down the lifecycle order. The linked
        artifact follows the task when the state actually changes.

        Returns:
            True if the state was applied, False if it was rejected as stale.

        Raises:
            NotFoundError: If ``task_id`` is unknown.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFoundError(f"Unknown task: {task_id}")

            now = self._clock()
            task.updated_at = now
            if raw_status is not None:
                task.last_raw_status = str(raw_status)

            if not accepts(task.state, state):
                logger.debug(
                    "Stale update for task %s ignored (%s -> %s)",
                    task_id, task.state, state,
                )
                return False

            previous = task.state
            task.state = state
            if previous != state:
                self._project(task, state, result=result, error=error, now=now)

        if previous != state:
            logger.info("Task %s: %s -> %s", task_id, previous, state)
        return True

    def override(
        self,
        task_id: str,
        state: LifecycleState,
        *,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Administrative correction that bypasses terminal stickiness.

        Outcome fields are set to exactly what ``state`` implies, so
        repeating the same override leaves every field but ``updated_at``
        unchanged.

        Raises:
            NotFoundError: If ``task_id`` is unknown.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFoundError(f"Unknown task: {task_id}")
            now = self._clock()
            previous = task.state
            task.state = state
            task.updated_at = now
            artifact = self._artifacts.get(task.artifact_id)
            if artifact is not None and artifact.linked_task_id == task_id:
                artifact.state = state
                artifact.updated_at = now
                artifact.result_location = None
                artifact.result_metadata = None
                artifact.failure_reason = None
                self._apply_outcome(artifact, state, result=result, error=error)
        logger.warning("Task %s overridden: %s -> %s", task_id, previous, state)

    # --- Reads ---

    def get(self, artifact_id: str) -> Artifact | None:
        with self._lock:
            artifact = self._artifacts.get(artifact_id)
            return artifact.model_copy(deep=True) if artifact else None

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy(deep=True) if task else None

    def batch(
        self,
        artifact_ids: Iterable[str] = (),
        task_ids: Iterable[str] = (),
    ) -> BatchSnapshot:
        """Snapshot several records at once; unknown ids are omitted."""
        snapshot = BatchSnapshot()
        with self._lock:
            for artifact_id in artifact_ids:
                artifact = self._artifacts.get(artifact_id)
                if artifact is not None:
                    snapshot.artifacts[artifact_id] = artifact.model_copy(deep=True)
            for task_id in task_ids:
                task = self._tasks.get(task_id)
                if task is not None:
                    snapshot.tasks[task_id] = task.model_copy(deep=True)
        return snapshot

    def list(
        self,
        state: LifecycleState | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ArtifactPage:
        """Newest-first listing, optionally filtered by state, then sliced."""
        limit = max(limit, 0)
        offset = max(offset, 0)
        with self._lock:
            matching = [
                a for a in self._artifacts.values()
                if state is None or a.state == state
            ]
            matching.sort(
                key=lambda a: (a.created_at, self._order[a.id]), reverse=True,
            )
            page = [a.model_copy(deep=True) for a in matching[offset:offset + limit]]
        return ArtifactPage(items=page, total=len(matching), limit=limit, offset=offset)

    def stats(self) -> LedgerStats:
        """Count artifacts per lifecycle state (full scan)."""
        counts: dict[str, int] = {}
        with self._lock:
            for artifact in self._artifacts.values():
                counts[artifact.state] = counts.get(artifact.state, 0) + 1
            total = len(self._artifacts)
        return LedgerStats(total=total, **counts)

    # --- Removal ---

    def remove(self, artifact_id: str) -> bool:
        """Drop an artifact and every task that references it."""
        with self._lock:
            artifact = self._artifacts.pop(artifact_id, None)
            if artifact is None:
                return False
            self._order.pop(artifact_id, None)
            stale = [tid for tid, t in self._tasks.items() if t.artifact_id == artifact_id]
            for task_id in stale:
                del self._tasks[task_id]
        logger.info("Artifact removed: %s (%d task records)", artifact_id, len(stale))
        return True

    def purge_older_than(self, max_age: timedelta, now: datetime | None = None) -> int:
        """Remove artifacts registered more than ``max_age`` ago."""
        cutoff = (now or self._clock()) - max_age
        with self._lock:
            expired = [a.id for a in self._artifacts.values() if a.created_at < cutoff]
            for artifact_id in expired:
                self.remove(artifact_id)
        if expired:
            logger.info("Purged %d expired artifacts", len(expired))
        return len(expired)

    # --- Internals ---

    def _require_artifact(self, artifact_id: str) -> Artifact:
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            raise NotFoundError(f"Unknown artifact: {artifact_id}")
        return artifact

    def _project(
        self,
        task: Task,
        state: LifecycleState,
        *,
        result: dict[str, Any] | None,
        error: str | None,
        now: datetime,
    ) -> None:
        """Copy a task's new state onto its artifact if still linked to it."""
        artifact = self._artifacts.get(task.artifact_id)
        if artifact is None or artifact.linked_task_id != task.id:
            return
        if is_terminal(artifact.state) or not accepts(artifact.state, state):
            return
        artifact.state = state
        artifact.updated_at = now
        self._apply_outcome(artifact, state, result=result, error=error)

    @staticmethod
    def _apply_outcome(
        artifact: Artifact,
        state: LifecycleState,
        *,
        result: dict[str, Any] | None,
        error: str | None,
    ) -> None:
        if state == "completed":
            artifact.result_location = (result or {}).get("targetPath")
            artifact.result_metadata = dict(result) if result else None
        elif state == "failed":
            artifact.failure_reason = error or DEFAULT_FAILURE_REASON

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)
