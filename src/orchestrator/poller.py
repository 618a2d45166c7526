# src/orchestrator/poller.py - v1
"""Reconciliation poller: pull a task's status and feed it through apply_update.

The poller holds no status mapping or ordering logic of its own; the
reply goes through the same payload normalizer and the same
``Orchestrator.apply_update`` as a callback, so the two channels cannot
disagree. Poll failures are informational and leave local state as is.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from docparse.config.settings import Settings
from docparse.core.errors import NotFoundError, RemoteRejectedError, RemoteTransportError
from docparse.core.models import SyncResult
from docparse.logging.context import set_update_context
from docparse.orchestrator.orchestrator import Orchestrator
from docparse.status.payload import extract_update
from docparse.transport.base_transport import BaseParseTransport

logger = logging.getLogger(__name__)


class ReconciliationPoller:
    """On-demand status query against the parsing service."""

    def __init__(
        self,
        orchestrator: Orchestrator,
        transport: BaseParseTransport,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._orchestrator = orchestrator
        self._transport = transport
        self._settings = settings
        self._clock = clock

    async def sync(self, task_id: str) -> SyncResult:
        """Query the remote status of ``task_id`` and converge local state.

        Raises:
            NotFoundError: The task is not known locally.
            AuthFailureError: No outbound credential.
        """
        ledger = self._orchestrator.ledger
        task = ledger.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Unknown task: {task_id}")
        set_update_context(task_id, "poll")

        params = {
            "taskId": task_id,
            "beginTime": int(self._clock() * 1000),
            "validTime": self._settings.status_query_valid_ms,
        }
        signed = self._orchestrator.codec.sign_outbound(params)

        try:
            response = await self._transport.status(
                signed, timeout=self._settings.status_timeout_s,
            )
            if not response.ok:
                raise RemoteRejectedError(
                    response.code, response.message or "Status query failed",
                )
        except (RemoteTransportError, RemoteRejectedError) as e:
            logger.warning("Status sync failed for %s: %s", task_id, e)
            return self._local_result(task_id, fallback=task.state, error=str(e))
        except Exception as e:
            logger.warning("Status sync for %s raised unexpectedly: %s", task_id, e)
            return self._local_result(
                task_id, fallback=task.state, error=f"Status query failed: {e}",
            )

        data = response.data or {}
        update = extract_update(data, task_id=task_id)
        if update.task_id != task_id:
            logger.warning(
                "Status reply for %s named task %s, using the queried id",
                task_id, update.task_id,
            )
            update = update.model_copy(update={"task_id": task_id})
        if update.result is None and data:
            update = update.model_copy(update={"result": data})

        outcome = self._orchestrator.apply_update(update, channel="poll")
        logger.info(
            "Status sync for %s: remote=%r -> %s (applied=%s)",
            task_id, update.raw_status, outcome.state, outcome.applied,
        )
        return self._local_result(task_id, fallback=outcome.state, synced=True)

    def _local_result(
        self,
        task_id: str,
        fallback: str,
        synced: bool = False,
        error: str | None = None,
    ) -> SyncResult:
        task = self._orchestrator.ledger.get_task(task_id)
        state = task.state if task is not None else fallback
        return SyncResult(task_id=task_id, state=state, synced=synced, error=error)
