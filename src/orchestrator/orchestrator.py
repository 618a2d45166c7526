# src/orchestrator/orchestrator.py - v1
"""Orchestrator: artifact registration, remote submission and status convergence.

Per-artifact lifecycle:
  registered -> submitting -> processing -> {completed, failed}

External I/O (object store, parsing service) is awaited only between
ledger operations, never inside one. Callback and poll updates share one
entry point, ``apply_update``, so both channels converge by the same rule.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from docparse.config.settings import Settings
from docparse.core.errors import (
    AuthFailureError,
    DocParseError,
    InvalidRequestError,
    NotFoundError,
    RemoteRejectedError,
    RemoteTransportError,
)
from docparse.core.models import (
    LIFECYCLE_STATES,
    IngestResult,
    LifecycleState,
    StatusUpdate,
    UpdateChannel,
    UpdateOutcome,
)
from docparse.ledger.store import Ledger
from docparse.logging.context import set_artifact_context, set_update_context
from docparse.orchestrator.task_types import file_extension, task_type_for
from docparse.signing.codec import SignatureCodec
from docparse.status.normalizer import is_duplicate_submission, normalize_status
from docparse.storage.base_object_store import BaseObjectStore
from docparse.transport.base_transport import BaseParseTransport

logger = logging.getLogger(__name__)


class Orchestrator:
    """Drives artifacts from upload to a terminal parse state."""

    def __init__(
        self,
        ledger: Ledger,
        codec: SignatureCodec,
        object_store: BaseObjectStore,
        transport: BaseParseTransport,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ledger = ledger
        self._codec = codec
        self._store = object_store
        self._transport = transport
        self._settings = settings
        self._clock = clock

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def codec(self) -> SignatureCodec:
        return self._codec

    # --- Submission path ---

    async def submit(self, raw_bytes: bytes, display_name: str) -> str:
        """Store the bytes and register a new artifact. Returns its id."""
        key = f"{uuid.uuid4()}{file_extension(display_name)}"
        stored = await self._store.put(raw_bytes, key)
        artifact_id = self._ledger.register_artifact(
            storage_key=stored.storage_key,
            display_name=display_name,
            size_bytes=stored.size,
            source_uri=self._store.source_uri(stored.storage_key),
        )
        set_artifact_context(artifact_id)
        return artifact_id

    async def request_processing(
        self,
        artifact_id: str,
        source_location: str | None = None,
        file_kind: str | None = None,
        callback_address: str | None = None,
    ) -> str:
        """Submit a registered artifact to the parsing service. Returns the task id.

        The task type is resolved before anything else, so an unsupported
        file leaves the artifact in ``registered``. Once the artifact is
        ``submitting``, every failure marks it ``failed`` before propagating.

        Raises:
            NotFoundError: Unknown artifact.
            UnsupportedTypeError: No task type for the file kind.
            AuthFailureError: No outbound credential.
            RemoteTransportError: Network failure or timeout.
            RemoteRejectedError: Non-zero code or malformed reply.
        """
        set_artifact_context(artifact_id)
        artifact = self._ledger.get(artifact_id)
        if artifact is None:
            raise NotFoundError(f"Unknown artifact: {artifact_id}")

        task_type = task_type_for(file_kind or artifact.display_name)
        source = (
            source_location
            or artifact.source_uri
            or self._store.source_uri(artifact.storage_key)
        )
        params: dict[str, Any] = {
            "validBegin": int(self._clock()),
            "validTime": self._settings.parse_request_valid_seconds,
            "sourcePath": source,
            "taskType": task_type,
            "callbackUrl": callback_address or self._settings.callback_url,
        }
        signed = self._codec.sign_outbound(params)

        self._ledger.begin_submission(artifact_id)
        try:
            response = await self._transport.parse(
                signed, timeout=self._settings.parse_timeout_s,
            )
        except RemoteTransportError as e:
            self._fail_submission(artifact_id, str(e))
            raise
        except Exception as e:
            self._fail_submission(artifact_id, f"Parse request failed: {e}")
            raise RemoteTransportError(f"Parse request failed: {e}") from e

        if not response.ok:
            reason = response.message or "Parsing service returned an error"
            self._fail_submission(artifact_id, reason)
            raise RemoteRejectedError(response.code, reason)
        if not response.task_id:
            reason = "Parsing service reply carried no task id"
            self._fail_submission(artifact_id, reason)
            raise RemoteRejectedError(response.code, reason)

        self._ledger.link_task(artifact_id, response.task_id)
        set_artifact_context(artifact_id, response.task_id)
        logger.info(
            "Parse task created: %s (taskType=%d) for %s",
            response.task_id, task_type, artifact.display_name,
        )
        return response.task_id

    async def ingest(
        self,
        raw_bytes: bytes,
        display_name: str,
        callback_address: str | None = None,
    ) -> IngestResult:
        """Upload, register and submit in one step.

        The file type is checked before the upload. If the submission
        fails after the upload, the stored object is deleted and the
        artifact stays queryable.
        """
        task_type_for(display_name)
        artifact_id = await self.submit(raw_bytes, display_name)
        try:
            task_id = await self.request_processing(
                artifact_id, callback_address=callback_address,
            )
        except DocParseError:
            artifact = self._ledger.get(artifact_id)
            if artifact is not None:
                await self._discard_object(artifact.storage_key)
            raise

        return IngestResult(
            artifact_id=artifact_id,
            task_id=task_id,
            display_name=display_name,
            state="processing",
        )

    # --- Convergence path ---

    def apply_update(
        self,
        update: StatusUpdate,
        *,
        credential_id: str | None = None,
        channel: UpdateChannel = "callback",
    ) -> UpdateOutcome:
        """Normalize an upstream status and apply it to the ledger.

        Callbacks must name a registered credential unless verification is
        switched off. Updates for unknown tasks are logged and ignored.

        Raises:
            AuthFailureError: Callback credential could not be resolved.
        """
        set_update_context(update.task_id, channel)
        if channel == "callback" and self._settings.callback_verify_credential:
            if self._codec.registry.resolve(credential_id) is None:
                logger.warning("Callback rejected: unknown credential %r", credential_id)
                raise AuthFailureError(f"Unknown credential identifier: {credential_id!r}")

        state = normalize_status(update.raw_status)
        if is_duplicate_submission(update.raw_status):
            logger.warning(
                "Task %s reported as duplicate submission (REPEAT), treating as completed",
                update.task_id,
            )

        try:
            applied = self._ledger.transition(
                update.task_id,
                state,
                result=update.result,
                error=update.error,
                raw_status=update.raw_status,
            )
        except NotFoundError:
            logger.warning("Update for unknown task %s ignored", update.task_id)
            return UpdateOutcome(
                task_id=update.task_id, channel=channel, state=state,
                applied=False, ignored=True,
            )

        return UpdateOutcome(
            task_id=update.task_id,
            channel=channel,
            state=state,
            applied=applied,
            task=self._ledger.get_task(update.task_id),
        )

    def override(
        self,
        task_id: str,
        state: str,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        """Administrative status correction, bypassing terminal stickiness.

        Raises:
            InvalidRequestError: ``state`` is not a lifecycle state.
            NotFoundError: Unknown task.
        """
        set_update_context(task_id, "admin")
        if state not in LIFECYCLE_STATES:
            raise InvalidRequestError(f"Invalid lifecycle state: {state!r}")
        lifecycle_state: LifecycleState = state  # type: ignore[assignment]
        self._ledger.override(task_id, lifecycle_state, result=result, error=error)

    # --- Housekeeping ---

    async def delete_artifact(self, artifact_id: str) -> bool:
        """Remove the stored object (best effort) and the ledger records.

        The remote task, if any, is not cancelled.
        """
        artifact = self._ledger.get(artifact_id)
        if artifact is None:
            return False
        await self._discard_object(artifact.storage_key)
        return self._ledger.remove(artifact_id)

    async def result_url(self, artifact_id: str, suffix: str) -> str:
        """Signed URL of one file inside a completed artifact's result location.

        Raises:
            NotFoundError: Unknown artifact.
            InvalidRequestError: Missing suffix, artifact not completed, or
                no result location recorded.
        """
        if not suffix:
            raise InvalidRequestError("Missing suffix")
        artifact = self._ledger.get(artifact_id)
        if artifact is None:
            raise NotFoundError(f"Unknown artifact: {artifact_id}")
        if artifact.state != "completed":
            raise InvalidRequestError(f"Artifact {artifact_id} has not completed parsing")
        if not artifact.result_location:
            raise InvalidRequestError(f"Artifact {artifact_id} has no result location")

        base_key = self._store.key_from_uri(artifact.result_location)
        separator = "" if base_key.endswith("/") else "/"
        key = f"{base_key}{separator}{suffix.lstrip('/')}"
        return await self._store.sign_url(key, self._settings.storage_signed_url_ttl)

    # --- Internals ---

    def _fail_submission(self, artifact_id: str, reason: str) -> None:
        try:
            self._ledger.mark_submission_failed(artifact_id, reason)
        except NotFoundError:
            logger.warning("Artifact %s removed during submission", artifact_id)

    async def _discard_object(self, storage_key: str) -> None:
        try:
            await self._store.delete(storage_key)
        except Exception as e:
            logger.warning("Failed to delete stored object %s: %s", storage_key, e)
