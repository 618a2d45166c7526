# src/api/callback.py - v1
"""Inbound callback boundary.

Folds the varying callback field names into one StatusUpdate and hands it
to ``Orchestrator.apply_update``. A body that carries a ``signature``
must verify against the credential it names. Validation errors (no task
id) and authentication failures propagate to the router, which maps them
to 400 and 401 respectively; nothing is mutated in either case.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from docparse.api.models import CallbackAck
from docparse.core.errors import AuthFailureError
from docparse.core.models import StatusUpdate
from docparse.orchestrator.orchestrator import Orchestrator
from docparse.signing.codec import SIGNATURE_KEY
from docparse.status.payload import extract_update

logger = logging.getLogger(__name__)

CREDENTIAL_FIELD = "appId"


def normalize_callback_payload(body: Mapping[str, Any]) -> StatusUpdate:
    """Canonical StatusUpdate for a raw callback body.

    A success report without a result keeps the raw body as its result
    so the artifact still records what the service sent.

    Raises:
        InvalidRequestError: If the body carries no task id.
    """
    update = extract_update(body)
    if update.result is None:
        update = update.model_copy(update={"result": {"rawCallback": dict(body)}})
    return update


def _check_signature(
    orchestrator: Orchestrator,
    body: Mapping[str, Any],
    identifier: str | None,
) -> None:
    """Reject a signed callback whose signature does not match its credential.

    Unsigned callbacks pass through; the credential check in apply_update
    still applies to them.
    """
    if SIGNATURE_KEY not in body or identifier not in orchestrator.codec.registry:
        return
    if not orchestrator.codec.verify_with(body, identifier):
        logger.warning("Callback rejected: signature mismatch for %s", identifier)
        raise AuthFailureError(f"Callback signature mismatch for {identifier!r}")


def handle_callback(
    orchestrator: Orchestrator,
    body: Mapping[str, Any],
    credential_id: str | None = None,
) -> CallbackAck:
    """Apply one inbound callback. Idempotent and replay-safe.

    Args:
        orchestrator: Orchestrator owning the ledger.
        body: Raw JSON body as received.
        credential_id: Identifier presented by the caller; falls back to
            the body's ``appId`` field.

    Raises:
        InvalidRequestError: Missing task id.
        AuthFailureError: Unresolvable credential (when verification is on)
            or a signature that does not match the named credential.
    """
    logger.debug("Callback received with fields: %s", sorted(body))
    update = normalize_callback_payload(body)
    identifier = credential_id or body.get(CREDENTIAL_FIELD)
    identifier = str(identifier) if identifier else None
    _check_signature(orchestrator, body, identifier)
    outcome = orchestrator.apply_update(
        update,
        credential_id=identifier,
        channel="callback",
    )
    message = "Callback ignored: unknown task" if outcome.ignored else "Callback processed"
    return CallbackAck(
        task_id=outcome.task_id,
        state=outcome.task.state if outcome.task else outcome.state,
        applied=outcome.applied,
        ignored=outcome.ignored,
        message=message,
    )
