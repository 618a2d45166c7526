# src/api/facade.py - v1
"""Public API facade: wire the core once per process.

Usage:
    from docparse.api.facade import create_runtime
    runtime = create_runtime()
    result = await runtime.orchestrator.ingest(data, "report.pdf")
    ack = runtime.handle_callback(body)
    sync = await runtime.poller.sync(result.task_id)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from docparse.api.callback import handle_callback
from docparse.api.models import CallbackAck
from docparse.config.settings import Settings
from docparse.ledger.store import Ledger
from docparse.orchestrator.orchestrator import Orchestrator
from docparse.orchestrator.poller import ReconciliationPoller
from docparse.signing.codec import SignatureCodec
from docparse.signing.credentials import CredentialRegistry
from docparse.storage.base_object_store import BaseObjectStore
from docparse.storage.store_factory import create_object_store
from docparse.transport.base_transport import BaseParseTransport
from docparse.transport.http_transport import HttpParseTransport

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Explicitly owned handles shared by every request in the process."""

    settings: Settings
    ledger: Ledger
    codec: SignatureCodec
    orchestrator: Orchestrator
    poller: ReconciliationPoller

    def handle_callback(
        self, body: Mapping[str, Any], credential_id: str | None = None,
    ) -> CallbackAck:
        return handle_callback(self.orchestrator, body, credential_id)

    def purge_expired(self) -> int:
        """Drop artifacts older than the configured retention."""
        return self.ledger.purge_older_than(
            timedelta(hours=self.settings.ledger_retention_hours)
        )


def create_runtime(
    settings: Settings | None = None,
    object_store: BaseObjectStore | None = None,
    transport: BaseParseTransport | None = None,
    ledger: Ledger | None = None,
) -> Runtime:
    """Build the ledger, codec, orchestrator and poller.

    Args:
        settings: Global settings. Loaded from .env if None.
        object_store: Object store. Built from settings if None.
        transport: Parsing-service transport. HTTP transport if None.
        ledger: Ledger instance. A fresh one if None.

    Returns:
        Runtime with every component wired to the same ledger.
    """
    settings = settings or Settings()
    if ledger is None:
        ledger = Ledger()
    codec = SignatureCodec(
        CredentialRegistry.from_settings(settings),
        default_valid_seconds=settings.client_signature_valid_seconds,
    )
    if transport is None:
        transport = HttpParseTransport(settings.parse_base_url)
    orchestrator = Orchestrator(
        ledger=ledger,
        codec=codec,
        object_store=object_store if object_store is not None else create_object_store(settings),
        transport=transport,
        settings=settings,
    )
    poller = ReconciliationPoller(orchestrator, transport, settings)

    logger.info(
        "Runtime ready: storage=%s, parse_service=%s, credentials=%s",
        settings.storage_backend, settings.parse_base_url, codec.registry.identifiers,
    )
    return Runtime(
        settings=settings,
        ledger=ledger,
        codec=codec,
        orchestrator=orchestrator,
        poller=poller,
    )
