# tests/unit/api/test_facade.py - v1
"""Tests for api/facade.py: runtime wiring."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from docparse.api.facade import create_runtime
from docparse.ledger.store import Ledger
from docparse.storage.local_store import LocalObjectStore
from docparse.transport.http_transport import HttpParseTransport


class TestCreateRuntime:
    def test_defaults_from_settings(self, settings):
        runtime = create_runtime(settings)
        assert runtime.settings is settings
        assert runtime.orchestrator.ledger is runtime.ledger
        assert runtime.orchestrator.codec is runtime.codec
        assert runtime.codec.registry.identifiers == ["app-main", "app-second"]
        assert isinstance(runtime.orchestrator._store, LocalObjectStore)
        assert isinstance(runtime.orchestrator._transport, HttpParseTransport)

    def test_ready_log_names_credentials_not_secrets(self, settings, caplog):
        with caplog.at_level(logging.INFO, logger="docparse"):
            create_runtime(settings)
        assert "['app-main', 'app-second']" in caplog.text
        assert "secret-main" not in caplog.text

    def test_empty_ledger_is_kept(self, settings):
        ledger = Ledger()
        runtime = create_runtime(settings, ledger=ledger)
        assert runtime.ledger is ledger

    @pytest.mark.asyncio
    async def test_end_to_end_with_fakes(self, settings, transport, object_store):
        runtime = create_runtime(settings, object_store=object_store, transport=transport)
        result = await runtime.orchestrator.ingest(b"data", "report.pdf")

        ack = runtime.handle_callback(
            {"appId": "app-main", "taskId": result.task_id, "status": "JOBSUCC"},
        )
        assert ack.state == "completed"

        sync = await runtime.poller.sync(result.task_id)
        assert sync.state == "completed"
        assert transport.status_calls

    def test_purge_expired(self, settings, clock):
        ledger = Ledger(clock=clock)
        runtime = create_runtime(settings, ledger=ledger)
        ledger.register_artifact("k", "old.pdf", 1)
        clock.now += timedelta(hours=settings.ledger_retention_hours + 1)
        ledger.register_artifact("k", "new.pdf", 1)
        assert runtime.purge_expired() == 1
        assert len(ledger) == 1
