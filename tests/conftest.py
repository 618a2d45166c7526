# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides settings, a fake parsing-service transport, a local object store
and a wired orchestrator/poller pair. No network: all remote I/O is faked.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from docparse.config.settings import Settings
from docparse.ledger.store import Ledger
from docparse.logging.context import clear_context
from docparse.orchestrator.orchestrator import Orchestrator
from docparse.orchestrator.poller import ReconciliationPoller
from docparse.signing.codec import SignatureCodec
from docparse.signing.credentials import CredentialRegistry
from docparse.storage.local_store import LocalObjectStore
from docparse.transport.base_transport import BaseParseTransport
from docparse.transport.models import ParseResponse, StatusResponse

FIXED_EPOCH = 1_700_000_000.0


class FakeTransport(BaseParseTransport):
    """Scriptable parsing-service transport that records every call."""

    def __init__(self) -> None:
        self.parse_calls: list[tuple[dict[str, Any], float]] = []
        self.status_calls: list[tuple[dict[str, Any], float]] = []
        self.parse_response = ParseResponse(code=0, task_id="T1")
        self.status_response = StatusResponse(code=0, data={"status": 2})
        self.parse_error: Exception | None = None
        self.status_error: Exception | None = None

    async def parse(self, params: dict[str, Any], timeout: float) -> ParseResponse:
        self.parse_calls.append((params, timeout))
        if self.parse_error is not None:
            raise self.parse_error
        return self.parse_response

    async def status(self, params: dict[str, Any], timeout: float) -> StatusResponse:
        self.status_calls.append((params, timeout))
        if self.status_error is not None:
            raise self.status_error
        return self.status_response


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


# === FIXTURES: Configuration ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env file."""
    return Settings(
        _env_file=None,
        storage_local_root=tmp_path / "objects",
        parse_base_url="http://parser.test",
        parse_app_id="app-main",
        parse_secret_key="secret-main",
        parse_extra_credentials={"app-second": "secret-second"},
        callback_base_url="http://callback.test",
    )


@pytest.fixture
def registry(settings: Settings) -> CredentialRegistry:
    return CredentialRegistry.from_settings(settings)


@pytest.fixture
def codec(registry: CredentialRegistry) -> SignatureCodec:
    return SignatureCodec(registry)


# === FIXTURES: Collaborators ===


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def object_store(tmp_path: Path) -> LocalObjectStore:
    return LocalObjectStore(root=tmp_path / "objects", prefix="docparse/")


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def ledger(clock: SteppingClock) -> Ledger:
    return Ledger(clock=clock)


# === FIXTURES: Core ===


@pytest.fixture
def orchestrator(
    ledger: Ledger,
    codec: SignatureCodec,
    object_store: LocalObjectStore,
    transport: FakeTransport,
    settings: Settings,
) -> Orchestrator:
    return Orchestrator(
        ledger=ledger,
        codec=codec,
        object_store=object_store,
        transport=transport,
        settings=settings,
        clock=lambda: FIXED_EPOCH,
    )


@pytest.fixture
def poller(
    orchestrator: Orchestrator,
    transport: FakeTransport,
    settings: Settings,
) -> ReconciliationPoller:
    return ReconciliationPoller(
        orchestrator, transport, settings, clock=lambda: FIXED_EPOCH,
    )
