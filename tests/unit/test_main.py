# tests/unit/test_main.py - v1
"""Tests for main.py - CLI entry point."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs

import pytest

from docparse.core.errors import RemoteTransportError
from docparse.core.models import Artifact, IngestResult, SyncResult
from docparse.main import _build_parser, main
from docparse.signing.codec import verify

CREATE_RUNTIME = "docparse.api.facade.create_runtime"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PARSE_APP_ID", "cli-app")
    monkeypatch.setenv("PARSE_SECRET_KEY", "cli-secret")
    yield
    root = logging.getLogger("docparse")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


def _fake_runtime(sync_states: list[str] | None = None) -> MagicMock:
    runtime = MagicMock()
    runtime.orchestrator.ingest = AsyncMock(
        return_value=IngestResult(
            artifact_id="a1", task_id="T1", display_name="report.pdf", state="processing",
        )
    )
    runtime.poller.sync = AsyncMock(
        side_effect=[
            SyncResult(task_id="T1", state=state, synced=True)
            for state in (sync_states or [])
        ]
    )
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    runtime.ledger.get.return_value = Artifact(
        id="a1", display_name="report.pdf", storage_key="docparse/x.pdf",
        size_bytes=4, created_at=now, updated_at=now,
        state=(sync_states or ["processing"])[-1],
        result_location="oss://b/p",
    )
    return runtime


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self, capsys):
        parser = _build_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_ingest_defaults(self):
        args = _build_parser().parse_args(["ingest", "report.pdf"])
        assert args.command == "ingest"
        assert args.file == Path("report.pdf")
        assert args.wait is False
        assert args.interval == 5.0
        assert args.timeout == 600.0
        assert args.callback_url is None

    def test_ingest_options(self):
        args = _build_parser().parse_args([
            "ingest", "a.docx", "--wait", "--interval", "1", "--timeout", "30",
            "--callback-url", "http://cb",
        ])
        assert args.wait is True
        assert args.interval == 1.0
        assert args.timeout == 30.0
        assert args.callback_url == "http://cb"

    def test_sign_subcommand(self):
        args = _build_parser().parse_args(["sign", "a=1", "b=2", "--app-id", "x"])
        assert args.command == "sign"
        assert args.params == ["a=1", "b=2"]
        assert args.app_id == "x"


# ---------------------------------------------------------------------------
# main() integration
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command_returns_1(self):
        assert main([]) == 1

    def test_ingest_missing_file_returns_1(self, tmp_path: Path):
        assert main(["ingest", str(tmp_path / "nonexistent.pdf")]) == 1

    def test_ingest_submits(self, tmp_path: Path, capsys):
        f = tmp_path / "report.pdf"
        f.write_bytes(b"%PDF")
        runtime = _fake_runtime()
        with patch(CREATE_RUNTIME, return_value=runtime):
            assert main(["ingest", str(f)]) == 0
        runtime.orchestrator.ingest.assert_awaited_once_with(
            b"%PDF", "report.pdf", callback_address=None,
        )
        assert "T1" in capsys.readouterr().out

    def test_ingest_remote_failure(self, tmp_path: Path):
        f = tmp_path / "report.pdf"
        f.write_bytes(b"%PDF")
        runtime = _fake_runtime()
        runtime.orchestrator.ingest.side_effect = RemoteTransportError("down")
        with patch(CREATE_RUNTIME, return_value=runtime):
            assert main(["ingest", str(f)]) == 1

    def test_ingest_wait_until_completed(self, tmp_path: Path, capsys):
        f = tmp_path / "report.pdf"
        f.write_bytes(b"%PDF")
        runtime = _fake_runtime(["processing", "completed"])
        with patch(CREATE_RUNTIME, return_value=runtime):
            assert main(["ingest", str(f), "--wait", "--interval", "0"]) == 0
        assert runtime.poller.sync.await_count == 2
        assert "oss://b/p" in capsys.readouterr().out

    def test_ingest_wait_failed(self, tmp_path: Path):
        f = tmp_path / "report.pdf"
        f.write_bytes(b"%PDF")
        runtime = _fake_runtime(["failed"])
        with patch(CREATE_RUNTIME, return_value=runtime):
            assert main(["ingest", str(f), "--wait", "--interval", "0"]) == 1

    def test_ingest_wait_timeout(self, tmp_path: Path):
        f = tmp_path / "report.pdf"
        f.write_bytes(b"%PDF")
        runtime = _fake_runtime()
        with patch(CREATE_RUNTIME, return_value=runtime):
            assert main(["ingest", str(f), "--wait", "--timeout", "0"]) == 1
        runtime.poller.sync.assert_not_awaited()

    def test_sign_prints_signed_query(self, capsys):
        assert main(["sign", "fileId=F1", "page=2"]) == 0
        query = capsys.readouterr().out.strip()
        params = {k: v[0] for k, v in parse_qs(query).items()}
        assert params["appId"] == "cli-app"
        assert params["fileId"] == "F1"
        assert params["validTime"] == "3600"
        assert verify(params, "cli-secret")

    def test_sign_unknown_app_id(self):
        assert main(["sign", "a=1", "--app-id", "nobody"]) == 1

    def test_sign_bad_param(self):
        assert main(["sign", "novalue"]) == 1
