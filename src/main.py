# src/main.py - v1
"""CLI entry point: ingest and sign commands.

Usage:
    docparse ingest <file> [--wait] [--interval S] [--timeout S]
    docparse sign KEY=VALUE ... [--app-id ID]

The ledger lives for the lifetime of the process, so ``ingest --wait``
polls the parsing service until the task reaches a terminal state.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any

from docparse.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        _setup_logging(args.verbose)
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docparse",
        description=f"docparse v{__version__} - document parse-task tracker",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- ingest ---
    p_ingest = subparsers.add_parser(
        "ingest", help="Upload a document and submit it for parsing",
    )
    p_ingest.add_argument("file", type=Path, help="Path to document")
    p_ingest.add_argument(
        "--callback-url", default=None,
        help="Callback address (default: CALLBACK_BASE_URL + CALLBACK_PATH)",
    )
    p_ingest.add_argument(
        "--wait", action="store_true",
        help="Poll the parsing service until the task finishes",
    )
    p_ingest.add_argument(
        "--interval", type=float, default=5.0,
        help="Seconds between status polls (default: 5)",
    )
    p_ingest.add_argument(
        "--timeout", type=float, default=600.0,
        help="Give up waiting after this many seconds (default: 600)",
    )
    p_ingest.set_defaults(func=_cmd_ingest)

    # --- sign ---
    p_sign = subparsers.add_parser(
        "sign", help="Print a signed query string for a client",
    )
    p_sign.add_argument(
        "params", nargs="*", metavar="KEY=VALUE",
        help="Parameters to sign",
    )
    p_sign.add_argument(
        "--app-id", default=None,
        help="Credential identifier (default: PARSE_APP_ID)",
    )
    p_sign.set_defaults(func=_cmd_sign)

    return parser


async def _cmd_ingest(args: argparse.Namespace) -> int:
    """Upload, submit and optionally wait for one document."""
    from docparse.api.facade import create_runtime
    from docparse.core.errors import DocParseError
    from docparse.ledger.lifecycle import is_terminal

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    runtime = create_runtime()
    try:
        result = await runtime.orchestrator.ingest(
            file_path.read_bytes(), file_path.name,
            callback_address=args.callback_url,
        )
    except DocParseError as e:
        logger.error("Ingest failed: %s", e)
        return 1

    print(f"\nSubmitted {result.display_name}:")
    print(f"  Artifact ID:  {result.artifact_id}")
    print(f"  Task ID:      {result.task_id}")

    if not args.wait:
        return 0

    deadline = time.monotonic() + args.timeout
    state = result.state
    while not is_terminal(state):
        if time.monotonic() >= deadline:
            logger.error("Timed out waiting for task %s (state=%s)", result.task_id, state)
            return 1
        await asyncio.sleep(args.interval)
        sync = await runtime.poller.sync(result.task_id)
        state = sync.state
        if sync.error:
            logger.info("Poll failed, will retry: %s", sync.error)

    artifact = runtime.ledger.get(result.artifact_id)
    _print_artifact_summary(artifact)
    return 0 if state == "completed" else 1


async def _cmd_sign(args: argparse.Namespace) -> int:
    """Sign KEY=VALUE parameters and print the query string."""
    from docparse.config.settings import Settings
    from docparse.signing.codec import SignatureCodec, to_query_string
    from docparse.signing.credentials import CredentialRegistry

    params: dict[str, str] = {}
    for item in args.params:
        key, sep, value = item.partition("=")
        if not sep or not key:
            logger.error("Expected KEY=VALUE, got %r", item)
            return 1
        params[key] = value

    settings = Settings()
    codec = SignatureCodec(
        CredentialRegistry.from_settings(settings),
        default_valid_seconds=settings.client_signature_valid_seconds,
    )
    signed = codec.sign_request(params, args.app_id or settings.parse_app_id)
    print(to_query_string(signed))
    return 0


def _print_artifact_summary(artifact: Any) -> None:
    """Print a human-readable summary of an Artifact."""
    if artifact is None:
        print("\nArtifact no longer present")
        return
    print("\nParsing finished:")
    print(f"  State:        {artifact.state}")
    if artifact.result_location:
        print(f"  Result:       {artifact.result_location}")
    if artifact.result_metadata and "convertPages" in artifact.result_metadata:
        print(f"  Pages:        {artifact.result_metadata['convertPages']}")
    if artifact.failure_reason:
        print(f"  Reason:       {artifact.failure_reason}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from settings."""
    from docparse.config.settings import Settings
    from docparse.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format="text" if sys.stderr.isatty() else settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
