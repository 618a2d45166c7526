# src/transport/http_transport.py - v1
"""HTTP transport to the document parsing service REST API.

POST <base>/document/parser with a JSON body, GET <base>/document/status
with query parameters. Calls run in a worker thread under an overall
deadline so the event loop never blocks on the network.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import urlencode

from docparse.core.errors import RemoteTransportError
from docparse.signing.codec import SIGNATURE_KEY
from docparse.transport.base_transport import BaseParseTransport
from docparse.transport.models import ParseResponse, StatusResponse

logger = logging.getLogger(__name__)


def _remote_message(body: dict[str, Any]) -> str | None:
    message = body.get("msg") or body.get("message")
    return str(message) if message else None


def _reply_code(body: dict[str, Any]) -> int | str | None:
    """Reply code as sent; anything not an int is kept in string form."""
    code = body.get("code")
    if code is None or isinstance(code, int):
        return code
    return str(code)


def _redact(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if k != SIGNATURE_KEY}


class HttpParseTransport(BaseParseTransport):
    """Parsing-service client over urllib."""

    def __init__(self, base_url: str) -> None:
        self._base_url = base_url.rstrip("/")

    async def parse(self, params: dict[str, Any], timeout: float) -> ParseResponse:
        url = f"{self._base_url}/document/parser"
        payload = json.dumps(params).encode("utf-8")
        request = urllib.request.Request(
            url,
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        logger.info("POST %s params=%s", url, _redact(params))
        body = await self._call(request, timeout)
        obj = body.get("obj") or {}
        task_id = obj.get("taskId") if isinstance(obj, dict) else None
        return ParseResponse(
            code=_reply_code(body),
            task_id=str(task_id) if task_id is not None else None,
            message=_remote_message(body),
        )

    async def status(self, params: dict[str, Any], timeout: float) -> StatusResponse:
        url = f"{self._base_url}/document/status?{urlencode(params)}"
        request = urllib.request.Request(url, method="GET")
        logger.debug("GET %s/document/status params=%s", self._base_url, _redact(params))
        body = await self._call(request, timeout)
        data = body.get("data")
        return StatusResponse(
            code=_reply_code(body),
            data=data if isinstance(data, dict) else None,
            message=_remote_message(body),
        )

    async def _call(self, request: urllib.request.Request, timeout: float) -> dict[str, Any]:
        """Run the blocking request with both socket and overall deadlines."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._send, request, timeout), timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise RemoteTransportError(
                f"Parsing service timed out after {timeout:.0f}s"
            ) from e

    @staticmethod
    def _send(request: urllib.request.Request, timeout: float) -> dict[str, Any]:
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            detail = e.reason
            try:
                detail = _remote_message(json.loads(e.read().decode("utf-8"))) or detail
            except (ValueError, AttributeError):
                pass
            raise RemoteTransportError(
                f"Parsing service error ({e.code}): {detail}", status=e.code,
            ) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise RemoteTransportError(
                f"Parsing service did not respond: {e}"
            ) from e

        try:
            body = json.loads(raw)
        except ValueError as e:
            raise RemoteTransportError("Parsing service returned malformed JSON") from e
        if not isinstance(body, dict):
            raise RemoteTransportError("Parsing service returned an unexpected payload")
        return body
