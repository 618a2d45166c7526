# src/transport/base_transport.py - v1
"""Abstract transport to the remote document parsing service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from docparse.transport.models import ParseResponse, StatusResponse


class BaseParseTransport(ABC):
    """Unified interface for parsing-service transports.

    Implementations raise RemoteTransportError for network failures and
    timeouts; a non-zero ``code`` in a well-formed reply is returned, not
    raised, so callers can classify it.
    """

    @abstractmethod
    async def parse(self, params: dict[str, Any], timeout: float) -> ParseResponse:
        """Submit a signed parse request."""

    @abstractmethod
    async def status(self, params: dict[str, Any], timeout: float) -> StatusResponse:
        """Query the status of a task with signed parameters."""
