# src/signing/credentials.py - v1
"""Registered signing credentials, looked up by identifier."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import SecretStr

from docparse.config.settings import Settings
from docparse.core.models import Credential

logger = logging.getLogger(__name__)


class CredentialRegistry:
    """Small ordered identifier -> secret mapping.

    The first registered credential is the process's own outbound
    credential; the rest are only accepted for inbound verification.
    """

    def __init__(self, credentials: Mapping[str, str]) -> None:
        self._credentials: dict[str, Credential] = {
            identifier: Credential(identifier=identifier, secret=SecretStr(secret))
            for identifier, secret in credentials.items()
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> CredentialRegistry:
        return cls(settings.credentials)

    def resolve(self, identifier: str | None) -> Credential | None:
        """Exact-match lookup. Returns None for unknown or empty identifiers."""
        if not identifier:
            return None
        credential = self._credentials.get(identifier)
        if credential is None:
            logger.debug("Unknown credential identifier: %s", identifier)
        return credential

    @property
    def primary(self) -> Credential | None:
        """Outbound credential (first registered), or None when empty."""
        return next(iter(self._credentials.values()), None)

    @property
    def identifiers(self) -> list[str]:
        return list(self._credentials)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._credentials

    def __len__(self) -> int:
        return len(self._credentials)
