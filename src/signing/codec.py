# src/signing/codec.py - v1
"""Canonical-parameter HMAC signing shared with the parsing service.

Canonical form: drop ``signature``, None-valued entries and the reserved
tracing key; sort keys; join ``key=value`` pairs with ``&`` (no URL
encoding). Signature: upper-case hex HMAC-SHA1 of that string keyed by the
credential secret. Freshness fields (``validBegin``/``validTime``) are the
caller's business and are never added here, except by ``sign_request``
which exists to issue signed queries for clients.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from docparse.core.errors import AuthFailureError
from docparse.signing.credentials import CredentialRegistry

logger = logging.getLogger(__name__)

SIGNATURE_KEY = "signature"
TRACING_KEY = "__plasoRequestId__"
_EXCLUDED_KEYS = frozenset({SIGNATURE_KEY, TRACING_KEY})


def _stringify(value: Any) -> str:
    """Plain string form matching the vendor's JavaScript stringification."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def canonicalize(params: Mapping[str, Any]) -> str:
    """Filter, sort and join a parameter set into its canonical string."""
    pairs = [
        f"{key}={_stringify(params[key])}"
        for key in sorted(params)
        if key not in _EXCLUDED_KEYS and params[key] is not None
    ]
    return "&".join(pairs)


def sign(params: Mapping[str, Any], secret: str) -> str:
    """Compute the upper-case hex HMAC-SHA1 signature of ``params``."""
    content = canonicalize(params)
    digest = hmac.new(secret.encode("utf-8"), content.encode("utf-8"), hashlib.sha1)
    return digest.hexdigest().upper()


def verify(params: Mapping[str, Any], secret: str) -> bool:
    """Check the ``signature`` entry of ``params`` against ``secret``."""
    provided = params.get(SIGNATURE_KEY)
    if not provided:
        return False
    expected = sign(params, secret)
    return hmac.compare_digest(str(provided).upper(), expected)


def to_query_string(params: Mapping[str, Any]) -> str:
    """URL-encode a signed parameter set, skipping None values."""
    return urlencode(
        [(key, _stringify(value)) for key, value in params.items() if value is not None]
    )


class SignatureCodec:
    """Signs parameter sets with credentials from a registry."""

    def __init__(
        self,
        registry: CredentialRegistry,
        default_valid_seconds: int = 3600,
    ) -> None:
        self._registry = registry
        self._default_valid_seconds = default_valid_seconds

    @property
    def registry(self) -> CredentialRegistry:
        return self._registry

    def sign_with(self, params: Mapping[str, Any], identifier: str) -> dict[str, Any]:
        """Return a copy of ``params`` with ``signature`` added.

        Raises:
            AuthFailureError: If ``identifier`` is not registered.
        """
        credential = self._registry.resolve(identifier)
        if credential is None:
            raise AuthFailureError(f"Unknown credential identifier: {identifier!r}")
        signed = dict(params)
        signed[SIGNATURE_KEY] = sign(params, credential.secret.get_secret_value())
        return signed

    def sign_outbound(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Sign with this process's own credential, setting ``appId``.

        Raises:
            AuthFailureError: If no credential is registered.
        """
        primary = self._registry.primary
        if primary is None:
            raise AuthFailureError("No outbound credential configured")
        payload = dict(params)
        payload["appId"] = primary.identifier
        return self.sign_with(payload, primary.identifier)

    def verify_with(self, params: Mapping[str, Any], identifier: str) -> bool:
        """Verify a signed parameter set against a registered credential."""
        credential = self._registry.resolve(identifier)
        if credential is None:
            return False
        return verify(params, credential.secret.get_secret_value())

    def sign_request(
        self,
        params: Mapping[str, Any],
        identifier: str,
        now: float | None = None,
    ) -> dict[str, Any]:
        """Issue a time-bound signed query on behalf of a client.

        The server supplies ``validBegin`` (epoch seconds) and ``validTime``
        unless the caller already provides them.

        Raises:
            AuthFailureError: If ``identifier`` is not registered.
        """
        issued_at = int(time.time() if now is None else now)
        payload: dict[str, Any] = {
            "validBegin": issued_at,
            "validTime": self._default_valid_seconds,
        }
        payload.update(params)
        payload["appId"] = identifier
        signed = self.sign_with(payload, identifier)
        logger.info(
            "Issued signed query for appId=%s (%d params)", identifier, len(payload),
        )
        return signed
