# src/core/errors.py - v1
"""Error taxonomy shared by the ledger, orchestrator and boundary layer."""

from __future__ import annotations


class DocParseError(Exception):
    """Base class for all docparse errors."""


class NotFoundError(DocParseError):
    """Unknown artifact or task on a mutating operation."""


class UnsupportedTypeError(DocParseError):
    """File kind has no upstream task-type mapping."""


class AuthFailureError(DocParseError):
    """Credential identifier could not be resolved."""


class InvalidRequestError(DocParseError):
    """A required field is missing or a request is not applicable."""


class RemoteTransportError(DocParseError):
    """Network failure or timeout talking to the parsing service."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class RemoteRejectedError(DocParseError):
    """The parsing service answered with a non-zero code."""

    def __init__(self, code: int | str | None, message: str):
        self.code = code
        self.remote_message = message
        super().__init__(f"Parsing service rejected request (code={code}): {message}")
