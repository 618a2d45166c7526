# src/storage/base_object_store.py - v1
"""Abstract object store interface for uploaded source documents."""

from __future__ import annotations

from abc import ABC, abstractmethod

from docparse.storage.models import StoredObject


class BaseObjectStore(ABC):
    """Unified interface for object storage backends.

    Keys passed to ``put`` are relative; the returned ``storage_key`` is
    namespaced under the configured prefix and is what ``delete``,
    ``sign_url`` and ``source_uri`` expect.
    """

    @abstractmethod
    async def put(self, data: bytes, key: str) -> StoredObject:
        """Store ``data`` under the prefixed ``key``."""

    @abstractmethod
    async def delete(self, storage_key: str) -> bool:
        """Delete an object. Returns True once it no longer exists."""

    @abstractmethod
    async def sign_url(self, storage_key: str, ttl_seconds: int) -> str:
        """Time-limited read URL for an object."""

    @abstractmethod
    def source_uri(self, storage_key: str) -> str:
        """URI the parsing service uses to fetch the object."""

    @abstractmethod
    def key_from_uri(self, uri: str) -> str:
        """Inverse of ``source_uri``: strip the scheme/bucket prefix if present."""

    def _join_prefix(self, prefix: str, key: str) -> str:
        prefix = prefix.rstrip("/") + "/" if prefix else ""
        return f"{prefix}{key.lstrip('/')}"
