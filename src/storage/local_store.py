# src/storage/local_store.py - v1
"""Local filesystem object store (default backend, development and tests)."""

from __future__ import annotations

import logging
from pathlib import Path

from docparse.storage.base_object_store import BaseObjectStore
from docparse.storage.models import StoredObject

logger = logging.getLogger(__name__)


class LocalObjectStore(BaseObjectStore):
    """Store objects as files under a root directory."""

    def __init__(self, root: str | Path, prefix: str = "docparse/") -> None:
        """Initialize with a root directory.

        Args:
            root: Directory holding all objects (created on demand).
            prefix: Key prefix for all objects (e.g. "docparse/").
        """
        self._root = Path(root).expanduser().resolve()
        self._prefix = prefix

    def _resolve(self, storage_key: str) -> Path:
        path = (self._root / storage_key).resolve()
        if self._root not in path.parents:
            raise ValueError(f"Key escapes storage root: {storage_key!r}")
        return path

    async def put(self, data: bytes, key: str) -> StoredObject:
        storage_key = self._join_prefix(self._prefix, key)
        path = self._resolve(storage_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Local put: %s (%d bytes)", path, len(data))
        return StoredObject(storage_key=storage_key, public_url=path.as_uri(), size=len(data))

    async def delete(self, storage_key: str) -> bool:
        path = self._resolve(storage_key)
        path.unlink(missing_ok=True)
        return True

    async def sign_url(self, storage_key: str, ttl_seconds: int) -> str:
        """Local files need no signature; the file URI is returned as-is."""
        return self._resolve(storage_key).as_uri()

    def source_uri(self, storage_key: str) -> str:
        return self._resolve(storage_key).as_uri()

    def key_from_uri(self, uri: str) -> str:
        root_uri = self._root.as_uri().rstrip("/") + "/"
        if uri.startswith(root_uri):
            return uri[len(root_uri):]
        return uri
