# src/storage/store_factory.py - v1
"""Factory: instantiate the object store from configuration."""

from __future__ import annotations

from docparse.config.settings import Settings
from docparse.storage.base_object_store import BaseObjectStore
from docparse.storage.local_store import LocalObjectStore


def create_object_store(settings: Settings) -> BaseObjectStore:
    """Create the appropriate object store based on settings.

    Args:
        settings: Application settings (STORAGE_BACKEND env var).

    Returns:
        BaseObjectStore instance.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.storage_backend == "local":
        return LocalObjectStore(
            root=settings.storage_local_root,
            prefix=settings.storage_prefix,
        )

    if settings.storage_backend == "s3":
        from docparse.storage.s3_store import S3ObjectStore
        if not settings.storage_bucket:
            raise ValueError(
                "STORAGE_BUCKET must be set when STORAGE_BACKEND=s3"
            )
        return S3ObjectStore(
            bucket=settings.storage_bucket,
            prefix=settings.storage_prefix,
            region=settings.storage_region or None,
            endpoint_url=settings.storage_endpoint_url or None,
            uri_scheme=settings.storage_uri_scheme,
        )

    raise ValueError(f"Unsupported storage backend: {settings.storage_backend!r}")
