# src/storage/s3_store.py - v1
"""S3-compatible object store (STORAGE_BACKEND=s3).

Supports AWS S3, Alibaba OSS, MinIO and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging

from docparse.storage.base_object_store import BaseObjectStore
from docparse.storage.models import StoredObject

logger = logging.getLogger(__name__)


class S3ObjectStore(BaseObjectStore):
    """Store uploaded documents in an S3-compatible bucket."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "docparse/",
        region: str | None = None,
        endpoint_url: str | None = None,
        uri_scheme: str = "oss",
    ) -> None:
        """Initialize S3 object store.

        Args:
            bucket: Bucket name.
            prefix: Key prefix for all objects (e.g. "docparse/").
            region: Region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for OSS/MinIO/compatible storage.
            uri_scheme: Scheme of source URIs handed to the parsing service.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 object store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix
        self._uri_scheme = uri_scheme

    async def put(self, data: bytes, key: str) -> StoredObject:
        storage_key = self._join_prefix(self._prefix, key)
        self._s3.put_object(Bucket=self._bucket, Key=storage_key, Body=data)
        logger.info("S3 put: %s/%s (%d bytes)", self._bucket, storage_key, len(data))
        return StoredObject(
            storage_key=storage_key,
            public_url=self._public_url(storage_key),
            size=len(data),
        )

    async def delete(self, storage_key: str) -> bool:
        self._s3.delete_object(Bucket=self._bucket, Key=storage_key)
        logger.info("S3 delete: %s/%s", self._bucket, storage_key)
        return True

    async def sign_url(self, storage_key: str, ttl_seconds: int) -> str:
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": storage_key},
            ExpiresIn=ttl_seconds,
        )

    def source_uri(self, storage_key: str) -> str:
        return f"{self._uri_scheme}://{self._bucket}/{storage_key}"

    def key_from_uri(self, uri: str) -> str:
        prefix = f"{self._uri_scheme}://{self._bucket}/"
        if uri.startswith(prefix):
            return uri[len(prefix):]
        return uri

    def _public_url(self, storage_key: str) -> str:
        endpoint = str(self._s3.meta.endpoint_url).rstrip("/")
        return f"{endpoint}/{self._bucket}/{storage_key}"
