"""Storage service for key-addressed object uploads.

This module provides the application service layer over an object store:
single-request uploads of local files, streaming multipart uploads,
existence checks, deletes and file URL resolution according to the
configured URL mode.
"""

from __future__ import annotations

import logging
from pathlib import Path

from s3stream.app.services.streaming_upload import StreamingUpload
from s3stream.common.config import StorageConfig, UrlMode, get_storage_config
from s3stream.infra.observability.metrics import SINGLE_UPLOADS
from s3stream.infra.storage.client import (
    StorageClient,
    StorageDisabledError,
    StorageError,
)
from s3stream.infra.storage.content_types import detect_content_type
from s3stream.infra.storage.s3_client import S3StorageClient

logger = logging.getLogger("storage")


def _strip_scheme(endpoint: str) -> str:
    for scheme in ("https://", "http://"):
        if endpoint.startswith(scheme):
            return endpoint[len(scheme) :]
    return endpoint


class StorageService:
    """Stateless facade over one bucket.

    When the configuration lacks a bucket or credentials the service is
    disabled: mutating operations raise StorageDisabledError and query
    operations return empty values, without any network call.
    """

    def __init__(
        self,
        config: StorageConfig | None = None,
        *,
        storage_client: StorageClient | None = None,
    ) -> None:
        self._config = config or get_storage_config()
        self._storage: StorageClient | None = None
        if self._config.is_enabled():
            self._storage = storage_client or S3StorageClient(config=self._config)
        else:
            logger.info("storage_disabled reason=missing_bucket_or_credentials")

    @property
    def config(self) -> StorageConfig:
        return self._config

    def is_enabled(self) -> bool:
        return self._storage is not None

    def _require_storage(self) -> StorageClient:
        if self._storage is None:
            raise StorageDisabledError()
        return self._storage

    def upload_file(self, local_path: str | Path, key: str) -> str:
        """Upload a local file in a single request.

        Args:
            local_path: File to read completely into memory.
            key: Destination key, before the configured prefix is applied.

        Returns:
            The full object key the file was stored under.

        Raises:
            StorageDisabledError: If storage is not configured.
            StorageError: If the file cannot be read or the upload fails.
        """
        storage = self._require_storage()
        object_key = self._config.full_key(key)

        try:
            content = Path(local_path).read_bytes()
        except OSError as exc:
            raise StorageError(
                f"Failed to read file: {exc}", operation="upload_file", key=object_key
            ) from exc

        try:
            storage.put_object(
                bucket=self._config.bucket,
                object_key=object_key,
                body=content,
                content_type=detect_content_type(key),
            )
        except StorageError:
            SINGLE_UPLOADS.labels("failure").inc()
            raise

        SINGLE_UPLOADS.labels("success").inc()
        logger.info("object_uploaded key=%s size=%s", object_key, len(content))
        return object_key

    def create_streaming_upload(
        self, key: str, expected_size: int | None = None
    ) -> StreamingUpload:
        """Create a NOT_STARTED streaming upload bound to ``key``.

        ``expected_size`` is advisory and only reported in logs.
        """
        storage = self._require_storage()
        return StreamingUpload(
            storage=storage,
            config=self._config,
            key=key,
            expected_size=expected_size,
        )

    def get_file_path(self, key: str) -> str:
        if self._storage is None:
            return ""
        return self._config.full_key(key)

    def get_public_url(self, key: str) -> str:
        """Build a public URL for ``key`` without contacting the store."""
        if self._storage is None:
            return ""

        config = self._config
        object_key = config.full_key(key)
        if config.endpoint:
            if config.use_path_style:
                return f"{config.endpoint}/{config.bucket}/{object_key}"
            host = _strip_scheme(config.endpoint)
            return f"https://{config.bucket}.{host}/{object_key}"

        return f"https://{config.bucket}.s3.{config.region}.amazonaws.com/{object_key}"

    def get_presigned_url(self, key: str) -> str:
        storage = self._require_storage()
        return storage.presign_download(
            bucket=self._config.bucket,
            object_key=self._config.full_key(key),
            expires_in=self._config.presigned_url_expiry_seconds,
        )

    def get_file_url(self, key: str) -> str:
        """Resolve the URL handed out for ``key`` according to the URL mode.

        PATH_ONLY returns the bare full key, PUBLIC a constructed URL, and
        PRESIGNED a time-limited URL signed by the store.
        """
        self._require_storage()
        mode = self._config.url_mode
        if mode is UrlMode.PATH_ONLY:
            return self._config.full_key(key)
        if mode is UrlMode.PUBLIC:
            return self.get_public_url(key)
        return self.get_presigned_url(key)

    resolve_url = get_file_url

    def delete_file(self, key: str) -> None:
        storage = self._require_storage()
        object_key = self._config.full_key(key)
        storage.delete_object(bucket=self._config.bucket, object_key=object_key)
        logger.info("object_deleted key=%s", object_key)

    def file_exists(self, key: str) -> bool:
        if self._storage is None:
            return False
        try:
            self._storage.head_object(
                bucket=self._config.bucket, object_key=self._config.full_key(key)
            )
        except StorageError:
            return False
        return True
