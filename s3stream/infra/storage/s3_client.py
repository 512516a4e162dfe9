"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from s3stream.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    RemoteOperationError,
    StorageError,
)

if TYPE_CHECKING:
    from s3stream.common.config import StorageConfig

logger = logging.getLogger("storage")


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. Timeouts and transport retries
    are left to botocore's defaults.
    """

    def __init__(self, *, config: "StorageConfig") -> None:
        """Initialize the S3 client from a storage configuration.

        Args:
            config: Storage configuration with credentials and endpoint.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._config = config
        self._client = self._build_client(config)
        logger.info(
            "s3_client_initialized bucket=%s region=%s endpoint=%s addressing=%s",
            config.bucket,
            config.region,
            config.endpoint or "<default>",
            "path" if config.use_path_style else "virtual",
        )

    @staticmethod
    def _build_client(config: "StorageConfig") -> Any:
        """Create a boto3 S3 client from the storage configuration."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = "path" if config.use_path_style else "virtual"
        client_config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=config.endpoint or None,
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            config=client_config,
        )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        """Store a whole object in a single request."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": object_key,
            "Body": body,
            "ContentLength": len(body),
        }
        if content_type:
            params["ContentType"] = content_type

        try:
            self._client.put_object(**params)
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to upload object {object_key}: {exc}",
                operation="put_object",
                key=object_key,
            ) from exc

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to create multipart upload for {object_key}: {exc}",
                operation="create_multipart_upload",
                key=object_key,
            ) from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise RemoteOperationError(
                "S3 response missing UploadId",
                operation="create_multipart_upload",
                key=object_key,
            )

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

    def upload_part(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        body: bytes,
    ) -> str:
        """Upload one numbered part and return its ETag."""
        try:
            response = self._client.upload_part(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                Body=body,
                ContentLength=len(body),
            )
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to upload part {part_number} for {object_key}: {exc}",
                operation="upload_part",
                key=object_key,
            ) from exc

        etag = response.get("ETag")
        if not etag:
            raise RemoteOperationError(
                f"S3 response missing ETag for part {part_number}",
                operation="upload_part",
                key=object_key,
            )
        return str(etag)

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        try:
            self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to complete multipart upload for {object_key}: {exc}",
                operation="complete_multipart_upload",
                key=object_key,
            ) from exc

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
            )
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to abort multipart upload for {object_key}: {exc}",
                operation="abort_multipart_upload",
                key=object_key,
            ) from exc

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to get object metadata for {object_key}: {exc}",
                operation="head_object",
                key=object_key,
            ) from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int,
    ) -> str:
        """Generate a presigned URL for downloading an object."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}

        try:
            url = self._client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=int(expires_in),
            )
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to generate presigned URL for {object_key}: {exc}",
                operation="presign_download",
                key=object_key,
            ) from exc

        if not url:
            raise RemoteOperationError(
                "Generated presigned URL is empty",
                operation="presign_download",
                key=object_key,
            )

        return str(url)

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise RemoteOperationError(
                f"Failed to delete object {object_key}: {exc}",
                operation="delete_object",
                key=object_key,
            ) from exc
