"""
Key-addressed object storage with streaming multipart uploads to S3-compatible stores.
"""

from s3stream.app.services import (
    MIN_PART_SIZE,
    StorageService,
    StreamingUpload,
    UploadStatus,
)
from s3stream.common.config import StorageConfig, UrlMode, get_storage_config
from s3stream.infra.storage import (
    EmptyUploadError,
    RemoteOperationError,
    StorageDisabledError,
    StorageError,
    UploadStateError,
)

__all__ = [
    "MIN_PART_SIZE",
    "StorageService",
    "StreamingUpload",
    "UploadStatus",
    "StorageConfig",
    "UrlMode",
    "get_storage_config",
    "StorageError",
    "RemoteOperationError",
    "StorageDisabledError",
    "UploadStateError",
    "EmptyUploadError",
]
