"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    CompletedPart,
    EmptyUploadError,
    MultipartUpload,
    ObjectHead,
    RemoteOperationError,
    StorageClient,
    StorageDisabledError,
    StorageError,
    UploadStateError,
)
from .content_types import detect_content_type

__all__ = [
    "CompletedPart",
    "EmptyUploadError",
    "MultipartUpload",
    "ObjectHead",
    "RemoteOperationError",
    "StorageClient",
    "StorageDisabledError",
    "StorageError",
    "UploadStateError",
    "detect_content_type",
]
