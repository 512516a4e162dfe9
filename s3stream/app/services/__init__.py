from .storage_service import StorageService
from .streaming_upload import (
    MIN_PART_SIZE,
    StreamingUpload,
    UploadStatus,
)

__all__ = [
    "StorageService",
    "StreamingUpload",
    "UploadStatus",
    "MIN_PART_SIZE",
]
