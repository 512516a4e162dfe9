"""Streaming multipart upload engine.

A StreamingUpload turns arbitrarily sized, in-order writes into S3 multipart
parts. Writes are buffered until at least MIN_PART_SIZE bytes are pending,
at which point exactly MIN_PART_SIZE bytes are flushed as the next part.
The remainder, whatever its size, becomes the final part on complete().

Lifecycle::

    NOT_STARTED --init--> IN_PROGRESS --complete--> COMPLETED
    NOT_STARTED / IN_PROGRESS --error-------------> FAILED
    any state but COMPLETED --abort---------------> ABORTED

Instances are single-writer: callers must not drive one instance from more
than one thread at a time. Distinct instances are independent.
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import TYPE_CHECKING

from s3stream.infra.observability.metrics import (
    MULTIPART_UPLOADS,
    PART_BYTES_UPLOADED,
    PARTS_UPLOADED,
)
from s3stream.infra.storage.client import (
    CompletedPart,
    EmptyUploadError,
    StorageClient,
    UploadStateError,
)
from s3stream.infra.storage.content_types import detect_content_type

if TYPE_CHECKING:
    from s3stream.common.config import StorageConfig

logger = logging.getLogger("storage")

# Lower bound S3 enforces on every part but the last.
MIN_PART_SIZE = 5 * 1024 * 1024


class UploadStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


class StreamingUpload:
    """One multipart upload session for one destination key.

    Obtain instances from ``StorageService.create_streaming_upload`` and drive
    them through ``init() -> upload_part()* -> complete()`` or ``abort()``.
    Used as a context manager, leaving the block without completing aborts
    the remote session.
    """

    def __init__(
        self,
        *,
        storage: StorageClient,
        config: "StorageConfig",
        key: str,
        expected_size: int | None = None,
    ) -> None:
        self._storage = storage
        self._config = config
        self._key = key
        self._object_key = config.full_key(key)
        self._expected_size = expected_size
        self._status = UploadStatus.NOT_STARTED
        self._upload_id = ""
        self._buffer = bytearray()
        self._parts: list[CompletedPart] = []
        self._uploaded_bytes = 0

    def __repr__(self) -> str:
        return (
            f"StreamingUpload(object_key={self._object_key!r}, "
            f"status={self._status.value}, parts={len(self._parts)}, "
            f"uploaded_bytes={self._uploaded_bytes})"
        )

    @property
    def key(self) -> str:
        return self._key

    @property
    def object_key(self) -> str:
        return self._object_key

    @property
    def status(self) -> UploadStatus:
        return self._status

    @property
    def upload_id(self) -> str:
        return self._upload_id

    @property
    def uploaded_bytes(self) -> int:
        return self._uploaded_bytes

    @property
    def expected_size(self) -> int | None:
        return self._expected_size

    @property
    def buffered_bytes(self) -> int:
        return len(self._buffer)

    @property
    def parts(self) -> tuple[CompletedPart, ...]:
        return tuple(self._parts)

    @property
    def is_active(self) -> bool:
        return self._status in (UploadStatus.NOT_STARTED, UploadStatus.IN_PROGRESS)

    def init(self) -> None:
        """Allocate the remote multipart session.

        Raises:
            UploadStateError: If the upload was already started.
            StorageError: If the store refuses the session; the upload is FAILED.
        """
        if self._status is not UploadStatus.NOT_STARTED:
            raise UploadStateError(
                "Upload already started", operation="init", key=self._object_key
            )

        try:
            upload = self._storage.init_multipart_upload(
                bucket=self._config.bucket,
                object_key=self._object_key,
                content_type=detect_content_type(self._object_key),
            )
        except Exception as exc:
            self._fail("init", exc)
            raise

        self._upload_id = upload.upload_id
        self._status = UploadStatus.IN_PROGRESS
        logger.info(
            "multipart_upload_started key=%s upload_id=%s expected_size=%s",
            self._object_key,
            self._upload_id,
            self._expected_size if self._expected_size is not None else "-",
        )

    def upload_part(self, offset: int, data: bytes) -> None:
        """Append ``data`` and flush every full part now available.

        ``offset`` is informational: writes are assumed to arrive in order
        and are never reordered or validated against it.

        Raises:
            UploadStateError: If the upload is not in progress.
            StorageError: If flushing a part fails; the upload is FAILED.
        """
        self._ensure_in_progress("upload_part")

        if offset != self._uploaded_bytes:
            logger.debug(
                "multipart_upload_offset_mismatch key=%s offset=%s expected=%s",
                self._object_key,
                offset,
                self._uploaded_bytes,
            )

        self._buffer += data
        try:
            while len(self._buffer) >= MIN_PART_SIZE:
                self._flush_part(MIN_PART_SIZE)
        except Exception as exc:
            self._fail("upload_part", exc)
            raise

        self._uploaded_bytes += len(data)

    def complete(self) -> str:
        """Flush the remaining buffer as the last part and finish the upload.

        Returns:
            The full object key the data was stored under.

        Raises:
            UploadStateError: If the upload is not in progress.
            EmptyUploadError: If no data was ever written; the session is aborted.
            StorageError: If the final flush or completion fails.
        """
        self._ensure_in_progress("complete")

        try:
            if self._buffer:
                self._flush_part(len(self._buffer))

            if not self._parts:
                self._abort_remote()
                raise EmptyUploadError(
                    "No data was uploaded", operation="complete", key=self._object_key
                )

            self._storage.complete_multipart_upload(
                bucket=self._config.bucket,
                object_key=self._object_key,
                upload_id=self._upload_id,
                parts=list(self._parts),
            )
        except Exception as exc:
            self._fail("complete", exc)
            raise

        self._status = UploadStatus.COMPLETED
        MULTIPART_UPLOADS.labels("completed").inc()
        logger.info(
            "multipart_upload_completed key=%s upload_id=%s parts=%s bytes=%s",
            self._object_key,
            self._upload_id,
            len(self._parts),
            self._uploaded_bytes,
        )
        return self._object_key

    def abort(self) -> None:
        """Cancel the upload. Never raises for remote failures.

        No-op once COMPLETED or ABORTED. Otherwise the remote session, if any,
        is aborted best-effort and local state is cleared unconditionally.
        """
        if self._status in (UploadStatus.COMPLETED, UploadStatus.ABORTED):
            return

        previous = self._status
        self._abort_remote()
        self._buffer.clear()
        self._parts.clear()
        self._status = UploadStatus.ABORTED
        # failed uploads were already counted once
        if previous is not UploadStatus.FAILED:
            MULTIPART_UPLOADS.labels("aborted").inc()

    def close(self) -> None:
        """Abort if the remote session would otherwise be left dangling."""
        if self._status is UploadStatus.IN_PROGRESS or (
            self._status is UploadStatus.FAILED and self._upload_id
        ):
            logger.warning(
                "multipart_upload_abandoned key=%s upload_id=%s status=%s",
                self._object_key,
                self._upload_id,
                self._status.value,
            )
            self.abort()

    def __enter__(self) -> "StreamingUpload":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # skip half-built instances and interpreter shutdown
        if getattr(self, "_status", None) is None or sys.is_finalizing():
            return
        self.close()

    def _ensure_in_progress(self, operation: str) -> None:
        if self._status is not UploadStatus.IN_PROGRESS:
            raise UploadStateError(
                f"Upload not in progress (status={self._status.value})",
                operation=operation,
                key=self._object_key,
            )

    def _flush_part(self, size: int) -> None:
        part_number = len(self._parts) + 1
        body = bytes(self._buffer[:size])
        etag = self._storage.upload_part(
            bucket=self._config.bucket,
            object_key=self._object_key,
            upload_id=self._upload_id,
            part_number=part_number,
            body=body,
        )
        self._parts.append(
            CompletedPart(part_number=part_number, etag=etag, size_bytes=size)
        )
        del self._buffer[:size]

        PARTS_UPLOADED.inc()
        PART_BYTES_UPLOADED.inc(size)
        logger.debug(
            "multipart_part_uploaded key=%s part_number=%s size=%s",
            self._object_key,
            part_number,
            size,
        )

    def _abort_remote(self) -> None:
        if not self._upload_id:
            return
        try:
            self._storage.abort_multipart_upload(
                bucket=self._config.bucket,
                object_key=self._object_key,
                upload_id=self._upload_id,
            )
        except Exception as exc:
            logger.warning(
                "multipart_upload_abort_failed key=%s upload_id=%s error=%s",
                self._object_key,
                self._upload_id,
                exc,
            )
        else:
            logger.info(
                "multipart_upload_aborted key=%s upload_id=%s",
                self._object_key,
                self._upload_id,
            )
        self._upload_id = ""

    def _fail(self, operation: str, exc: Exception) -> None:
        self._status = UploadStatus.FAILED
        MULTIPART_UPLOADS.labels("failed").inc()
        logger.error(
            "multipart_upload_failed operation=%s key=%s upload_id=%s error=%s",
            operation,
            self._object_key,
            self._upload_id or "-",
            exc,
            extra={
                "extra": {
                    "operation": operation,
                    "key": self._object_key,
                    "upload_id": self._upload_id,
                    "parts": len(self._parts),
                    "uploaded_bytes": self._uploaded_bytes,
                }
            },
        )

