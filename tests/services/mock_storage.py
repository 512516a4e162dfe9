"""Mock storage client for testing upload operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from s3stream.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    RemoteOperationError,
)


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient for testing.

    Every call is recorded in ``calls`` as ``(method, kwargs)``. Put a method
    name in ``failures`` to make its next calls raise RemoteOperationError;
    a count limits how many calls fail before it recovers.
    """

    uploads: dict[str, dict[str, Any]] = field(default_factory=dict)
    objects: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    failures: dict[str, int] = field(default_factory=dict)
    _upload_counter: int = field(default=0)

    def fail(self, method: str, times: int = 1) -> None:
        """Test helper to make ``method`` fail for the next ``times`` calls."""
        self.failures[method] = times

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    def _record(self, method: str, **kwargs: Any) -> None:
        self.calls.append((method, kwargs))
        remaining = self.failures.get(method, 0)
        if remaining > 0:
            self.failures[method] = remaining - 1
            raise RemoteOperationError(
                f"Failed to {method}: mock failure",
                operation=method,
                key=kwargs.get("object_key"),
            )

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes,
        content_type: str | None = None,
    ) -> None:
        self._record(
            "put_object",
            bucket=bucket,
            object_key=object_key,
            body=body,
            content_type=content_type,
        )
        self.objects[f"{bucket}/{object_key}"] = {
            "body": bytes(body),
            "content_type": content_type,
            "etag": f"mock-etag-{len(self.objects) + 1}",
        }

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
    ) -> MultipartUpload:
        self._record(
            "init_multipart_upload",
            bucket=bucket,
            object_key=object_key,
            content_type=content_type,
        )
        self._upload_counter += 1
        upload_id = f"mock-upload-{self._upload_counter}"
        self.uploads[upload_id] = {
            "bucket": bucket,
            "object_key": object_key,
            "content_type": content_type,
            "parts": {},
            "completed": False,
            "aborted": False,
        }
        return MultipartUpload(
            upload_id=upload_id, bucket=bucket, object_key=object_key
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
        self._record(
            "upload_part",
            bucket=bucket,
            object_key=object_key,
            upload_id=upload_id,
            part_number=part_number,
            size=len(body),
        )
        if upload_id not in self.uploads:
            raise ValueError(f"Upload {upload_id} not found")
        etag = f'"etag-{upload_id}-{part_number}"'
        self.uploads[upload_id]["parts"][part_number] = (etag, bytes(body))
        return etag

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        self._record(
            "complete_multipart_upload",
            bucket=bucket,
            object_key=object_key,
            upload_id=upload_id,
            parts=list(parts),
        )
        if upload_id not in self.uploads:
            raise ValueError(f"Upload {upload_id} not found")

        upload = self.uploads[upload_id]
        upload["completed"] = True
        stored = upload["parts"]
        body = b"".join(stored[p.part_number][1] for p in parts)
        self.objects[f"{bucket}/{object_key}"] = {
            "body": body,
            "content_type": upload["content_type"],
            "etag": f"mock-etag-{upload_id}",
        }

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        self._record(
            "abort_multipart_upload",
            bucket=bucket,
            object_key=object_key,
            upload_id=upload_id,
        )
        if upload_id in self.uploads:
            self.uploads[upload_id]["aborted"] = True

    def head_object(
        self,
        *,
        bucket: str,
        object_key: str,
    ) -> ObjectHead:
        self._record("head_object", bucket=bucket, object_key=object_key)
        key = f"{bucket}/{object_key}"
        if key not in self.objects:
            raise RemoteOperationError(
                "Failed to get object metadata: Not Found",
                operation="head_object",
                key=object_key,
            )

        obj = self.objects[key]
        return ObjectHead(
            size_bytes=len(obj["body"]),
            etag=obj.get("etag"),
            content_type=obj.get("content_type"),
        )

    def presign_download(
        self,
        *,
        bucket: str,
        object_key: str,
        expires_in: int = 3600,
    ) -> str:
        self._record(
            "presign_download",
            bucket=bucket,
            object_key=object_key,
            expires_in=expires_in,
        )
        return f"https://mock-s3/{bucket}/{object_key}?expires={expires_in}"

    def delete_object(
        self,
        *,
        bucket: str,
        object_key: str,
    ) -> None:
        self._record("delete_object", bucket=bucket, object_key=object_key)
        self.objects.pop(f"{bucket}/{object_key}", None)
