from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from s3stream.app.services.streaming_upload import MIN_PART_SIZE, StreamingUpload
from s3stream.common.config import StorageConfig
from s3stream.infra.storage.client import EmptyUploadError
from tests.services.mock_storage import MockStorageClient


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def _upload() -> StreamingUpload:
    config = StorageConfig(bucket="b", access_key_id="k", secret_access_key="s")
    return StreamingUpload(storage=MockStorageClient(), config=config, key="m.bin")


def test_completed_upload_counts_parts_and_bytes():
    parts_before = _sample("storage_parts_uploaded_total")
    bytes_before = _sample("storage_part_bytes_uploaded_total")
    done_before = _sample("storage_multipart_uploads_total", {"outcome": "completed"})

    upload = _upload()
    upload.init()
    upload.upload_part(0, b"m" * (MIN_PART_SIZE + 3))
    upload.complete()

    assert _sample("storage_parts_uploaded_total") - parts_before == 2
    assert (
        _sample("storage_part_bytes_uploaded_total") - bytes_before
        == MIN_PART_SIZE + 3
    )
    assert (
        _sample("storage_multipart_uploads_total", {"outcome": "completed"})
        - done_before
        == 1
    )


def test_failed_then_aborted_upload_counted_once():
    failed_before = _sample("storage_multipart_uploads_total", {"outcome": "failed"})
    aborted_before = _sample("storage_multipart_uploads_total", {"outcome": "aborted"})

    upload = _upload()
    upload.init()
    with pytest.raises(EmptyUploadError):
        upload.complete()
    upload.abort()

    assert (
        _sample("storage_multipart_uploads_total", {"outcome": "failed"})
        - failed_before
        == 1
    )
    assert (
        _sample("storage_multipart_uploads_total", {"outcome": "aborted"})
        == aborted_before
    )
