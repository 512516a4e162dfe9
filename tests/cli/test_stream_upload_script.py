from __future__ import annotations

import io

import pytest

from s3stream.app.services.storage_service import StorageService
from s3stream.app.services.streaming_upload import MIN_PART_SIZE
from s3stream.common.config import StorageConfig
from s3stream.infra.storage.client import EmptyUploadError, RemoteOperationError
from scripts.stream_upload import main, stream_upload
from tests.services.mock_storage import MockStorageClient


@pytest.fixture()
def mock_storage():
    return MockStorageClient()


@pytest.fixture()
def service(mock_storage):
    config = StorageConfig(
        bucket="b",
        access_key_id="k",
        secret_access_key="s",
        path_prefix="p",
        use_path_only=True,
    )
    return StorageService(config, storage_client=mock_storage)


def test_streams_in_chunks(service, mock_storage):
    payload = b"0123456789" * (MIN_PART_SIZE // 10 + 50)

    url = stream_upload(service, "dump.bin", io.BytesIO(payload), chunk_size=300_000)

    assert url == "p/dump.bin"
    assert mock_storage.objects["b/p/dump.bin"]["body"] == payload
    assert len(mock_storage.calls_to("upload_part")) == 2


def test_failure_aborts_session(service, mock_storage):
    mock_storage.fail("complete_multipart_upload")

    with pytest.raises(RemoteOperationError):
        stream_upload(service, "dump.bin", io.BytesIO(b"abc"))

    assert len(mock_storage.calls_to("abort_multipart_upload")) == 1


def test_empty_source_is_an_error(service, mock_storage):
    with pytest.raises(EmptyUploadError, match="No data was uploaded"):
        stream_upload(service, "dump.bin", io.BytesIO(b""))


def test_main_reports_disabled_storage(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr("scripts.stream_upload.setup_logging", lambda *a, **k: None)
    source = tmp_path / "in.bin"
    source.write_bytes(b"data")

    exit_code = main(["dump.bin", str(source)])

    assert exit_code == 1
    assert "not enabled" in capsys.readouterr().err
