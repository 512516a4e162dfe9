from __future__ import annotations

import pytest

from s3stream.common.config import get_storage_config

S3_ENV_VARS = (
    "S3_BUCKET",
    "S3_REGION",
    "S3_ACCESS_KEY_ID",
    "S3_SECRET_ACCESS_KEY",
    "S3_ENDPOINT",
    "S3_PATH_PREFIX",
    "S3_USE_PATH_STYLE",
    "S3_USE_PUBLIC_URLS",
    "S3_USE_PATH_ONLY",
    "S3_PRESIGNED_URL_EXPIRY_SECONDS",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    # keep a developer's .env and S3_* variables out of the tests
    monkeypatch.chdir(tmp_path)
    for name in S3_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_storage_config.cache_clear()  # type: ignore[attr-defined]
    yield
    get_storage_config.cache_clear()  # type: ignore[attr-defined]
