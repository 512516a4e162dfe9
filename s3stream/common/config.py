from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_REGION = "us-east-1"
DEFAULT_PRESIGNED_URL_EXPIRY_SECONDS = 3600
# SigV4 presigned URLs cannot outlive seven days.
MAX_PRESIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 3600


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


class UrlMode(str, Enum):
    """How stored objects are addressed when handing out a file URL."""

    PATH_ONLY = "path_only"
    PUBLIC = "public"
    PRESIGNED = "presigned"


@dataclass(frozen=True)
class StorageConfig:
    bucket: str = ""
    region: str = DEFAULT_REGION
    access_key_id: str = ""
    secret_access_key: str = ""
    endpoint: str = ""
    path_prefix: str = ""
    use_path_style: bool = False
    use_public_urls: bool = False
    use_path_only: bool = False
    presigned_url_expiry_seconds: int = DEFAULT_PRESIGNED_URL_EXPIRY_SECONDS

    def __post_init__(self) -> None:
        expiry = int(self.presigned_url_expiry_seconds)
        if not 1 <= expiry <= MAX_PRESIGNED_URL_EXPIRY_SECONDS:
            raise ValueError(
                "presigned_url_expiry_seconds (S3_PRESIGNED_URL_EXPIRY_SECONDS) "
                f"must be between 1 and {MAX_PRESIGNED_URL_EXPIRY_SECONDS}, got {expiry}."
            )
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "presigned_url_expiry_seconds", expiry)
        object.__setattr__(self, "path_prefix", (self.path_prefix or "").strip("/"))
        object.__setattr__(self, "endpoint", (self.endpoint or "").rstrip("/"))
        object.__setattr__(self, "region", self.region or DEFAULT_REGION)

    def __repr__(self) -> str:
        return (
            f"StorageConfig(bucket={self.bucket!r}, region={self.region!r}, "
            f"endpoint={self.endpoint!r}, path_prefix={self.path_prefix!r}, "
            f"use_path_style={self.use_path_style}, url_mode={self.url_mode.value})"
        )

    def is_enabled(self) -> bool:
        return bool(self.bucket and self.access_key_id and self.secret_access_key)

    @property
    def url_mode(self) -> UrlMode:
        if self.use_path_only:
            return UrlMode.PATH_ONLY
        if self.use_public_urls:
            return UrlMode.PUBLIC
        return UrlMode.PRESIGNED

    def full_key(self, key: str) -> str:
        if not self.path_prefix:
            return key
        return f"{self.path_prefix}/{key}"

    @classmethod
    def from_environment(cls) -> "StorageConfig":
        _load_env_file()
        return cls(
            bucket=os.environ.get("S3_BUCKET", "").strip(),
            region=os.environ.get("S3_REGION", DEFAULT_REGION).strip(),
            access_key_id=os.environ.get("S3_ACCESS_KEY_ID", "").strip(),
            secret_access_key=os.environ.get("S3_SECRET_ACCESS_KEY", "").strip(),
            endpoint=os.environ.get("S3_ENDPOINT", "").strip(),
            path_prefix=os.environ.get("S3_PATH_PREFIX", ""),
            use_path_style=_as_bool(
                os.environ.get("S3_USE_PATH_STYLE"), cls.use_path_style
            ),
            use_public_urls=_as_bool(
                os.environ.get("S3_USE_PUBLIC_URLS"), cls.use_public_urls
            ),
            use_path_only=_as_bool(
                os.environ.get("S3_USE_PATH_ONLY"), cls.use_path_only
            ),
            presigned_url_expiry_seconds=int(
                os.environ.get(
                    "S3_PRESIGNED_URL_EXPIRY_SECONDS",
                    cls.presigned_url_expiry_seconds,
                )
            ),
        )


@lru_cache(maxsize=1)
def get_storage_config() -> StorageConfig:
    return StorageConfig.from_environment()
