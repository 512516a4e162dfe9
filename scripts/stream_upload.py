#!/usr/bin/env python3
"""Stream a local file or stdin into object storage.

Usage:
  .venv/bin/python scripts/stream_upload.py backups/db.dump ./db.dump
  pg_dump mydb | .venv/bin/python scripts/stream_upload.py backups/db.dump -

Reads the source in --chunk-size pieces and feeds them to a multipart
streaming upload, so the whole payload is never held in memory. Storage is
configured through the S3_* environment variables (or .env).
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import BinaryIO, Iterator

from s3stream.app.services.storage_service import StorageService
from s3stream.common.logging import setup_logging
from s3stream.infra.storage.client import StorageError

DEFAULT_CHUNK_SIZE = 1024 * 1024

logger = logging.getLogger("storage")


def _iter_chunks(stream: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk


def stream_upload(
    service: StorageService,
    key: str,
    stream: BinaryIO,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    expected_size: int | None = None,
) -> str:
    """Upload everything readable from ``stream`` under ``key``.

    Returns the resolved file URL. The upload is aborted on any failure.
    """
    with service.create_streaming_upload(key, expected_size) as upload:
        upload.init()
        offset = 0
        for chunk in _iter_chunks(stream, chunk_size):
            upload.upload_part(offset, chunk)
            offset += len(chunk)
        upload.complete()
    return service.get_file_url(key)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Stream data into object storage")
    parser.add_argument("key", help="Destination key (the path prefix is applied)")
    parser.add_argument("source", help="Local file to upload, or '-' for stdin")
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help="Bytes read per write (default: 1 MiB)",
    )
    parser.add_argument(
        "--expected-size",
        type=int,
        default=None,
        help="Advisory total size, reported in logs",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)
    if args.chunk_size <= 0:
        parser.error("--chunk-size must be positive")

    setup_logging(args.log_level, json_output=False)
    service = StorageService()
    try:
        if args.source == "-":
            url = stream_upload(
                service,
                args.key,
                sys.stdin.buffer,
                chunk_size=args.chunk_size,
                expected_size=args.expected_size,
            )
        else:
            with open(args.source, "rb") as source:
                url = stream_upload(
                    service,
                    args.key,
                    source,
                    chunk_size=args.chunk_size,
                    expected_size=args.expected_size,
                )
    except (StorageError, OSError) as exc:
        logger.error("stream_upload_failed key=%s error=%s", args.key, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
