"""Writes the manifest and every referenced file into an artifact directory."""

from __future__ import annotations

import http.client
import os
from pathlib import Path
from typing import BinaryIO, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import (
    CopyFailedError,
    FetchFailedError,
    FileTooLargeError,
    UnknownSourceError,
)
from .logging import get_logger
from .models import HTTP_HOST, HTTPS_HOST, LOCAL_STORAGE, MANIFEST_FILENAME, FileMeta, Manifest

HTTP_TIMEOUT_SECONDS = 30.0
FILE_MODE = 0o600
DIR_MODE = 0o700
_CHUNK_SIZE = 64 * 1024

_LOGGER = get_logger("materializer")


class SizeLimitExceeded(Exception):
    """Raised by SizeLimitedReader once more than ``limit`` bytes are available."""


class SizeLimitedReader:
    """Wraps a binary stream and refuses to yield more than ``limit`` bytes."""

    def __init__(self, stream: BinaryIO, limit: int) -> None:
        self._stream = stream
        self.limit = limit
        self.consumed = 0

    def read(self, size: int = _CHUNK_SIZE) -> bytes:
        remaining = self.limit - self.consumed
        # Ask for one byte past the limit to detect oversized sources.
        chunk = self._stream.read(min(size, remaining + 1))
        if len(chunk) > remaining:
            raise SizeLimitExceeded()
        self.consumed += len(chunk)
        return chunk


def materialize(root: Path, manifest: Manifest, max_file_size: int) -> None:
    """Write ``breadcrumbs.json``, the template and every found file under ``root``."""
    root = Path(root)
    root.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

    _write_file(root / MANIFEST_FILENAME, manifest.to_json().encode("utf-8"))
    _write_file(root / manifest.template_id, manifest.template_raw)

    for meta in manifest.found_files:
        destination_dir = meta.destination_dir(root)
        destination_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        destination = destination_dir / meta.stored_at_path

        if meta.source in (HTTP_HOST, HTTPS_HOST):
            fetch_http_file(meta.found_at_path, destination, max_file_size)
        elif meta.source == LOCAL_STORAGE:
            copy_local_file(_local_source(meta, manifest), destination, max_file_size)
        else:
            raise UnknownSourceError(meta.source)
        _LOGGER.debug("Saved %s as %s", meta.found_at_path, destination)

    _LOGGER.info("Wrote %d breadcrumb file(s) to %s", len(manifest.found_files), root)


def copy_local_file(source: Path, destination: Path, max_size: int) -> None:
    """Copy ``source`` to ``destination`` unless it exceeds ``max_size`` bytes."""
    try:
        with open(source, "rb") as handle:
            _stream_to_file(
                SizeLimitedReader(handle, max_size),
                destination,
                on_overflow=lambda: FileTooLargeError(str(source), max_size, kind="local file"),
            )
    except OSError as exc:
        raise CopyFailedError(str(source), str(destination), exc.strerror or str(exc)) from exc


def fetch_http_file(
    url: str, destination: Path, max_size: int, *, timeout: float = HTTP_TIMEOUT_SECONDS
) -> None:
    """GET ``url`` into ``destination``; only a 200 response is accepted."""
    request = Request(url, method="GET")
    try:
        with urlopen(request, timeout=timeout) as response:  # type: ignore[arg-type]
            status = getattr(response, "status", None)
            if status != 200:
                raise FetchFailedError(url, f"got status code {status}", status=status)
            _stream_to_file(
                SizeLimitedReader(response, max_size),
                destination,
                on_overflow=lambda: FileTooLargeError(url, max_size, kind="http file"),
            )
    except HTTPError as exc:
        raise FetchFailedError(url, f"got status code {exc.code}", status=exc.code) from exc
    except URLError as exc:
        raise FetchFailedError(url, str(exc.reason)) from exc
    except TimeoutError as exc:
        raise FetchFailedError(url, f"timed out after {timeout:g}s") from exc
    except (OSError, http.client.HTTPException) as exc:
        raise FetchFailedError(url, str(exc) or type(exc).__name__) from exc


def _local_source(meta: FileMeta, manifest: Manifest) -> Path:
    source = Path(meta.found_at_path).expanduser()
    if not source.is_absolute() and manifest.project_dir is not None:
        return manifest.project_dir / source
    return source


def _stream_to_file(
    reader: SizeLimitedReader,
    destination: Path,
    *,
    on_overflow: Callable[[], Exception],
) -> None:
    descriptor = os.open(destination, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    try:
        with os.fdopen(descriptor, "wb") as dest:
            while True:
                chunk = reader.read(_CHUNK_SIZE)
                if not chunk:
                    break
                dest.write(chunk)
    except SizeLimitExceeded:
        destination.unlink(missing_ok=True)
        raise on_overflow() from None
    except BaseException:
        destination.unlink(missing_ok=True)
        raise


def _write_file(path: Path, data: bytes) -> None:
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(descriptor, "wb") as handle:
        handle.write(data)


__all__ = [
    "HTTP_TIMEOUT_SECONDS",
    "SizeLimitedReader",
    "copy_local_file",
    "fetch_http_file",
    "materialize",
]
