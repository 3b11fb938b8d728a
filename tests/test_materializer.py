"""Tests for breadcrumbs.materializer."""

from __future__ import annotations

import http.client
import io
import json
import stat
from pathlib import Path
from urllib.error import HTTPError, URLError

import pytest

from breadcrumbs.errors import (
    CopyFailedError,
    FetchFailedError,
    FileTooLargeError,
    UnknownSourceError,
)
from breadcrumbs.materializer import (
    HTTP_TIMEOUT_SECONDS,
    SizeLimitedReader,
    fetch_http_file,
    materialize,
)
from breadcrumbs.models import FileMeta, Manifest
from tests._fixtures.project_builder import ProjectBuilder


class FakeResponse:
    def __init__(self, body: bytes, status: int = 200) -> None:
        self.status = status
        self._body = io.BytesIO(body)

    def read(self, size: int = -1) -> bytes:
        return self._body.read(size)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _manifest(*files: FileMeta, project_dir: Path | None = None) -> Manifest:
    return Manifest(
        plugin_version="1.2.3",
        git_revision="abc123",
        build_name="centos7",
        build_type="virtualbox-iso",
        user_variables={},
        include_suffixes=(".ks",),
        template_id="f" * 64,
        found_files=tuple(files),
        template_raw=b'{"kickstart": "a.ks"}\n',
        project_dir=project_dir,
    )


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def test_materialize_writes_manifest_template_and_local_file(project: ProjectBuilder, tmp_path: Path) -> None:
    project.template('{\n  "kickstart": "scripts/ks.ks"\n}\n')
    project.write({"scripts/ks.ks": "install\n"})
    manifest = project.manifest()
    out = tmp_path / "out" / "crumbs"

    materialize(out, manifest, 100)

    manifest_path = out / "breadcrumbs.json"
    assert manifest_path.read_text(encoding="utf-8") == manifest.to_json()
    assert json.loads(manifest_path.read_text(encoding="utf-8"))["git_revision"]
    assert (out / manifest.template_id).read_bytes() == project.template_path.read_bytes()

    stored = out / manifest.found_files[0].stored_at_path
    assert stored.read_text(encoding="utf-8") == "install\n"

    assert _mode(out) & 0o077 == 0
    for path in (manifest_path, out / manifest.template_id, stored):
        assert _mode(path) & 0o177 == 0


def test_local_file_at_limit_is_copied(tmp_path: Path) -> None:
    source = tmp_path / "exact.ks"
    source.write_bytes(b"x" * 10)
    meta = FileMeta.from_path(str(source))
    out = tmp_path / "out"

    materialize(out, _manifest(meta), 10)

    assert (out / meta.stored_at_path).read_bytes() == b"x" * 10


def test_local_file_over_limit_is_rejected(tmp_path: Path) -> None:
    source = tmp_path / "big.ks"
    source.write_bytes(b"x" * 11)
    meta = FileMeta.from_path(str(source))
    out = tmp_path / "out"

    with pytest.raises(FileTooLargeError) as excinfo:
        materialize(out, _manifest(meta), 10)

    assert excinfo.value.source == str(source)
    assert excinfo.value.limit == 10
    assert str(source) in str(excinfo.value)
    assert not (out / meta.stored_at_path).exists()


def test_oversized_copy_replaces_previous_partial_output(tmp_path: Path) -> None:
    source = tmp_path / "big.ks"
    source.write_bytes(b"y" * 50)
    meta = FileMeta.from_path(str(source))
    out = tmp_path / "out"
    out.mkdir()
    (out / meta.stored_at_path).write_bytes(b"stale" * 100)

    with pytest.raises(FileTooLargeError):
        materialize(out, _manifest(meta), 20)

    assert not (out / meta.stored_at_path).exists()


def test_missing_local_file_fails_with_copy_context(tmp_path: Path) -> None:
    source = tmp_path / "gone.ks"
    meta = FileMeta.from_path(str(source))
    out = tmp_path / "out"

    with pytest.raises(CopyFailedError) as excinfo:
        materialize(out, _manifest(meta), 100)

    assert excinfo.value.source == str(source)
    assert excinfo.value.destination == str(out / meta.stored_at_path)
    assert "failed to copy local file" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_relative_local_path_resolves_against_project_dir(tmp_path: Path) -> None:
    project_dir = tmp_path / "project"
    (project_dir / "http").mkdir(parents=True)
    (project_dir / "http" / "ks.ks").write_text("install\n", encoding="utf-8")
    meta = FileMeta.from_path("http/ks.ks")
    out = tmp_path / "out"

    materialize(out, _manifest(meta, project_dir=project_dir), 100)

    assert (out / meta.stored_at_path).read_text(encoding="utf-8") == "install\n"


def test_http_file_is_fetched(monkeypatch, tmp_path: Path) -> None:
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["url"] = request.full_url
        captured["method"] = request.get_method()
        captured["timeout"] = timeout
        return FakeResponse(b"kickstart body")

    monkeypatch.setattr("breadcrumbs.materializer.urlopen", fake_urlopen)
    meta = FileMeta.from_path("https://x.com/a.ks")
    out = tmp_path / "out"

    materialize(out, _manifest(meta), 100)

    assert (out / meta.stored_at_path).read_bytes() == b"kickstart body"
    assert captured == {"url": "https://x.com/a.ks", "method": "GET", "timeout": HTTP_TIMEOUT_SECONDS}
    assert HTTP_TIMEOUT_SECONDS == 30.0


def test_http_not_found_fails_with_status(monkeypatch, tmp_path: Path) -> None:
    def fake_urlopen(request, timeout=None):
        raise HTTPError(request.full_url, 404, "Not Found", None, None)

    monkeypatch.setattr("breadcrumbs.materializer.urlopen", fake_urlopen)
    meta = FileMeta.from_path("http://x.com/missing.ks")

    with pytest.raises(FetchFailedError) as excinfo:
        materialize(tmp_path / "out", _manifest(meta), 100)

    assert excinfo.value.status == 404
    assert excinfo.value.url == "http://x.com/missing.ks"
    assert "404" in str(excinfo.value)
    assert "http://x.com/missing.ks" in str(excinfo.value)


def test_http_non_ok_success_status_is_rejected(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        "breadcrumbs.materializer.urlopen",
        lambda request, timeout=None: FakeResponse(b"partial", status=206),
    )
    meta = FileMeta.from_path("http://x.com/a.ks")

    with pytest.raises(FetchFailedError) as excinfo:
        materialize(tmp_path / "out", _manifest(meta), 100)

    assert excinfo.value.status == 206
    assert not (tmp_path / "out" / meta.stored_at_path).exists()


def test_http_network_error_fails(monkeypatch, tmp_path: Path) -> None:
    def fake_urlopen(request, timeout=None):
        raise URLError("connection refused")

    monkeypatch.setattr("breadcrumbs.materializer.urlopen", fake_urlopen)
    meta = FileMeta.from_path("http://x.com/a.ks")

    with pytest.raises(FetchFailedError) as excinfo:
        materialize(tmp_path / "out", _manifest(meta), 100)

    assert excinfo.value.status is None
    assert "connection refused" in str(excinfo.value)


class BrokenResponse(FakeResponse):
    def __init__(self, error: Exception) -> None:
        super().__init__(b"", status=200)
        self._error = error

    def read(self, size: int = -1) -> bytes:
        raise self._error


@pytest.mark.parametrize(
    "error",
    [
        ConnectionResetError("reset by peer"),
        http.client.IncompleteRead(b"ab", expected=10),
    ],
)
def test_http_body_interrupted_mid_stream_fails(monkeypatch, tmp_path: Path, error: Exception) -> None:
    monkeypatch.setattr(
        "breadcrumbs.materializer.urlopen",
        lambda request, timeout=None: BrokenResponse(error),
    )
    destination = tmp_path / "a.ks"

    with pytest.raises(FetchFailedError) as excinfo:
        fetch_http_file("http://x.com/a.ks", destination, 100)

    assert excinfo.value.url == "http://x.com/a.ks"
    assert excinfo.value.__cause__ is error
    assert not destination.exists()


def test_http_body_over_limit_is_rejected(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        "breadcrumbs.materializer.urlopen",
        lambda request, timeout=None: FakeResponse(b"z" * 11),
    )
    meta = FileMeta.from_path("https://x.com/big.ks")
    out = tmp_path / "out"

    with pytest.raises(FileTooLargeError) as excinfo:
        materialize(out, _manifest(meta), 10)

    assert excinfo.value.source == "https://x.com/big.ks"
    assert not (out / meta.stored_at_path).exists()


def test_unknown_source_is_rejected(tmp_path: Path) -> None:
    meta = FileMeta(name="a.ks", found_at_path="ftp://x/a.ks", stored_at_path="0" * 64, source="ftp_host")

    with pytest.raises(UnknownSourceError) as excinfo:
        materialize(tmp_path / "out", _manifest(meta), 100)

    assert excinfo.value.source == "ftp_host"


def test_size_limited_reader_allows_exact_limit() -> None:
    reader = SizeLimitedReader(io.BytesIO(b"abcd"), 4)

    assert reader.read(2) == b"ab"
    assert reader.read(10) == b"cd"
    assert reader.read(10) == b""
    assert reader.consumed == 4
