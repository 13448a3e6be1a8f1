import io
from pathlib import Path

import pytest

from wifidata import assets
from wifidata.errors import SourceError


class _DummyResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def test_ensure_local_asset_namespaces_cache_by_url(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("WIFIDATA_ASSET_CACHE_DIR", str(tmp_path / "asset-cache"))
    monkeypatch.setenv("URL_ONE", "https://example.com/a/puntos.xlsx")
    monkeypatch.setenv("URL_TWO", "https://example.com/b/puntos.xlsx")

    payload_by_url = {
        "https://example.com/a/puntos.xlsx": b"asset-one",
        "https://example.com/b/puntos.xlsx": b"asset-two",
    }
    calls = []

    def fake_urlopen(req, timeout=60):  # noqa: ARG001
        calls.append(req.full_url)
        return _DummyResponse(payload_by_url[req.full_url])

    monkeypatch.setattr(assets.urllib.request, "urlopen", fake_urlopen)

    local_hint = tmp_path / "missing.xlsx"
    first = assets.ensure_local_asset(local_hint, url_env="URL_ONE", label="wifi source")
    second = assets.ensure_local_asset(local_hint, url_env="URL_TWO", label="wifi source")
    again = assets.ensure_local_asset(local_hint, url_env="URL_ONE", label="wifi source")

    assert first != second
    assert first.read_bytes() == b"asset-one"
    assert second.read_bytes() == b"asset-two"
    assert again == first
    assert len(calls) == 2


def test_existing_local_file_is_used_as_is(monkeypatch, tmp_path: Path):
    local = tmp_path / "puntos.xlsx"
    local.write_bytes(b"local")
    monkeypatch.setenv("URL_ONE", "https://example.com/puntos.xlsx")

    def fail_urlopen(req, timeout=60):  # noqa: ARG001
        raise AssertionError("should not download")

    monkeypatch.setattr(assets.urllib.request, "urlopen", fail_urlopen)

    assert assets.ensure_local_asset(local, url_env="URL_ONE", label="wifi source") == local


def test_missing_file_without_url_is_returned_unchanged(monkeypatch, tmp_path: Path):
    monkeypatch.delenv("URL_ONE", raising=False)
    hint = tmp_path / "nothing.xlsx"

    assert assets.ensure_local_asset(hint, url_env="URL_ONE", label="wifi source") == hint


def test_download_failure_is_a_source_error(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("WIFIDATA_ASSET_CACHE_DIR", str(tmp_path / "asset-cache"))
    monkeypatch.setenv("URL_ONE", "https://example.com/puntos.xlsx")

    def broken_urlopen(req, timeout=60):  # noqa: ARG001
        raise OSError("connection reset")

    monkeypatch.setattr(assets.urllib.request, "urlopen", broken_urlopen)

    with pytest.raises(SourceError, match="connection reset"):
        assets.ensure_local_asset(tmp_path / "puntos.xlsx", url_env="URL_ONE", label="wifi source")

    assert not list((tmp_path / "asset-cache").rglob("*.xlsx*"))
