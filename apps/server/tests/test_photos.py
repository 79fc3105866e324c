"""Tests for photo URL templating and best-effort fetching."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import TINY_PNG

from dropsreport.report import photos
from dropsreport.report.photos import (
    asset_url,
    fetch_image,
    local_file_url,
    photo_url,
    prefetch_images,
    request_asset_url,
)
from dropsreport.worker_pool import WorkerPool


@pytest.mark.parametrize(
    ("host_base", "photo_id", "expected"),
    [
        ("https://h", "abc", "https://h/api/images/abc"),
        ("https://h/", "abc", "https://h/api/images/abc"),
        ("https://h", "a b/c", "https://h/api/images/a%20b%2Fc"),
    ],
)
def test_photo_url(host_base: str, photo_id: str, expected: str) -> None:
    assert photo_url(host_base, photo_id) == expected


def test_asset_url_joins_single_slash() -> None:
    assert asset_url("https://h/", "/static/logo.png") == "https://h/static/logo.png"


def test_local_file_url(tmp_path: Path) -> None:
    logo = tmp_path / "logo.png"
    logo.write_bytes(TINY_PNG)
    assert local_file_url(logo) == logo.resolve().as_uri()
    assert local_file_url(tmp_path / "missing.png") is None
    assert local_file_url(None) is None


def test_fetch_reads_file_urls_only_when_allowed(tmp_path: Path) -> None:
    logo = tmp_path / "logo.png"
    logo.write_bytes(TINY_PNG)
    assert fetch_image(logo.as_uri()) is None
    assert fetch_image(logo.as_uri(), allow_file=True) == TINY_PNG


def test_fetch_refuses_other_schemes() -> None:
    assert fetch_image("ftp://h/photo.png") is None
    assert fetch_image("data:image/png;base64,AAAA") is None
    assert fetch_image("file:///etc/passwd") is None


def test_fetch_failure_returns_none(tmp_path: Path) -> None:
    assert fetch_image((tmp_path / "missing.png").as_uri(), allow_file=True) is None


def test_fetch_rejects_oversized_images(tmp_path: Path, monkeypatch) -> None:
    big = tmp_path / "big.png"
    big.write_bytes(b"x" * 64)
    monkeypatch.setattr(photos, "MAX_IMAGE_BYTES", 32)
    assert fetch_image(big.as_uri(), allow_file=True) is None


@pytest.mark.parametrize(
    ("ref", "expected"),
    [
        (None, None),
        ("", None),
        ("https://cdn/logo.png", "https://cdn/logo.png"),
        ("/static/logo.png", "https://h/static/logo.png"),
        ("file:///etc/passwd", None),
        ("data:image/png;base64,AAAA", None),
    ],
)
def test_request_asset_url(ref: str | None, expected: str | None) -> None:
    assert request_asset_url("https://h", ref) == expected


def test_prefetch_allows_file_only_for_trusted_urls(tmp_path: Path) -> None:
    logo = tmp_path / "logo.png"
    logo.write_bytes(TINY_PNG)
    other = tmp_path / "other.png"
    other.write_bytes(TINY_PNG)
    with WorkerPool(max_workers=2) as pool:
        result = prefetch_images(
            [logo.as_uri(), other.as_uri()], pool, trusted=[logo.as_uri()]
        )
    assert result == {logo.as_uri(): TINY_PNG}


def test_prefetch_deduplicates_and_drops_failures(monkeypatch) -> None:
    calls: list[str] = []

    def _fake(url: str, *, timeout_s: float = 10.0, allow_file: bool = False) -> bytes | None:
        calls.append(url)
        return None if url.endswith("bad") else url.encode()

    monkeypatch.setattr(photos, "fetch_image", _fake)
    with WorkerPool(max_workers=2) as pool:
        result = prefetch_images(["https://h/a", "https://h/bad", "https://h/a", ""], pool)
    assert result == {"https://h/a": b"https://h/a"}
    assert sorted(calls) == ["https://h/a", "https://h/bad"]
