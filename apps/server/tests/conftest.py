"""Shared test helpers for the dropsreport test suite."""

from __future__ import annotations

import base64
import os
from io import BytesIO

import pytest

os.environ.setdefault("DROPSREPORT_DISABLE_AUTO_APP", "1")

from dropsreport.config import AppConfig, default_config  # noqa: E402

# 1x1 opaque PNG used wherever a decodable photo is needed.
TINY_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA"
    "60e6kgAAAABJRU5ErkJggg=="
)

# ---------------------------------------------------------------------------
# PDF inspection helpers
# ---------------------------------------------------------------------------


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF byte string using pypdf."""
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(pdf_bytes))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def extract_page_texts(pdf_bytes: bytes) -> list[str]:
    from pypdf import PdfReader

    reader = PdfReader(BytesIO(pdf_bytes))
    return [page.extract_text() or "" for page in reader.pages]


def pdf_page_count(pdf_bytes: bytes) -> int:
    from pypdf import PdfReader

    return len(PdfReader(BytesIO(pdf_bytes)).pages)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> AppConfig:
    """Built-in defaults, independent of any config.yaml on disk."""
    return default_config()


@pytest.fixture
def no_photo_fetch(monkeypatch: pytest.MonkeyPatch) -> dict[str, int]:
    """Make every image fetch fail fast; returns a call counter."""
    calls = {"count": 0}

    def _fail(url: str, *, timeout_s: float = 10.0, allow_file: bool = False) -> None:
        calls["count"] += 1
        return None

    monkeypatch.setattr("dropsreport.report.photos.fetch_image", _fail)
    monkeypatch.setattr("dropsreport.report.html_builder.fetch_image", _fail)
    return calls
