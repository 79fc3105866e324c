"""Tests for the Jinja2/WeasyPrint render backend."""

from __future__ import annotations

import sys

import pytest
from conftest import TINY_PNG, extract_pdf_text

from dropsreport.report.assembler import assemble
from dropsreport.report.blocks import (
    Cell,
    ChartImage,
    ChartRow,
    DetailBlock,
    DetailField,
    DocumentSection,
    Heading,
    RunningText,
    Table,
    TextBlock,
)
from dropsreport.report.errors import RenderBackendError
from dropsreport.report.html_builder import (
    PLACEHOLDER_SVG,
    HtmlBackend,
    _ImageFetcher,
    css_string,
    render_html,
)
from dropsreport.report.pdf_layout import PageGeometry

RUNNING = RunningText(
    header_title="OCS Group",
    header_lines=("Acme", "Alpha-1", "Drops Register"),
    footer_left='Doc Title: "Drops" </style>',
    footer_center="Doc Number: DR-1 | Revision: 0",
)


def _document(*blocks, geometry: PageGeometry | None = None):
    return assemble([DocumentSection("detail", tuple(blocks))], geometry or PageGeometry())


def test_text_is_html_escaped() -> None:
    html = render_html(_document(TextBlock(("<script>alert('x')</script> & more",))), RUNNING)
    assert "<script>alert" not in html
    assert "&lt;script&gt;alert(&#039;x&#039;)&lt;/script&gt; &amp; more" in html


def test_page_rules_follow_geometry() -> None:
    geometry = PageGeometry(page_size="A3", orientation="landscape")
    html = render_html(_document(Heading("X"), geometry=geometry), RUNNING)
    assert "size: A3 landscape;" in html
    assert 'counter(page) " of " counter(pages)' in html


def test_running_text_cannot_break_out_of_style() -> None:
    html = render_html(_document(Heading("X")), RUNNING)
    assert "\\3C /style\\3E " in html
    assert '\\"Drops\\"' in html


def test_css_string_escaping() -> None:
    assert css_string('a "b" \\ c') == '"a \\"b\\" \\\\ c"'
    assert css_string(None) == '""'


def test_charts_are_embedded_as_data_uris() -> None:
    chart = ChartImage("risk", "Risk", TINY_PNG, 2.0)
    html = render_html(_document(ChartRow((chart,))), RUNNING)
    assert 'src="data:image/png;base64,' in html


def test_detail_badges_and_photos() -> None:
    block = DetailBlock(
        ordinal=1,
        title="1. EQ-1",
        fields=(DetailField("Status", "PASS", badge_color="#22c55e"),),
        photo_urls=("https://h/api/images/a",),
    )
    html = render_html(_document(block), RUNNING)
    assert 'class="badge" style="background: #22c55e"' in html
    assert 'src="https://h/api/images/a"' in html


def test_table_column_widths_are_percentages() -> None:
    table = Table(header=("A", "B"), rows=((Cell("1"), Cell("2")),), col_weights=(1, 3))
    html = render_html(_document(table), RUNNING)
    assert "width: 25.0%" in html
    assert "width: 75.0%" in html


class TestImageFetcher:
    def test_prefetched_images_are_served(self) -> None:
        fetcher = _ImageFetcher({"https://h/a": TINY_PNG}, timeout_s=1.0)
        assert fetcher("https://h/a")["string"] == TINY_PNG

    def test_failed_fetch_becomes_placeholder(self, no_photo_fetch: dict[str, int]) -> None:
        result = _ImageFetcher({}, timeout_s=1.0)("https://h/missing")
        assert result["string"] == PLACEHOLDER_SVG
        assert result["mime_type"] == "image/svg+xml"
        assert no_photo_fetch["count"] == 1

    def test_local_files_are_refused_unless_prefetched(
        self, tmp_path, no_photo_fetch: dict[str, int]
    ) -> None:
        secret = tmp_path / "secret.png"
        secret.write_bytes(TINY_PNG)
        result = _ImageFetcher({}, timeout_s=1.0)(secret.as_uri())
        assert result["string"] == PLACEHOLDER_SVG
        assert no_photo_fetch["count"] == 0
        served = _ImageFetcher({secret.as_uri(): TINY_PNG}, timeout_s=1.0)(secret.as_uri())
        assert served["string"] == TINY_PNG


def test_missing_weasyprint_raises_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "weasyprint", None)
    with pytest.raises(RenderBackendError, match="WeasyPrint"):
        HtmlBackend(RUNNING).render(_document(Heading("X")))


def test_renders_pdf_with_weasyprint(no_photo_fetch: dict[str, int]) -> None:
    pytest.importorskip("weasyprint")
    block = DetailBlock(
        ordinal=1,
        title="1. EQ-001 Flood light",
        fields=(DetailField("Equipment No", "EQ-001"),),
        photo_urls=("https://h/api/images/missing",),
    )
    pdf = HtmlBackend(RUNNING).render(_document(Heading("DETAILS"), block))
    assert pdf.startswith(b"%PDF")
    text = extract_pdf_text(pdf)
    assert "EQ-001" in text
    assert "Page 1 of 1" in text
