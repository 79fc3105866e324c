"""HTML/CSS render backend.

Serialises the planned pages with a Jinja2 template and converts the result
with WeasyPrint.  Page size, margins and the running header/footer come from
``@page`` rules; WeasyPrint resolves ``counter(page)`` / ``counter(pages)``
itself.  WeasyPrint is an optional extra and is imported on first render.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from ..report_theme import REPORT_COLORS
from .assembler import AssembledDocument
from .blocks import RunningText
from .errors import RenderBackendError
from .formatting import escape_html
from .photos import DEFAULT_FETCH_TIMEOUT_S, fetch_image

LOGGER = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "report.html"

PLACEHOLDER_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="160" height="120" viewBox="0 0 160 120">'
    '<rect width="160" height="120" fill="#e2e8f0"/>'
    '<text x="80" y="64" font-family="Helvetica" font-size="11" fill="#64748b" '
    'text-anchor="middle">Image unavailable</text></svg>'
).encode("utf-8")

_REMOTE_SCHEMES = ("http", "https")


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------


def png_data_uri(data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def css_string(value: object) -> Markup:
    """Quote *value* for a CSS ``content:`` declaration inside ``<style>``."""
    text = "" if value is None else str(value)
    text = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")
    text = text.replace("<", "\\3C ").replace(">", "\\3E ")
    return Markup(f'"{text}"')


def _finalize(value: object) -> Markup:
    # Macro output and css_string results are already safe.
    if isinstance(value, Markup):
        return value
    return Markup(escape_html(value))


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        finalize=_finalize,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["png_data_uri"] = png_data_uri
    env.filters["css_string"] = css_string
    return env


def render_html(
    document: AssembledDocument,
    running: RunningText,
    *,
    title: str = "",
) -> str:
    """Return the report as a standalone HTML string."""
    geo = document.geometry
    template = _environment().get_template(TEMPLATE_NAME)
    return template.render(
        title=title,
        pages=document.pages,
        running=running,
        colors=REPORT_COLORS,
        page_size=f"{geo.page_size.upper()} {geo.orientation}",
        margin_pt=round(geo.margin, 2),
    )


# ---------------------------------------------------------------------------
# Resource fetching
# ---------------------------------------------------------------------------


class _ImageFetcher:
    """WeasyPrint ``url_fetcher`` serving prefetched images first.

    Remote URLs not in the prefetched set are fetched with a bounded timeout;
    anything that cannot be fetched becomes an SVG placeholder so a missing
    photo never aborts the render.
    """

    def __init__(self, images: Mapping[str, bytes], timeout_s: float) -> None:
        self._images = images
        self._timeout_s = timeout_s

    def __call__(self, url: str) -> dict[str, Any]:
        data = self._images.get(url)
        if data is not None:
            return {"string": data, "redirected_url": url}
        scheme = urlparse(url).scheme.lower()
        if scheme == "data":
            from weasyprint import default_url_fetcher

            return default_url_fetcher(url, timeout=self._timeout_s)
        if scheme in _REMOTE_SCHEMES:
            data = fetch_image(url, timeout_s=self._timeout_s)
            if data is not None:
                return {"string": data, "redirected_url": url}
        else:
            # Local files are only served from the prefetched set.
            LOGGER.warning("Refusing to load resource %s", url)
        return {"string": PLACEHOLDER_SVG, "mime_type": "image/svg+xml"}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class HtmlBackend:
    """WeasyPrint render backend."""

    name = "html"

    def __init__(
        self,
        running: RunningText,
        *,
        images: Mapping[str, bytes] | None = None,
        title: str = "DROPS Inspection Report",
        timeout_s: float = DEFAULT_FETCH_TIMEOUT_S,
    ) -> None:
        self._running = running
        self._images = dict(images or {})
        self._title = title
        self._timeout_s = timeout_s
        # WeasyPrint paginates on its own, so there is no drawn page map.
        self.page_starts: dict[int, int] = {}

    def cancel(self) -> None:
        # write_pdf() cannot be interrupted; a timed-out render runs to
        # completion in its worker thread and the result is discarded.
        return None

    def render(self, document: AssembledDocument) -> bytes:
        try:
            from weasyprint import HTML
        except ImportError as exc:
            raise RenderBackendError(
                "The html backend needs WeasyPrint; install the 'html' extra."
            ) from exc
        try:
            html = render_html(document, self._running, title=self._title)
            return HTML(
                string=html,
                base_url=str(TEMPLATE_DIR),
                url_fetcher=_ImageFetcher(self._images, self._timeout_s),
            ).write_pdf()
        except Exception as exc:
            LOGGER.error("PDF generation failed.", exc_info=True)
            raise RenderBackendError(f"PDF generation failed: {exc}") from exc
