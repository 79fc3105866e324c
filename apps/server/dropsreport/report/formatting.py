"""Pure text formatting helpers shared by composers and render backends."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from markupsafe import escape

from ..inspection import PLACEHOLDER
from ..report_theme import NEUTRAL_BADGE, RISK_COLORS, STATUS_COLORS

_ENTITY_NAMES = (("&#34;", "&quot;"), ("&#39;", "&#039;"))


def escape_html(text: object) -> str:
    """Escape the five HTML-significant characters; ``None`` becomes ``""``."""
    if text is None:
        return ""
    escaped = str(escape(str(text)))
    for numeric, named in _ENTITY_NAMES:
        escaped = escaped.replace(numeric, named)
    return escaped


def format_date(value: datetime | None) -> str:
    """en-GB short date (``05/03/2025``); placeholder when missing."""
    if value is None:
        return PLACEHOLDER
    return value.strftime("%d/%m/%Y")


def format_cover_date(value: datetime | None) -> str:
    """Cover-page date, e.g. ``05 MAR 25``."""
    if value is None:
        return PLACEHOLDER
    return value.strftime("%d %b %y").upper()


def format_month_year(value: datetime | None) -> str:
    if value is None:
        return PLACEHOLDER
    return value.strftime("%B %Y")


def format_date_range(dates: Iterable[datetime | None]) -> str:
    present = [d for d in dates if d is not None]
    if not present:
        return PLACEHOLDER
    first, last = min(present), max(present)
    if first.date() == last.date():
        return format_date(first)
    return f"{format_date(first)} - {format_date(last)}"


def format_timestamp(value: datetime) -> str:
    """Compact timestamp for attachment file names."""
    return value.strftime("%Y%m%d_%H%M%S")


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1].rstrip() + "…"


def status_color(value: str | None) -> str:
    return STATUS_COLORS.get(str(value or "").strip().upper(), NEUTRAL_BADGE)


def risk_color(value: str | None) -> str:
    return RISK_COLORS.get(str(value or "").strip().upper(), NEUTRAL_BADGE)
