"""Shared route helpers used across multiple route modules."""

from __future__ import annotations

import re
from datetime import datetime

from fastapi.responses import JSONResponse

from ..report.formatting import format_timestamp

_SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")

REPORT_FILENAME_PREFIX = "DROPS_Inspection_Report"


def safe_filename(name: str) -> str:
    """Sanitize *name* for use in Content-Disposition headers."""
    return _SAFE_FILENAME_RE.sub("_", name)[:200] or "download"


def report_filename(generated_at: datetime) -> str:
    return safe_filename(f"{REPORT_FILENAME_PREFIX}_{format_timestamp(generated_at)}.pdf")


def error_response(status_code: int, error: str, details: object = None) -> JSONResponse:
    """JSON ``{"error", "details"}`` body used for every report failure."""
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "details": None if details is None else str(details)},
    )
