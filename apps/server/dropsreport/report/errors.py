"""Error taxonomy for report generation.

Input problems derive from :class:`ValueError` and map to HTTP 400; chart and
render failures derive from :class:`RuntimeError` and map to HTTP 500.
"""

from __future__ import annotations


class ReportError(Exception):
    """Base class for every report-generation failure."""


class NoInspectionDataError(ReportError, ValueError):
    """Raised when a report is requested for an empty record set."""

    def __init__(self, message: str = "No inspections provided") -> None:
        super().__init__(message)


class ChartRenderError(ReportError, RuntimeError):
    """A chart could not be rasterised; the report cannot be produced."""


class RenderBackendError(ReportError, RuntimeError):
    """The PDF render backend failed or timed out."""
