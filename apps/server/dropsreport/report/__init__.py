"""DROPS inspection report generation.

``generate_report`` is the single entry point; the HTTP routes and the CLI
both build a :class:`ReportOptions` and await it.
"""

from __future__ import annotations

from .errors import ChartRenderError, NoInspectionDataError, RenderBackendError, ReportError
from .pipeline import LAYOUTS, ReportOptions, generate_report
from .report_data import ProjectOverrides

__all__ = [
    "LAYOUTS",
    "ChartRenderError",
    "NoInspectionDataError",
    "ProjectOverrides",
    "RenderBackendError",
    "ReportError",
    "ReportOptions",
    "generate_report",
]
