"""PDF report endpoints."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter
from fastapi.responses import Response

from ..api_models import ErrorResponse, ReportRequest
from ..report.errors import ChartRenderError, NoInspectionDataError, RenderBackendError
from ..report.pipeline import ReportOptions, generate_report
from ._helpers import error_response, report_filename

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)

_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def create_report_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    async def _render(body: ReportRequest, default_layout: str) -> Response:
        generated_at = datetime.now(UTC).replace(tzinfo=None)
        try:
            options = ReportOptions(
                records=body.inspections,
                host_base=body.hostBase or state.config.report.default_host_base,
                group_by=body.groupBy,
                layout=body.layout or default_layout,
                overrides=body.project.to_overrides(),
            )
            pdf = await generate_report(
                options,
                settings=state.config.report,
                branding=state.config.branding,
                pool=state.pool,
                generated_at=generated_at,
            )
        except NoInspectionDataError as exc:
            return error_response(400, "No inspection data provided", exc)
        except ValueError as exc:
            return error_response(400, "Invalid report request", exc)
        except ChartRenderError as exc:
            LOGGER.error("Chart generation failed.", exc_info=True)
            return error_response(500, "Failed to generate charts", exc)
        except RenderBackendError as exc:
            return error_response(500, "Failed to generate PDF", exc)
        filename = report_filename(generated_at)
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @router.post("/api/reports/pdf", responses=_ERROR_RESPONSES)
    async def create_report_pdf(body: ReportRequest) -> Response:
        return await _render(body, "batch")

    @router.post("/api/reports/pdfSecondary", responses=_ERROR_RESPONSES)
    async def create_survey_report_pdf(body: ReportRequest) -> Response:
        return await _render(body, "survey")

    @router.post("/api/inspections/pdf", responses=_ERROR_RESPONSES)
    async def create_inspections_pdf(body: ReportRequest) -> Response:
        return await _render(body, "batch")

    return router
