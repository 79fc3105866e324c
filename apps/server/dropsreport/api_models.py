"""Pydantic request/response models for the DROPS report HTTP API.

Kept apart from the route modules so routing logic stays distinct from the
wire contracts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .report.report_data import ProjectOverrides

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ProjectRequest(BaseModel):
    """Per-report overrides for names printed on the cover, QA page and footer."""

    clientName: str | None = None
    assetName: str | None = None
    rigName: str | None = None
    location: str | None = None
    inspectorName: str | None = None
    reportTitle: str | None = None
    reportNumber: str | None = None
    revision: str | None = None
    preparedBy: str | None = None
    qaReviewer: str | None = None
    approvedBy: str | None = None
    approvalDate: str | None = None
    # Absolute http(s) URL or a path relative to hostBase.
    logoUrl: str | None = Field(default=None, max_length=2048, pattern=r"^(https?://|/)")

    def to_overrides(self) -> ProjectOverrides:
        return ProjectOverrides(
            client_name=self.clientName,
            asset_name=self.assetName,
            rig_name=self.rigName,
            location=self.location,
            inspector_name=self.inspectorName,
            report_title=self.reportTitle,
            report_number=self.reportNumber,
            revision=self.revision,
            prepared_by=self.preparedBy,
            qa_reviewer=self.qaReviewer,
            approved_by=self.approvedBy,
            approval_date=self.approvalDate,
            logo_url=self.logoUrl,
        )


class ReportRequest(BaseModel):
    # Inspection records keep whatever keys the caller's store uses; the
    # record parser accepts camelCase, PascalCase and snake_case aliases.
    inspections: list[dict[str, Any]] = Field(default_factory=list)
    hostBase: str | None = Field(default=None, max_length=2048, pattern=r"^https?://")
    groupBy: str | None = Field(default=None, pattern="^(area|location|none)$")
    layout: str | None = Field(default=None, pattern="^(single|batch|survey)$")
    project: ProjectRequest = Field(default_factory=ProjectRequest)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: str
    details: str | None = None
