"""Shared project metadata for one report.

Resolves the names printed on the cover, QA and footer from (in order) the
caller's explicit overrides, hints carried on the first inspection record,
and the configured branding defaults.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from ..inspection import InspectionRecord, display
from .blocks import RunningText
from .formatting import format_cover_date, format_date_range, format_month_year

if TYPE_CHECKING:
    from ..config import BrandingConfig

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectOverrides:
    client_name: str | None = None
    asset_name: str | None = None
    rig_name: str | None = None
    location: str | None = None
    inspector_name: str | None = None
    report_title: str | None = None
    report_number: str | None = None
    revision: str | None = None
    prepared_by: str | None = None
    qa_reviewer: str | None = None
    approved_by: str | None = None
    approval_date: str | None = None
    logo_url: str | None = None


@dataclass(frozen=True, slots=True)
class ReportContext:
    client_name: str
    asset_name: str
    rig_name: str
    location: str
    inspector_name: str
    report_title: str
    report_number: str
    revision: str
    prepared_by: str
    qa_reviewer: str
    approved_by: str
    approval_date: str
    company_name: str
    division_line: str
    contact_line: str
    logo_url: str | None
    placeholder_photo_url: str | None
    first_inspected: datetime | None
    date_range: str
    generated_at: datetime

    @property
    def cover_date(self) -> str:
        return format_cover_date(self.first_inspected or self.generated_at)

    @property
    def inspection_month(self) -> str:
        return format_month_year(self.first_inspected or self.generated_at)

    @property
    def document_title(self) -> str:
        return f"{self.report_title} - {self.asset_name}"


def _pick(*candidates: str | None, placeholder: str = "—") -> str:
    for value in candidates:
        text = display(value, "")
        if text:
            return text
    return placeholder


def _first(records: Sequence[InspectionRecord], attr: str) -> str:
    for record in records:
        value = getattr(record, attr)
        if value:
            return value
    return ""


def build_report_context(
    records: Sequence[InspectionRecord],
    *,
    overrides: ProjectOverrides,
    branding: BrandingConfig,
    generated_at: datetime,
    logo_url: str | None = None,
    placeholder_photo_url: str | None = None,
) -> ReportContext:
    dates = [r.inspected_on for r in records]
    present = [d for d in dates if d is not None]
    return ReportContext(
        client_name=_pick(
            overrides.client_name, _first(records, "client_name"), branding.default_client_name
        ),
        asset_name=_pick(
            overrides.asset_name, _first(records, "asset_name"), branding.default_asset_name
        ),
        rig_name=_pick(overrides.rig_name, _first(records, "rig_name"), branding.default_rig_name),
        location=_pick(overrides.location, branding.default_location),
        inspector_name=_pick(overrides.inspector_name, _first(records, "inspector_name")),
        report_title=_pick(overrides.report_title, branding.report_title),
        report_number=_pick(overrides.report_number, branding.report_number),
        revision=_pick(overrides.revision, branding.revision),
        prepared_by=_pick(overrides.prepared_by, branding.prepared_by),
        qa_reviewer=_pick(overrides.qa_reviewer, branding.qa_reviewer),
        approved_by=_pick(overrides.approved_by, branding.approved_by),
        approval_date=_pick(overrides.approval_date, branding.approval_date),
        company_name=branding.company_name,
        division_line=branding.division_line,
        contact_line=branding.contact_line,
        logo_url=overrides.logo_url or logo_url,
        placeholder_photo_url=placeholder_photo_url,
        first_inspected=min(present) if present else None,
        date_range=format_date_range(dates),
        generated_at=generated_at,
    )


def running_text(ctx: ReportContext) -> RunningText:
    return RunningText(
        header_title=ctx.company_name,
        header_lines=(ctx.client_name, ctx.rig_name, ctx.report_title),
        footer_left=(
            f"Doc Title: {ctx.document_title} | Revised By: {ctx.prepared_by} "
            f"| Approved By: {ctx.approved_by}"
        ),
        footer_center=f"Doc Number: {ctx.report_number} | Revision: {ctx.revision}",
    )
