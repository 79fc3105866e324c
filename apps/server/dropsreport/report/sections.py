"""Section composers.

Each composer is a pure function of records, stats, chart images and the
shared :class:`ReportContext`, returning :class:`DocumentSection` values.
Nothing here measures or draws; pagination belongs to the assembler.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..inspection import PLACEHOLDER, InspectionRecord, display
from ..report_theme import DEFINITION_COLORS, REPORT_COLORS, STATUS_COLORS
from .aggregation import AggregateStats, compute_stats
from .blocks import (
    Cell,
    ChartImage,
    ChartRow,
    CommentBox,
    Cover,
    DetailBlock,
    DetailField,
    Divider,
    DocumentSection,
    GroupHeader,
    Heading,
    KeyValueTable,
    PageBreak,
    StatCell,
    StatGrid,
    Table,
    TextBlock,
)
from .charts import ChartSpec
from .formatting import format_date, risk_color, status_color
from .photos import photo_url
from .report_data import ReportContext

# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------

QA_STATEMENT = (
    "The signatures below are to approve this document as accurate, and that it has "
    "been accepted for client distribution."
)
QA_SIGNATORIES: tuple[str, ...] = ("PROJECT MANAGEMENT", "QUALITY ASSURANCE", "OPERATIONS")

FAULT_DEFINITIONS: tuple[tuple[str, str], ...] = (
    (
        "CRITICAL",
        "A defect identified in Zone 0 that compromises the hazardous area design and "
        "integrity of the equipment that if left uncorrected may lead equipment failure, "
        "Asset damage, personal injury or death. See example sheet.",
    ),
    (
        "MAJOR",
        "A defect identified in Zone 1 that could compromise the integrity of the "
        "equipment, that if left uncorrected may lead to equipment failure, Asset damage, "
        "personal injury or death. See example sheet.",
    ),
    (
        "MINOR",
        "A defect identified in Zone 2 that compromises the regulatory suitability of the "
        "equipment. See example sheet.",
    ),
    (
        "OBSERVATION",
        "A significant detail, not to be considered a defect, but still worthy of notation.",
    ),
    (
        "REPAIRED",
        "An identified defect, either Critical, Major or Minor, that has since been "
        "repaired by competent personnel and re-inspected, and is no longer considered "
        "a defect.",
    ),
)

STATUS_DEFINITIONS: tuple[tuple[str, str], ...] = (
    ("PASS", "Equipment found to be in good working order, acceptable for the area installed."),
    ("FAIL", "Equipment found to be in poor condition, or unacceptable for the area installed."),
    ("NO ACCESS", "Equipment was unable to be inspected due to lack of access."),
)

MISSION_PARAGRAPHS: tuple[str, ...] = (
    "{company} is dedicated to become the world's premier provider in Commissioning, "
    "Audits, Inspections and Technical Training within the oil, gas and energy industry.",
    "Our mission will be achieved through innovation to improve our service quality and "
    "customer satisfaction in a cost effective manner with the highest regard to safety "
    "and the environment.",
    '"Excellence" is where we start; "Perfection" is our aim.',
)

DISCLAIMER_INTRO: tuple[str, ...] = (
    "This report, prepared by {company} is confidential. It has been prepared on behalf "
    'of the client mentioned on the cover page ("the client") and is issued pursuant to '
    "an agreement between {company} and the client. It has been produced according to the "
    "scope of work and is only suitable for use in connection therewith.",
    "All measures and decisions based on this analysis and these findings are the sole "
    "responsibility of the client. {company} does not accept:",
)
DISCLAIMER_BULLETS: tuple[str, ...] = (
    "Any liability for the identification, indication or elimination of dangers and "
    "non-compliances (in the broadest sense of the word), nor for any damage caused by "
    "any of these;",
    "Any obligation to report all facts or circumstances established during the visit. "
    "This obligation comes completely under the authority and responsibility of the client;",
    "Any liability for the client's obligations resulting from (legal) rules and/or statutes;",
    "Any liability or responsibility whatsoever in respect of or reliance upon this report "
    "by any third party.",
)
DISCLAIMER_OUTRO: tuple[str, ...] = (
    "The execution of improvements recommended by {company} does not indemnify the client "
    "against any legal or contractual obligations and offers no safeguard against the "
    "elimination of dangers or damages resulting from the client's products, services, "
    "company assets, etcetera.",
    "No part of this publication may be reproduced, stored in a retrieval system or "
    "transmitted in any form or by any means, electronic, mechanical, photocopying, "
    "recording, or otherwise without prior permission, in writing, of {company}, except "
    "for restricted use within the client's organization.",
)

SURVEY_OBJECTIVE = (
    "The objective of this Inspection is to conduct a dropped object inspection. The "
    "inspection was carried out in accordance to DROPS guidelines (Dropped Object "
    "Prevention Scheme Recommended Practice). The aim and objective of this survey is to "
    "minimize and eliminate the potential hazards of dropped objects."
)

TOC_SURVEY_WORKSCOPE = "A. SURVEY WORKSCOPE"
TOC_REPORT_SUMMARY = "B. REPORT SUMMARY"
TOC_APPENDIX = "C. APPENDIX A: DROPPED OBJECT INSPECTION RESULT"

SURVEY_COLUMNS: tuple[str, ...] = (
    "No.",
    "Photo",
    "Photo Ref No.",
    "Item Description",
    "Location",
    "Accessible",
    "Fastening Method",
    "Inspection Freq",
    "How to Inspect",
    "Condition",
    "Comments & Recommendations",
)
SURVEY_COLUMN_WEIGHTS: tuple[float, ...] = (3, 15, 7, 9, 7, 6, 12, 7, 12, 8, 14)
SURVEY_ROW_HEIGHT = 74.0  # ~26 mm, room for a photo thumbnail
DEFAULT_INSPECTION_FREQUENCY = "7 Days"
STATS_COLUMNS: tuple[str, ...] = ("Total", "Pass", "Fail", "Pending", "Critical", "Major", "Minor")
SUMMARY_COLUMNS: tuple[str, ...] = (
    "Area No.",
    "Area Description",
    "Inspected Items",
    "Satisfactory",
    "Unsatisfactory",
)


def _fmt(template: str, ctx: ReportContext) -> str:
    return template.format(company=ctx.company_name)


# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


def compose_cover(ctx: ReportContext, *, with_revision: bool = False) -> DocumentSection:
    header: tuple[str, ...] = ()
    row: tuple[str, ...] = ()
    if with_revision:
        header = ("Revision", "Approve Date", "Prepared By", "Quality Review", "Approve by")
        row = (ctx.revision, ctx.approval_date, ctx.prepared_by, ctx.qa_reviewer, ctx.approved_by)
    cover = Cover(
        title=ctx.report_title,
        cover_date=ctx.cover_date,
        client_name=ctx.client_name,
        asset_name=ctx.asset_name,
        rig_name=ctx.rig_name,
        report_title=ctx.report_title,
        company_line=ctx.division_line,
        contact_line=ctx.contact_line,
        logo_url=ctx.logo_url,
        revision_header=header,
        revision_row=row,
    )
    return DocumentSection("cover", (cover,))


def compose_qa(ctx: ReportContext, page_number: int | None = None) -> DocumentSection:
    signatures = Table(
        header=("(3 signatures required)", "Signature", "Date"),
        rows=tuple((Cell(role, bold=True), Cell(""), Cell("")) for role in QA_SIGNATORIES),
        col_weights=(2, 3, 1.5),
        row_height=36.0,
    )
    document = KeyValueTable(
        rows=(
            ("Document Title", ctx.document_title),
            ("Document Number", ctx.report_number),
            ("Revised By", ctx.prepared_by),
            ("Revision", ctx.revision),
            ("Approved By", ctx.approved_by),
            ("Approval Date", ctx.approval_date),
        ),
    )
    metadata = KeyValueTable(
        rows=(
            ("Asset", ctx.asset_name),
            ("Inspected By", ctx.inspector_name),
            ("Inspection Date", ctx.inspection_month),
            ("QA Review", ctx.qa_reviewer),
            ("Page No", str(page_number) if page_number else PLACEHOLDER),
            ("Contact", ctx.contact_line),
        ),
    )
    return DocumentSection(
        "qa",
        (Heading("QUALITY ASSURANCE"), TextBlock((QA_STATEMENT,)), signatures, document, metadata),
        title="Quality Assurance",
    )


def compose_definitions() -> DocumentSection:
    def _table(title: str, entries: Sequence[tuple[str, str]]) -> Table:
        return Table(
            title=title,
            header=("Classification", "Definition"),
            rows=tuple(
                (Cell(name, color=DEFINITION_COLORS[name], bold=True), Cell(text))
                for name, text in entries
            ),
            col_weights=(1, 4),
            font_size=8,
        )

    return DocumentSection(
        "definitions",
        (
            Heading("DROPS AREA EQUIPMENT REGISTER", "DEFINITIONS"),
            _table("FAULT CLASSIFICATION", FAULT_DEFINITIONS),
            _table("STATUS", STATUS_DEFINITIONS),
        ),
        title="Definitions",
    )


def compose_toc(entries: Sequence[tuple[str, int]]) -> DocumentSection:
    """Contents page; *entries* are ``(title, first page)`` pairs."""
    rows = tuple(
        (Cell(title), Cell(str(page) if page > 0 else PLACEHOLDER)) for title, page in entries
    )
    return DocumentSection(
        "toc",
        (
            Heading("TABLE OF CONTENTS"),
            Table(header=("Section", "Page"), rows=rows, col_weights=(6, 1)),
        ),
    )


def compose_report_info(ctx: ReportContext) -> DocumentSection:
    info = KeyValueTable(
        title="Report Information",
        rows=(
            ("Client", ctx.client_name),
            ("Asset / Rig", f"{ctx.asset_name} / {ctx.rig_name}"),
            ("Location", ctx.location),
            ("Report Title", ctx.report_title),
            ("Report Number", ctx.report_number),
            ("Inspection Date", ctx.date_range),
        ),
    )
    history = Table(
        title="Report Revision History",
        header=("Revision", "Date", "Description", "Prepared By", "Approved By"),
        rows=(
            (
                Cell(ctx.revision),
                Cell(ctx.approval_date),
                Cell("Issued for client review"),
                Cell(ctx.prepared_by),
                Cell(ctx.approved_by),
            ),
        ),
    )
    return DocumentSection("info", (Heading(ctx.report_title, ctx.client_name), info, history))


def compose_disclaimer(ctx: ReportContext) -> DocumentSection:
    return DocumentSection(
        "disclaimer",
        (
            Heading("MISSION STATEMENT"),
            TextBlock(tuple(_fmt(p, ctx) for p in MISSION_PARAGRAPHS), align="center"),
            Heading("Disclaimer"),
            TextBlock(
                tuple(_fmt(p, ctx) for p in DISCLAIMER_INTRO),
                bullets=DISCLAIMER_BULLETS,
                font_size=8,
            ),
            TextBlock(tuple(_fmt(p, ctx) for p in DISCLAIMER_OUTRO), font_size=8),
        ),
    )


def compose_workscope(ctx: ReportContext) -> DocumentSection:
    where = f" at {ctx.location}" if ctx.location != PLACEHOLDER else ""
    paragraphs = (
        f"{ctx.company_name} survey team attended {ctx.rig_name} ({ctx.asset_name}){where} "
        "to conduct a dropped object inspection onboard.",
        "The dropped object inspection covers the potential dropped objects and any "
        "unauthorized or approved modification to the structure.",
        "A full register with photograph reference is developed stating position, method "
        "of fastening and control of frequency. Comments and recommendations are given for "
        "unsatisfactory securing methods.",
    )
    return DocumentSection(
        "workscope",
        (Heading(TOC_SURVEY_WORKSCOPE), TextBlock(paragraphs)),
        title=TOC_SURVEY_WORKSCOPE,
    )


# ---------------------------------------------------------------------------
# Statistics & charts
# ---------------------------------------------------------------------------


def stat_cells(stats: AggregateStats) -> tuple[StatCell, ...]:
    return (
        StatCell("Total", stats.total, REPORT_COLORS["primary"]),
        StatCell("Pass", stats.pass_count, STATUS_COLORS["PASS"]),
        StatCell("Fail", stats.fail_count, STATUS_COLORS["FAIL"]),
        StatCell("Pending", stats.pending_count, STATUS_COLORS["PENDING"]),
        StatCell("Critical", stats.critical_count, risk_color("CRITICAL")),
        StatCell("Major", stats.major_count, risk_color("MAJOR")),
        StatCell("Minor", stats.minor_count, risk_color("MINOR")),
    )


def _stats_row(name: str, stats: AggregateStats, *, bold: bool = False) -> tuple[Cell, ...]:
    values = (
        stats.total,
        stats.pass_count,
        stats.fail_count,
        stats.pending_count,
        stats.critical_count,
        stats.major_count,
        stats.minor_count,
    )
    return (Cell(name, bold=bold),) + tuple(Cell(str(v), bold=bold) for v in values)


def compose_statistics(
    overall: AggregateStats,
    grouped: Sequence[tuple[str, AggregateStats]] = (),
    *,
    group_label: str = "Area",
) -> DocumentSection:
    """Stat grid plus, when *grouped* is given, one row per group and an overall row.

    *grouped* is expected sorted by name ascending (see ``grouped_stats``).
    """
    blocks: list = [Heading("INSPECTION STATISTICS"), StatGrid(stat_cells(overall))]
    if grouped:
        rows = [_stats_row(name, stats) for name, stats in grouped]
        rows.append(_stats_row("Overall", overall, bold=True))
        blocks.append(
            Table(
                title=f"Breakdown by {group_label}",
                header=(group_label,) + STATS_COLUMNS,
                rows=tuple(rows),
                col_weights=(4, 1, 1, 1, 1, 1, 1, 1),
            )
        )
    return DocumentSection("statistics", tuple(blocks), title="Inspection Statistics")


def compose_charts(specs: Sequence[ChartSpec], images: Mapping[str, bytes]) -> DocumentSection:
    """Analytics page: the first chart full width, the rest side by side."""
    charts = [ChartImage(s.key, s.title, images[s.key], s.aspect) for s in specs]
    blocks: list = [Heading("ANALYTICS")]
    if charts:
        blocks.append(ChartRow((charts[0],)))
    if len(charts) > 1:
        blocks.append(ChartRow(tuple(charts[1:])))
    return DocumentSection("charts", tuple(blocks), title="Analytics")


def compose_summary(
    ctx: ReportContext,
    overall: AggregateStats,
    grouped: Sequence[tuple[str, AggregateStats]],
) -> DocumentSection:
    narrative = (
        f"On behalf of {ctx.client_name}, the {ctx.company_name} inspector attended "
        f"{ctx.rig_name}, {ctx.date_range}.",
        SURVEY_OBJECTIVE,
        f"A total of {overall.total} items were inspected with {overall.pass_count} "
        f"satisfactory and {overall.unsatisfactory} recommended for corrective actions. "
        "A breakdown is detailed below:",
    )
    rows = [
        (
            Cell(f"{i}."),
            Cell(name),
            Cell(str(s.total)),
            Cell(str(s.pass_count)),
            Cell(str(s.unsatisfactory)),
        )
        for i, (name, s) in enumerate(grouped, start=1)
    ]
    rows.append(
        (
            Cell(""),
            Cell("Total", bold=True),
            Cell(str(overall.total), bold=True),
            Cell(str(overall.pass_count), bold=True),
            Cell(str(overall.unsatisfactory), bold=True),
        )
    )
    table = Table(
        header=SUMMARY_COLUMNS,
        rows=tuple(rows),
        col_weights=(1, 4, 1.5, 1.5, 1.5),
    )
    return DocumentSection(
        "summary",
        (Heading(TOC_REPORT_SUMMARY), TextBlock(narrative), table),
        title=TOC_REPORT_SUMMARY,
    )


# ---------------------------------------------------------------------------
# Detail pages
# ---------------------------------------------------------------------------


def detail_block(record: InspectionRecord, ordinal: int, host_base: str) -> DetailBlock:
    """Fixed-order field grid, then photos and non-empty comment boxes only."""
    fields = (
        DetailField("Equipment No", display(record.equipment_number)),
        DetailField("Area", display(record.area_name)),
        DetailField("Location", display(record.location_name)),
        DetailField("Equipment", display(record.equipment_name)),
        DetailField("Control", display(record.control_method)),
        DetailField("Risk", record.risk_label, badge_color=risk_color(record.risk_key)),
        DetailField("Environmental Factor", display(record.environmental_factor)),
        DetailField("Consequence", display(record.consequence)),
        DetailField("Serial No", display(record.serial_no)),
        DetailField("Status", record.status_label, badge_color=status_color(record.status_key)),
        DetailField("Repaired Status", record.repaired_label),
        DetailField("Inspector", display(record.inspector_name)),
        DetailField("Date", format_date(record.inspected_on)),
    )
    comments = [CommentBox(label, text) for label, text in record.comment_fields()]
    if record.fastening_method:
        comments.append(CommentBox("Fastening Method", record.fastening_method))
    if record.secondary_fastening_method:
        comments.append(CommentBox("Secondary Fastening Method", record.secondary_fastening_method))
    title = " · ".join(
        part for part in (record.equipment_number, record.equipment_name) if part
    ) or "Inspection Item"
    return DetailBlock(
        ordinal=ordinal,
        title=f"{ordinal}. {title}",
        fields=fields,
        photo_urls=tuple(photo_url(host_base, pid) for pid in record.photos),
        comments=tuple(comments),
    )


def compose_details(
    groups: Mapping[str, Sequence[InspectionRecord]],
    host_base: str,
    *,
    grouped: bool,
    group_label: str = "Area",
) -> list[DocumentSection]:
    """Detail sections; when *grouped*, one section per group headed by its mini stats."""
    ordinal = 0
    if not grouped:
        flat: list[DetailBlock] = []
        for records in groups.values():
            for record in records:
                ordinal += 1
                flat.append(detail_block(record, ordinal, host_base))
        return [DocumentSection("detail", tuple(flat), title="Inspection Details")]

    sections: list[DocumentSection] = []
    for name, records in groups.items():
        blocks: list = [GroupHeader(name, compute_stats(records), label=group_label)]
        for record in records:
            ordinal += 1
            blocks.append(detail_block(record, ordinal, host_base))
        sections.append(DocumentSection("detail", tuple(blocks), title=f"{group_label}: {name}"))
    return sections


def _survey_row(
    record: InspectionRecord,
    number: int,
    host_base: str,
    placeholder_url: str | None,
) -> tuple[Cell, ...]:
    photo = photo_url(host_base, record.photos[0]) if record.photos else placeholder_url
    condition_color = (
        STATUS_COLORS["PASS"] if record.status_key == "PASS" else REPORT_COLORS["condition_fail"]
    )
    fastening = (
        f"Primary: {display(record.fastening_method, 'None')}\n"
        f"Secondary: {display(record.secondary_fastening_method, 'None')}"
    )
    remarks: list[str] = []
    if record.secondary_comments:
        remarks.append(f"> {record.secondary_comments}")
    if record.comments:
        remarks.append(f"RECOMMENDATION\n{record.comments}")
    return (
        Cell(str(number)),
        Cell("" if photo else "No photo", image_url=photo),
        Cell(record.equipment_number),
        Cell(record.equipment_name),
        Cell(record.location_name),
        Cell("Yes"),
        Cell(fastening),
        Cell(display(record.control_method, DEFAULT_INSPECTION_FREQUENCY)),
        Cell(record.primary_comments),
        Cell(record.status_label, color=condition_color, bold=True),
        Cell("\n".join(remarks)),
    )


def compose_appendix_divider() -> DocumentSection:
    return DocumentSection(
        "appendix",
        (Divider("APPENDIX A", "DROPPED OBJECT INSPECTION RESULT"),),
        title=TOC_APPENDIX,
    )


def compose_inspected_items(
    groups: Mapping[str, Sequence[InspectionRecord]],
    ctx: ReportContext,
    host_base: str,
    *,
    rows_per_page: int = 6,
    group_label: str = "Area",
) -> list[DocumentSection]:
    """Survey register: per group, tables of at most *rows_per_page* rows per page."""
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be >= 1")
    sections: list[DocumentSection] = []
    for name, records in groups.items():
        blocks: list = []
        for start in range(0, len(records), rows_per_page):
            chunk = records[start : start + rows_per_page]
            if blocks:
                blocks.append(PageBreak())
            blocks.append(
                KeyValueTable(
                    rows=(
                        ("Project Number", ctx.report_number),
                        ("Client", ctx.client_name),
                        ("Location", ctx.location),
                        ("Rig", ctx.rig_name),
                        ("Inspection Date", ctx.date_range),
                        (group_label, name),
                    ),
                )
            )
            blocks.append(
                Table(
                    title="INSPECTED ITEMS",
                    header=SURVEY_COLUMNS,
                    rows=tuple(
                        _survey_row(r, start + i + 1, host_base, ctx.placeholder_photo_url)
                        for i, r in enumerate(chunk)
                    ),
                    col_weights=SURVEY_COLUMN_WEIGHTS,
                    row_height=SURVEY_ROW_HEIGHT,
                    font_size=6,
                )
            )
        sections.append(DocumentSection("detail", tuple(blocks)))
    return sections


def compose_closing(ctx: ReportContext) -> DocumentSection:
    return DocumentSection(
        "closing",
        (
            Heading("END OF REPORT"),
            TextBlock(
                (
                    f"This document is confidential and intended for {ctx.client_name} only.",
                    f"Generated {ctx.generated_at:%d/%m/%Y %H:%M} UTC by {ctx.company_name}.",
                    ctx.contact_line,
                ),
                align="center",
            ),
        ),
    )
