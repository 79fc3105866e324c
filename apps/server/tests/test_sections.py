"""Tests for the section composers and the shared report context."""

from __future__ import annotations

from datetime import datetime

import pytest
from builders import make_inspection, make_records

from dropsreport.config import default_config
from dropsreport.inspection import InspectionRecord
from dropsreport.report.aggregation import compute_stats, group_records, grouped_stats
from dropsreport.report.blocks import (
    DetailBlock,
    DocumentSection,
    GroupHeader,
    KeyValueTable,
    PageBreak,
    Table,
)
from dropsreport.report.report_data import (
    ProjectOverrides,
    build_report_context,
    running_text,
)
from dropsreport.report.sections import (
    QA_SIGNATORIES,
    SURVEY_COLUMNS,
    compose_cover,
    compose_definitions,
    compose_details,
    compose_disclaimer,
    compose_inspected_items,
    compose_qa,
    compose_statistics,
    compose_summary,
    compose_toc,
    detail_block,
)
from dropsreport.report_theme import REPORT_COLORS, RISK_COLORS, STATUS_COLORS

GENERATED = datetime(2025, 4, 1, 12, 0)
HOST = "https://drops.example.com/"


def _ctx(records, **overrides):
    return build_report_context(
        records,
        overrides=ProjectOverrides(**overrides),
        branding=default_config().branding,
        generated_at=GENERATED,
    )


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class TestReportContext:
    def test_overrides_beat_record_hints_and_branding(self) -> None:
        ctx = _ctx(make_records(2), client_name="Override Co")
        assert ctx.client_name == "Override Co"
        assert ctx.asset_name == "Rig Alpha"
        assert ctx.report_title == "Drops Register"

    def test_missing_names_become_placeholder(self) -> None:
        ctx = _ctx([InspectionRecord()])
        assert ctx.client_name == "—"
        assert ctx.date_range == "—"
        assert ctx.cover_date == "01 APR 25"

    def test_cover_date_uses_earliest_inspection(self) -> None:
        records = [
            InspectionRecord(date_inspected=datetime(2025, 3, 7)),
            InspectionRecord(date_inspected=datetime(2025, 3, 5)),
        ]
        ctx = _ctx(records)
        assert ctx.cover_date == "05 MAR 25"
        assert ctx.date_range == "05/03/2025 - 07/03/2025"

    def test_running_text_carries_document_identity(self) -> None:
        ctx = _ctx(make_records(1), report_number="DR-17", revision="2")
        running = running_text(ctx)
        assert running.header_title == "OCS Group"
        assert "Drops Register - Rig Alpha" in running.footer_left
        assert running.footer_center == "Doc Number: DR-17 | Revision: 2"


# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


def test_cover_is_single_block_with_optional_revision_row() -> None:
    ctx = _ctx(make_records(1))
    plain = compose_cover(ctx).blocks[0]
    survey = compose_cover(ctx, with_revision=True).blocks[0]
    assert plain.revision_header == ()
    assert survey.revision_header[0] == "Revision"
    assert len(survey.revision_header) == len(survey.revision_row)


def test_qa_page_lists_three_signatories_and_page_number() -> None:
    section = compose_qa(_ctx(make_records(1)), page_number=2)
    signatures = next(b for b in section.blocks if isinstance(b, Table))
    assert [row[0].text for row in signatures.rows] == list(QA_SIGNATORIES)
    metadata = [b for b in section.blocks if isinstance(b, KeyValueTable)][-1]
    assert ("Page No", "2") in metadata.rows
    assert section.title == "Quality Assurance"


def test_definitions_are_fixed_and_coloured() -> None:
    section = compose_definitions()
    fault, status = [b for b in section.blocks if isinstance(b, Table)]
    assert [row[0].text for row in fault.rows] == [
        "CRITICAL",
        "MAJOR",
        "MINOR",
        "OBSERVATION",
        "REPAIRED",
    ]
    assert fault.rows[0][0].color == RISK_COLORS["CRITICAL"]
    assert [row[0].text for row in status.rows] == ["PASS", "FAIL", "NO ACCESS"]


def test_toc_renders_unknown_pages_as_placeholder() -> None:
    table = compose_toc([("A. SURVEY WORKSCOPE", 5), ("Analytics", 0)]).blocks[1]
    assert [(r[0].text, r[1].text) for r in table.rows] == [
        ("A. SURVEY WORKSCOPE", "5"),
        ("Analytics", "—"),
    ]


def test_disclaimer_uses_configured_company_name() -> None:
    section = compose_disclaimer(_ctx(make_records(1)))
    text = " ".join(p for b in section.blocks for p in getattr(b, "paragraphs", ()))
    assert "OCS Group" in text
    assert "{company}" not in text


# ---------------------------------------------------------------------------
# Statistics & summary
# ---------------------------------------------------------------------------


def test_statistics_table_has_group_rows_and_overall() -> None:
    records = make_records(9)
    grouped = grouped_stats(group_records(records, "area"))
    section = compose_statistics(compute_stats(records), grouped)
    table = next(b for b in section.blocks if isinstance(b, Table))
    names = [row[0].text for row in table.rows]
    assert names == ["Derrick", "Drill Floor", "Mud Pits", "Overall"]
    assert table.rows[-1][1].text == "9"
    assert table.rows[-1][0].bold


def test_statistics_without_groups_has_no_table() -> None:
    section = compose_statistics(compute_stats(make_records(3)))
    assert not any(isinstance(b, Table) for b in section.blocks)


def test_summary_counts_satisfactory_and_unsatisfactory() -> None:
    records = make_records(6)
    overall = compute_stats(records)
    grouped = grouped_stats(group_records(records, "area"))
    section = compose_summary(_ctx(records), overall, grouped)
    table = next(b for b in section.blocks if isinstance(b, Table))
    total_row = table.rows[-1]
    assert total_row[2].text == str(overall.total)
    assert total_row[3].text == str(overall.pass_count)
    assert total_row[4].text == str(overall.total - overall.pass_count)


# ---------------------------------------------------------------------------
# Detail pages
# ---------------------------------------------------------------------------


class TestDetailBlock:
    def test_fixed_field_order_and_badges(self) -> None:
        record = InspectionRecord.from_dict(make_inspection(1, status="fail", riskLevel="major"))
        block = detail_block(record, 4, HOST)
        labels = [f.label for f in block.fields]
        assert labels[:6] == ["Equipment No", "Area", "Location", "Equipment", "Control", "Risk"]
        status = next(f for f in block.fields if f.label == "Status")
        assert status.value == "FAIL"
        assert status.badge_color == STATUS_COLORS["FAIL"]
        assert block.title == "4. EQ-001 · Flood light 1"

    def test_missing_values_render_placeholders(self) -> None:
        block = detail_block(InspectionRecord(), 1, HOST)
        values = {f.label: f.value for f in block.fields}
        assert values["Equipment No"] == "—"
        assert values["Status"] == "UNSPECIFIED"
        assert values["Repaired Status"] == "OPEN"
        assert values["Date"] == "—"
        assert block.title == "1. Inspection Item"

    def test_only_non_empty_comments_are_boxed(self) -> None:
        record = InspectionRecord(comments="Replace pin", fastening_method="")
        block = detail_block(record, 1, HOST)
        assert [(c.label, c.text) for c in block.comments] == [("Comments", "Replace pin")]

    def test_photo_urls_use_host_base(self) -> None:
        record = InspectionRecord(photos=("abc", "d e"))
        block = detail_block(record, 1, HOST)
        assert block.photo_urls == (
            "https://drops.example.com/api/images/abc",
            "https://drops.example.com/api/images/d%20e",
        )


def test_grouped_details_number_continuously_with_headers() -> None:
    records = make_records(7)
    sections = compose_details(group_records(records, "area"), HOST, grouped=True)
    assert [s.title for s in sections] == ["Area: Drill Floor", "Area: Derrick", "Area: Mud Pits"]
    ordinals = [b.ordinal for s in sections for b in s.blocks if isinstance(b, DetailBlock)]
    assert ordinals == list(range(1, 8))
    assert all(isinstance(s.blocks[0], GroupHeader) for s in sections)


def test_ungrouped_details_form_one_section() -> None:
    sections = compose_details(group_records(make_records(3), "none"), HOST, grouped=False)
    assert len(sections) == 1
    assert not any(isinstance(b, GroupHeader) for b in sections[0].blocks)


class TestInspectedItems:
    def test_rows_are_chunked_per_page(self) -> None:
        records = make_records(13, areaName="Deck")
        groups = group_records(records, "area")
        (section,) = compose_inspected_items(groups, _ctx(records), HOST, rows_per_page=6)
        tables = [b for b in section.blocks if isinstance(b, Table)]
        assert [len(t.rows) for t in tables] == [6, 6, 1]
        assert sum(isinstance(b, PageBreak) for b in section.blocks) == 2
        assert tables[0].header == SURVEY_COLUMNS
        assert [row[0].text for row in tables[1].rows] == [str(n) for n in range(7, 13)]

    def test_condition_colour_and_remarks(self) -> None:
        record = InspectionRecord(
            status="Fail",
            secondary_comments="Missing wire",
            comments="Fit safety wire",
        )
        (section,) = compose_inspected_items({"Deck": [record]}, _ctx([record]), HOST)
        row = next(b for b in section.blocks if isinstance(b, Table)).rows[0]
        condition, remarks = row[9], row[10]
        assert condition.color == REPORT_COLORS["condition_fail"]
        assert remarks.text == "> Missing wire\nRECOMMENDATION\nFit safety wire"
        assert row[7].text == "7 Days"

    def test_missing_photo_uses_placeholder_url(self) -> None:
        record = InspectionRecord()
        ctx = build_report_context(
            [record],
            overrides=ProjectOverrides(),
            branding=default_config().branding,
            generated_at=GENERATED,
            placeholder_photo_url="file:///tmp/placeholder.png",
        )
        (section,) = compose_inspected_items({"Deck": [record]}, ctx, HOST)
        row = next(b for b in section.blocks if isinstance(b, Table)).rows[0]
        assert row[1].image_url == "file:///tmp/placeholder.png"

    def test_rejects_zero_rows_per_page(self) -> None:
        with pytest.raises(ValueError):
            compose_inspected_items({}, _ctx(make_records(1)), HOST, rows_per_page=0)


def test_section_kind_is_validated() -> None:
    with pytest.raises(ValueError):
        DocumentSection("appendix-b", ())
