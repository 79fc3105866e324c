"""Tests for status/risk tallies and record grouping."""

from __future__ import annotations

import pytest
from builders import make_records

from dropsreport.inspection import InspectionRecord
from dropsreport.report.aggregation import (
    ALL_ITEMS,
    UNCATEGORIZED,
    AggregateStats,
    compute_stats,
    group_by_key,
    group_records,
    grouped_stats,
    sorted_group_names,
    sum_stats,
)


def _rec(status: str = "", risk: str = "", area: str = "") -> InspectionRecord:
    return InspectionRecord(status=status, risk_level=risk, area_name=area)


class TestComputeStats:
    def test_counts_are_case_insensitive_and_trimmed(self) -> None:
        stats = compute_stats(
            [_rec("pass", "critical"), _rec(" FAIL ", "Major"), _rec("Pending", "minor")]
        )
        assert stats == AggregateStats(
            total=3,
            pass_count=1,
            fail_count=1,
            pending_count=1,
            critical_count=1,
            major_count=1,
            minor_count=1,
        )

    def test_unknown_values_only_count_toward_total(self) -> None:
        stats = compute_stats([_rec("broken", "severe"), _rec()])
        assert stats.total == 2
        assert stats.pass_count == stats.fail_count == stats.pending_count == 0
        assert stats.critical_count == stats.major_count == stats.minor_count == 0

    def test_status_counts_never_exceed_total(self) -> None:
        stats = compute_stats(make_records(17))
        assert stats.pass_count + stats.fail_count + stats.pending_count <= stats.total
        risk_sum = (
            stats.critical_count + stats.major_count + stats.minor_count + stats.observation_count
        )
        assert risk_sum <= stats.total

    def test_empty_input(self) -> None:
        assert compute_stats([]) == AggregateStats()

    def test_unsatisfactory_is_total_minus_pass(self) -> None:
        stats = compute_stats([_rec("PASS"), _rec("FAIL"), _rec("")])
        assert stats.unsatisfactory == 2


class TestGrouping:
    def test_blank_keys_go_to_uncategorized(self) -> None:
        records = [_rec(area=""), _rec(area="  "), _rec(area="A")]
        groups = group_by_key(records, lambda r: r.area_name)
        assert list(groups) == [UNCATEGORIZED, "A"]
        assert len(groups[UNCATEGORIZED]) == 2

    def test_first_seen_order_and_stable_members(self) -> None:
        records = [
            InspectionRecord(id="1", area_name="B"),
            InspectionRecord(id="2", area_name="A"),
            InspectionRecord(id="3", area_name="B"),
        ]
        groups = group_records(records, "area")
        assert list(groups) == ["B", "A"]
        assert [r.id for r in groups["B"]] == ["1", "3"]

    def test_group_by_location(self) -> None:
        records = [InspectionRecord(location_name="Deck"), InspectionRecord(location_name="")]
        assert list(group_records(records, "location")) == ["Deck", UNCATEGORIZED]

    def test_group_by_none_is_single_group(self) -> None:
        records = make_records(4)
        groups = group_records(records, "none")
        assert list(groups) == [ALL_ITEMS]
        assert groups[ALL_ITEMS] == records
        assert group_records([], "none") == {}

    def test_unknown_group_by_raises(self) -> None:
        with pytest.raises(ValueError):
            group_records(make_records(1), "rig")

    def test_group_stats_sum_to_overall(self) -> None:
        records = make_records(23)
        groups = group_records(records, "area")
        per_group = [stats for _, stats in grouped_stats(groups)]
        assert sum_stats(per_group) == compute_stats(records)

    def test_grouped_stats_sorted_by_name(self) -> None:
        groups = group_records(
            [_rec(area="b"), _rec(area="C"), _rec(area="a")],
            "area",
        )
        assert [name for name, _ in grouped_stats(groups)] == ["a", "b", "C"]
        assert sorted_group_names(["Zulu", "alpha", "Bravo"]) == ["alpha", "Bravo", "Zulu"]

    def test_uncategorized_group_sorts_last(self) -> None:
        groups = group_by_key(
            [_rec(area="Zone"), _rec(area=""), _rec(area="Alpha")], lambda r: r.area_name
        )
        assert [name for name, _ in grouped_stats(groups)] == ["Alpha", "Zone", UNCATEGORIZED]
        assert sorted_group_names([UNCATEGORIZED, "zz", "Aa"]) == ["Aa", "zz", UNCATEGORIZED]
