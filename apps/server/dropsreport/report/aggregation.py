"""Status / risk tallies and record grouping.

Everything here is total: unknown or blank classifications only count toward
``total`` and blank group keys fall into :data:`UNCATEGORIZED`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, fields

from ..inspection import InspectionRecord

UNCATEGORIZED = "Uncategorized"
ALL_ITEMS = "All Items"

GROUP_BY_VALUES: tuple[str, ...] = ("area", "location", "none")


@dataclass(frozen=True, slots=True)
class AggregateStats:
    total: int = 0
    pass_count: int = 0
    fail_count: int = 0
    pending_count: int = 0
    critical_count: int = 0
    major_count: int = 0
    minor_count: int = 0
    observation_count: int = 0

    def __add__(self, other: AggregateStats) -> AggregateStats:
        if not isinstance(other, AggregateStats):
            return NotImplemented
        return AggregateStats(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    @property
    def unsatisfactory(self) -> int:
        """Items inspected without a PASS result."""
        return self.total - self.pass_count


_STATUS_FIELDS = {"PASS": "pass_count", "FAIL": "fail_count", "PENDING": "pending_count"}
_RISK_FIELDS = {
    "CRITICAL": "critical_count",
    "MAJOR": "major_count",
    "MINOR": "minor_count",
    "OBSERVATION": "observation_count",
}


def compute_stats(records: Iterable[InspectionRecord]) -> AggregateStats:
    """Tally statuses and risk levels (trimmed, case-insensitive exact match)."""
    counts = dict.fromkeys((f.name for f in fields(AggregateStats)), 0)
    for record in records:
        counts["total"] += 1
        status_field = _STATUS_FIELDS.get(record.status.strip().upper())
        if status_field:
            counts[status_field] += 1
        risk_field = _RISK_FIELDS.get(record.risk_level.strip().upper())
        if risk_field:
            counts[risk_field] += 1
    return AggregateStats(**counts)


def sum_stats(items: Iterable[AggregateStats]) -> AggregateStats:
    total = AggregateStats()
    for item in items:
        total = total + item
    return total


def group_by_key(
    records: Iterable[InspectionRecord],
    key_fn: Callable[[InspectionRecord], str | None],
) -> dict[str, list[InspectionRecord]]:
    """Partition *records* by ``key_fn``.

    Groups appear in first-seen order and records keep their input order
    inside a group.  Blank keys land in :data:`UNCATEGORIZED`.
    """
    groups: dict[str, list[InspectionRecord]] = {}
    for record in records:
        key = str(key_fn(record) or "").strip() or UNCATEGORIZED
        groups.setdefault(key, []).append(record)
    return groups


def group_records(
    records: Sequence[InspectionRecord],
    group_by: str,
) -> dict[str, list[InspectionRecord]]:
    if group_by == "area":
        return group_by_key(records, lambda r: r.area_name)
    if group_by == "location":
        return group_by_key(records, lambda r: r.location_name)
    if group_by == "none":
        return {ALL_ITEMS: list(records)} if records else {}
    raise ValueError(f"Unsupported group_by: {group_by!r}")


def _group_sort_key(name: str) -> tuple[bool, str, str]:
    # The blank-key bucket always sorts last.
    return (name == UNCATEGORIZED, name.casefold(), name)


def sorted_group_names(groups: Iterable[str]) -> list[str]:
    return sorted(groups, key=_group_sort_key)


def grouped_stats(
    groups: dict[str, list[InspectionRecord]],
) -> list[tuple[str, AggregateStats]]:
    """Per-group stats sorted by group name ascending, :data:`UNCATEGORIZED` last."""
    return [(name, compute_stats(groups[name])) for name in sorted_group_names(groups)]
