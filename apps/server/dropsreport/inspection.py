"""Inspection record model.

Inspection payloads arrive from several producers with different key
conventions (camelCase API bodies, PascalCase document-store exports,
snake_case fixtures).  :class:`InspectionRecord` normalises all of them into
one typed, read-only value and owns every placeholder decision through
:func:`display`, so composers never improvise their own fallbacks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

PLACEHOLDER = "—"
UNSPECIFIED = "UNSPECIFIED"
DEFAULT_REPAIRED_STATUS = "OPEN"

STATUS_VALUES: tuple[str, ...] = ("PASS", "FAIL", "PENDING", "OTHER")
RISK_VALUES: tuple[str, ...] = ("CRITICAL", "MAJOR", "MINOR", "OBSERVATION")

# (field name, accepted payload keys) – first non-empty key wins.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "_id", "inspectionId", "InspectionId"),
    "status": ("status", "Status"),
    "risk_level": ("riskLevel", "RiskName", "RiskLevel", "risk_level", "risk"),
    "area_name": ("areaName", "AreaName", "area_name", "area"),
    "location_name": ("locationName", "LocationName", "location_name", "location"),
    "equipment_number": ("equipmentNumber", "EquipNumber", "equipment_number", "equipNumber"),
    "equipment_name": ("equipmentName", "EquipmentName", "equipment_name"),
    "serial_no": ("serialNo", "SerialNo", "serial_no"),
    "control_method": ("controlMethod", "Control", "control_method", "control"),
    "environmental_factor": (
        "environmentalFactor",
        "EnvironFactor",
        "environmental_factor",
    ),
    "consequence": ("consequence", "Consequence"),
    "fastening_method": ("fasteningMethod", "FasteningMethod", "fastening_method"),
    "secondary_fastening_method": (
        "secondaryFasteningMethod",
        "SecFastMethod",
        "secondary_fastening_method",
    ),
    "repaired_status": ("repairedStatus", "CARepairedStatus", "repaired_status"),
    "checklist_no": ("checklistNo", "CheckListNo", "checklist_no"),
    "primary_comments": ("primaryComments", "PrimaryComments", "primary_comments"),
    "secondary_comments": ("secondaryComments", "SecondaryComments", "secondary_comments"),
    "safety_comments": (
        "safetyComments",
        "SafetySecComments",
        "safetySecComments",
        "safety_comments",
    ),
    "load_path_comments": ("loadPathComments", "LoadPathComments", "load_path_comments"),
    "comments": ("comments", "Comments"),
    "observation": ("observation", "Observation"),
    "inspector_name": ("inspectorName", "InspectorName", "inspector_name", "inspector"),
    "date_inspected": ("dateInspected", "DateInspected", "date_inspected"),
    "created_at": ("createdAt", "CreatedAt", "created_at"),
    "photos": ("photos", "Photos"),
    "client_name": ("clientName", "ClientName", "client_name"),
    "asset_name": ("assetName", "AssetName", "asset_name"),
    "rig_name": ("rigName", "RigName", "rig_name"),
}

_DATE_FIELDS = frozenset({"date_inspected", "created_at"})

# Narrative fields rendered as labelled comment boxes, in display order.
COMMENT_FIELDS: tuple[tuple[str, str], ...] = (
    ("primary_comments", "Primary Comments"),
    ("secondary_comments", "Secondary Comments"),
    ("safety_comments", "Safety Secondary Comments"),
    ("load_path_comments", "Load Path Comments"),
    ("comments", "Comments"),
    ("observation", "Observation"),
)


def display(value: object, placeholder: str = PLACEHOLDER) -> str:
    """Return *value* as trimmed display text, or *placeholder* when blank."""
    if value is None:
        return placeholder
    text = str(value).strip()
    return text if text else placeholder


def _text(value: object) -> str:
    if value is None or isinstance(value, (dict, list, tuple)):
        return ""
    return str(value).strip()


def _naive_utc(value: datetime) -> datetime:
    # Mixed aware/naive inputs must stay comparable for date ranges.
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def parse_date(value: object) -> datetime | None:
    """Parse an ISO-8601 string, ``date`` or ``datetime``; ``None`` if unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _naive_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _photo_ids(value: object) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    out: list[str] = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("id") or item.get("_id")
        text = _text(item)
        if text:
            out.append(text)
    return tuple(out)


# ---------------------------------------------------------------------------
# InspectionRecord
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InspectionRecord:
    id: str = ""
    status: str = ""
    risk_level: str = ""
    area_name: str = ""
    location_name: str = ""
    equipment_number: str = ""
    equipment_name: str = ""
    serial_no: str = ""
    control_method: str = ""
    environmental_factor: str = ""
    consequence: str = ""
    fastening_method: str = ""
    secondary_fastening_method: str = ""
    repaired_status: str = ""
    checklist_no: str = ""
    primary_comments: str = ""
    secondary_comments: str = ""
    safety_comments: str = ""
    load_path_comments: str = ""
    comments: str = ""
    observation: str = ""
    inspector_name: str = ""
    date_inspected: datetime | None = None
    created_at: datetime | None = None
    photos: tuple[str, ...] = ()
    client_name: str = ""
    asset_name: str = ""
    rig_name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InspectionRecord:
        """Build a record from any supported payload key convention."""
        values: dict[str, Any] = {}
        for name, keys in _FIELD_ALIASES.items():
            raw: object = None
            for key in keys:
                candidate = data.get(key)
                if candidate not in (None, ""):
                    raw = candidate
                    break
            if name == "photos":
                values[name] = _photo_ids(raw)
            elif name in _DATE_FIELDS:
                values[name] = parse_date(raw)
            else:
                values[name] = _text(raw)
        return cls(**values)

    @classmethod
    def coerce(cls, value: InspectionRecord | Mapping[str, Any]) -> InspectionRecord:
        if isinstance(value, InspectionRecord):
            return value
        return cls.from_dict(value)

    # -- Normalised classification -------------------------------------------

    @property
    def status_key(self) -> str:
        """Upper-cased known status, or ``""`` when blank/unrecognised."""
        key = self.status.strip().upper()
        return key if key in STATUS_VALUES else ""

    @property
    def risk_key(self) -> str:
        key = self.risk_level.strip().upper()
        return key if key in RISK_VALUES else ""

    @property
    def status_label(self) -> str:
        if not self.status.strip():
            return UNSPECIFIED
        return self.status_key or "OTHER"

    @property
    def risk_label(self) -> str:
        return display(self.risk_level).upper()

    @property
    def repaired_label(self) -> str:
        return display(self.repaired_status, DEFAULT_REPAIRED_STATUS).upper()

    @property
    def inspected_on(self) -> datetime | None:
        return self.date_inspected or self.created_at

    def comment_fields(self) -> list[tuple[str, str]]:
        """Non-empty narrative fields as ``(label, text)`` in display order."""
        out: list[tuple[str, str]] = []
        for name, label in COMMENT_FIELDS:
            text = getattr(self, name)
            if text:
                out.append((label, text))
        return out

