from __future__ import annotations

# Print-friendly light palette shared by the canvas and HTML renderers.
REPORT_COLORS = {
    "ink": "#1a1c24",
    "muted": "#52555e",
    "border": "#c4c7d0",
    "surface": "#f8f9fb",
    "surface_alt": "#f1f2f6",
    "primary": "#1e3a5f",
    "primary_text": "#ffffff",
    "accent": "#f59e0b",
    "axis": "#7b8da0",
    "table_header_bg": "#1e3a5f",
    "table_header_text": "#ffffff",
    "table_row_border": "#dcdfe6",
    "table_zebra_bg": "#fafafc",
    "text_primary": "#1a1c24",
    "text_secondary": "#52555e",
    "text_muted": "#6b6e78",
    "placeholder_bg": "#e5e7eb",
    "placeholder_text": "#6b7280",
    "condition_fail": "#c00000",
}

NEUTRAL_BADGE = "#94a3b8"

STATUS_COLORS = {
    "PASS": "#22c55e",
    "FAIL": "#ef4444",
    "PENDING": "#f59e0b",
}

# CRITICAL stays darker than FAIL.
RISK_COLORS = {
    "CRITICAL": "#dc2626",
    "MAJOR": "#f97316",
    "MINOR": "#eab308",
    "OBSERVATION": "#06b6d4",
}

# Definitions-page label colours.
DEFINITION_COLORS = {
    "CRITICAL": RISK_COLORS["CRITICAL"],
    "MAJOR": RISK_COLORS["MAJOR"],
    "MINOR": RISK_COLORS["MINOR"],
    "OBSERVATION": RISK_COLORS["OBSERVATION"],
    "REPAIRED": "#f59e0b",
    "PASS": STATUS_COLORS["PASS"],
    "FAIL": STATUS_COLORS["FAIL"],
    "NO ACCESS": NEUTRAL_BADGE,
}

# Chart series share the badge palette so a category keeps one colour per document.
CHART_STATUS_SERIES = (
    ("Pass", STATUS_COLORS["PASS"]),
    ("Fail", STATUS_COLORS["FAIL"]),
    ("Pending", STATUS_COLORS["PENDING"]),
)
CHART_RISK_SERIES = (
    ("Critical", RISK_COLORS["CRITICAL"]),
    ("Major", RISK_COLORS["MAJOR"]),
    ("Minor", RISK_COLORS["MINOR"]),
    ("Observation", RISK_COLORS["OBSERVATION"]),
)
