from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

SERVER_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/server/`` package tree."""

LOGGER = logging.getLogger(__name__)

VALID_BACKENDS: tuple[str, ...] = ("canvas", "html")
VALID_PAGE_SIZES: tuple[str, ...] = ("A4", "A3", "LETTER")
VALID_ORIENTATIONS: tuple[str, ...] = ("portrait", "landscape")

DEFAULT_CONFIG: dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "report": {
        "backend": "canvas",
        "page_size": "A4",
        "orientation": "portrait",
        "margin_mm": 12.0,
        "details_per_page": 2,
        "survey_rows_per_page": 6,
        "photo_timeout_s": 10.0,
        "render_timeout_s": 60.0,
        "max_fetch_workers": 8,
        "default_host_base": "http://localhost:5000",
    },
    "branding": {
        "company_name": "OCS Group",
        "division_line": "Inspection by OCS Group – Inspection Division",
        "contact_line": "www.ocsgroup.com | info@ocsgroup.com",
        "default_client_name": "",
        "default_asset_name": "",
        "default_rig_name": "",
        "default_location": "",
        "report_title": "Drops Register",
        "report_number": "",
        "revision": "0",
        "prepared_by": "",
        "qa_reviewer": "",
        "approved_by": "",
        "approval_date": "",
        "logo_path": None,
        "placeholder_photo_path": None,
    },
}


def documented_default_config() -> dict[str, Any]:
    """Return runtime defaults in the shape documented by config.example.yaml."""
    return deepcopy(DEFAULT_CONFIG)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_path(path_text: str | None, config_path: Path) -> Path | None:
    if not path_text:
        return None
    path = Path(path_text)
    if path.is_absolute():
        return path
    return config_path.resolve().parent / path


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"ServerConfig.port must be 1–65535, got {self.port!r}")


@dataclass(slots=True)
class ReportConfig:
    backend: str
    page_size: str
    orientation: str
    margin_mm: float
    details_per_page: int
    survey_rows_per_page: int
    photo_timeout_s: float
    render_timeout_s: float
    max_fetch_workers: int
    default_host_base: str

    def __post_init__(self) -> None:
        _cfg_logger = logging.getLogger(__name__)
        self.backend = str(self.backend).lower()
        if self.backend not in VALID_BACKENDS:
            raise ValueError(
                f"report.backend must be one of {VALID_BACKENDS}, got {self.backend!r}"
            )
        self.page_size = str(self.page_size).upper()
        if self.page_size not in VALID_PAGE_SIZES:
            raise ValueError(
                f"report.page_size must be one of {VALID_PAGE_SIZES}, got {self.page_size!r}"
            )
        self.orientation = str(self.orientation).lower()
        if self.orientation not in VALID_ORIENTATIONS:
            raise ValueError(
                f"report.orientation must be one of {VALID_ORIENTATIONS}, got {self.orientation!r}"
            )
        # --- positive-integer guards ------------------------------------------------
        for field_name in ("details_per_page", "survey_rows_per_page", "max_fetch_workers"):
            val = getattr(self, field_name)
            if val < 1:
                _cfg_logger.warning(
                    "report.%s=%s is below minimum 1 — clamped to 1",
                    field_name,
                    val,
                )
                setattr(self, field_name, 1)
        if not 0 <= self.margin_mm <= 50:
            clamped = min(50.0, max(0.0, float(self.margin_mm)))
            _cfg_logger.warning(
                "report.margin_mm=%s is outside 0–50 — clamped to %s",
                self.margin_mm,
                clamped,
            )
            self.margin_mm = clamped
        if self.photo_timeout_s <= 0:
            self.photo_timeout_s = 10.0
        if self.render_timeout_s <= 0:
            self.render_timeout_s = 60.0


@dataclass(slots=True)
class BrandingConfig:
    company_name: str
    division_line: str
    contact_line: str
    default_client_name: str
    default_asset_name: str
    default_rig_name: str
    default_location: str
    report_title: str
    report_number: str
    revision: str
    prepared_by: str
    qa_reviewer: str
    approved_by: str
    approval_date: str
    logo_path: Path | None = None
    placeholder_photo_path: Path | None = None


@dataclass(slots=True)
class AppConfig:
    server: ServerConfig
    report: ReportConfig
    branding: BrandingConfig
    config_path: Path


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def _str(value: object) -> str:
    return "" if value is None else str(value)


def load_config(config_path: Path | None = None) -> AppConfig:
    path = config_path or (SERVER_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(DEFAULT_CONFIG, override)

    server_port = int(merged["server"]["port"])
    if not 1 <= server_port <= 65535:
        raise ValueError(f"server.port must be 1-65535, got {server_port}")

    report = merged["report"]
    branding = merged["branding"]
    return AppConfig(
        server=ServerConfig(host=str(merged["server"]["host"]), port=server_port),
        report=ReportConfig(
            backend=str(report["backend"]),
            page_size=str(report["page_size"]),
            orientation=str(report["orientation"]),
            margin_mm=float(report["margin_mm"]),
            details_per_page=int(report["details_per_page"]),
            survey_rows_per_page=int(report["survey_rows_per_page"]),
            photo_timeout_s=float(report["photo_timeout_s"]),
            render_timeout_s=float(report["render_timeout_s"]),
            max_fetch_workers=int(report["max_fetch_workers"]),
            default_host_base=str(report["default_host_base"]),
        ),  # NOTE: ReportConfig.__post_init__ validates & clamps all fields
        branding=BrandingConfig(
            company_name=_str(branding["company_name"]),
            division_line=_str(branding["division_line"]),
            contact_line=_str(branding["contact_line"]),
            default_client_name=_str(branding["default_client_name"]),
            default_asset_name=_str(branding["default_asset_name"]),
            default_rig_name=_str(branding["default_rig_name"]),
            default_location=_str(branding["default_location"]),
            report_title=_str(branding["report_title"]),
            report_number=_str(branding["report_number"]),
            revision=_str(branding["revision"]),
            prepared_by=_str(branding["prepared_by"]),
            qa_reviewer=_str(branding["qa_reviewer"]),
            approved_by=_str(branding["approved_by"]),
            approval_date=_str(branding["approval_date"]),
            logo_path=_resolve_config_path(branding.get("logo_path"), path),
            placeholder_photo_path=_resolve_config_path(
                branding.get("placeholder_photo_path"), path
            ),
        ),
        config_path=path,
    )


def default_config() -> AppConfig:
    """Built-in defaults without reading any file."""
    return load_config(SERVER_DIR / "__no_config__.yaml")
