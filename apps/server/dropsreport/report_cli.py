from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import VALID_BACKENDS, load_config
from .report.aggregation import GROUP_BY_VALUES
from .report.errors import ReportError
from .report.pipeline import (
    DEFAULT_GROUP_BY,
    LAYOUTS,
    ReportOptions,
    generate_report,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a DROPS inspection PDF report from a JSON export"
    )
    parser.add_argument(
        "input", type=Path, help="JSON list of inspections, or {'inspections': [...]}"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output PDF path (default: <input_stem>_report.pdf)",
    )
    parser.add_argument("--layout", choices=LAYOUTS, default="batch")
    parser.add_argument(
        "--group-by",
        choices=GROUP_BY_VALUES,
        default=None,
        help=f"Grouping (default per layout: {DEFAULT_GROUP_BY})",
    )
    parser.add_argument("--host-base", default=None, help="Base URL photos are served from")
    parser.add_argument("--backend", choices=VALID_BACKENDS, default=None)
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    return parser.parse_args(argv)


def _load_inspections(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("inspections")
    if not isinstance(data, list):
        raise ValueError("input must be a JSON list or an object with an 'inspections' list")
    return [item for item in data if isinstance(item, dict)]


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1
    try:
        inspections = _load_inspections(args.input)
    except json.JSONDecodeError as exc:
        print(f"Error: input file contains invalid JSON: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
        options = ReportOptions(
            records=inspections,
            host_base=args.host_base or config.report.default_host_base,
            group_by=args.group_by,
            layout=args.layout,
        )
        pdf = asyncio.run(
            generate_report(
                options,
                settings=config.report,
                branding=config.branding,
                backend=args.backend,
            )
        )
    except (ReportError, ValueError) as exc:
        print(f"Error: PDF generation failed: {exc}", file=sys.stderr)
        return 1

    out_pdf = args.output or args.input.with_name(f"{args.input.stem}_report.pdf")
    out_pdf.parent.mkdir(parents=True, exist_ok=True)
    out_pdf.write_bytes(pdf)
    print(f"wrote report: {out_pdf}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
