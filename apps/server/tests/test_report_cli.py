"""Tests for the report CLI entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from builders import make_inspections

from dropsreport.report_cli import main


def test_main_missing_input_file(tmp_path: Path) -> None:
    """CLI must return 1 and print an error when the input file does not exist."""
    fake_input = tmp_path / "does_not_exist.json"
    with patch("sys.argv", ["dropsreport-report", str(fake_input)]):
        code = main()
    assert code == 1


def test_main_invalid_json(tmp_path: Path) -> None:
    """CLI must return 1 when the input file contains invalid JSON."""
    bad_file = tmp_path / "bad.json"
    bad_file.write_text("not valid json\n")
    with patch("sys.argv", ["dropsreport-report", str(bad_file)]):
        code = main()
    assert code == 1


def test_main_rejects_non_list_payload(tmp_path: Path, capsys) -> None:
    src = tmp_path / "scalar.json"
    src.write_text(json.dumps({"items": []}))
    assert main([str(src)]) == 1
    assert "inspections" in capsys.readouterr().err


def test_main_empty_inspections(tmp_path: Path, capsys) -> None:
    src = tmp_path / "empty.json"
    src.write_text("[]")
    assert main([str(src)]) == 1
    assert "No inspections provided" in capsys.readouterr().err


def test_main_writes_report(tmp_path: Path, no_photo_fetch: dict[str, int]) -> None:
    src = tmp_path / "export.json"
    src.write_text(json.dumps({"inspections": make_inspections(4)}))
    code = main([str(src), "--layout", "single", "--config", str(tmp_path / "none.yaml")])
    assert code == 0
    out = tmp_path / "export_report.pdf"
    assert out.read_bytes().startswith(b"%PDF")


def test_main_explicit_output(tmp_path: Path, no_photo_fetch: dict[str, int]) -> None:
    src = tmp_path / "export.json"
    src.write_text(json.dumps(make_inspections(2)))
    out = tmp_path / "nested" / "drops.pdf"
    with patch("sys.argv", ["dropsreport-report", str(src), "--output", str(out)]):
        assert main() == 0
    assert out.exists()
