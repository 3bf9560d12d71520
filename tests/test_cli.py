"""CLI integration tests for action-analyzer."""

from __future__ import annotations

import json
import zipfile
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook, load_workbook
from typer.testing import CliRunner

import action_analyzer.cli as cli_mod
from action_analyzer import __version__
from action_analyzer.cli import app

runner = CliRunner()


def _write_xlsx(tmp_path: Path, name: str, rows: list[list[Any]]) -> Path:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = BytesIO()
    wb.save(buf)
    path = tmp_path / name
    path.write_bytes(buf.getvalue())
    return path


TRACKER_ROWS: list[list[Any]] = [
    ["Action", "Due Date"],
    ["Yes", datetime(2020, 1, 1)],
    ["No", datetime(2099, 1, 1)],
    ["true", "2020-01-01"],
]


def test_analyze_writes_all_artifacts(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["analyze", "--input", str(xlsx), "--out-dir", str(out_dir), "--as-of", "2024-01-01", "--quiet"],
    )

    assert result.exit_code == 0, result.stdout
    payload = json.loads((out_dir / "analysis_result.json").read_text())
    assert payload["total_rows"] == 3
    assert payload["assigned_count"] == 2
    assert payload["overdue_count"] == 2
    assert payload["assigned_pct"] == 66.7
    assert payload["overdue_pct_of_assigned"] == 100.0
    assert payload["today_iso"] == "2024-01-01"
    assert payload["columns_used"] == {"action": "A", "due_date": "B"}

    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert manifest["status"] == "success"
    assert manifest["total_rows"] == 3
    assert manifest["version"] == __version__
    assert len(manifest["sha256"]) == 64

    summary = (out_dir / "summary.txt").read_text()
    assert summary == "Total: 3 | Assigned: 2 (67%) | Overdue: 2 (100%)\n"

    assert (out_dir / "Action_Report.xlsx").exists()
    wb = load_workbook(out_dir / "Action_Report.xlsx")
    assert "Dashboard" in wb.sheetnames


def test_analyze_no_report_skips_workbook(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["analyze", "-i", str(xlsx), "-o", str(out_dir), "--as-of", "2024-01-01", "--no-report", "-q"],
    )

    assert result.exit_code == 0
    assert (out_dir / "analysis_result.json").exists()
    assert not (out_dir / "Action_Report.xlsx").exists()


def test_analyze_missing_due_date_column_records_note(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "no_due.xlsx", [["Action"], ["Yes"], [None], ["No"]])
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["analyze", "--input", str(xlsx), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 0
    payload = json.loads((out_dir / "analysis_result.json").read_text())
    assert payload["notes"] == ["Due Date column not found. Overdue analysis skipped."]
    assert payload["columns_used"]["due_date"] == "Not found"
    assert payload["total_rows"] == 2
    summary = (out_dir / "summary.txt").read_text().splitlines()
    assert summary[1] == "note: Due Date column not found. Overdue analysis skipped."


def test_analyze_missing_action_column_fails_with_manifest(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "no_action.xlsx", [["Task", "Due Date"], ["x", "2020-01-01"]])
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["analyze", "--input", str(xlsx), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 2
    assert "Action column not found" in result.stdout
    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert manifest["status"] == "failed"
    assert manifest["error_code"] == 2
    assert manifest["error_message"] == (
        "Action column not found. Please ensure your Excel file has an 'Action' column."
    )
    assert not (out_dir / "analysis_result.json").exists()


def test_analyze_rejects_unsupported_file_type(tmp_path: Path) -> None:
    csv_path = tmp_path / "tracker.csv"
    csv_path.write_text("Action,Due Date\nYes,2020-01-01\n")
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["analyze", "--input", str(csv_path), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 2
    assert "Unsupported file type" in result.stdout
    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert manifest["status"] == "failed"


def test_analyze_corrupt_workbook_fails_cleanly(tmp_path: Path) -> None:
    bad = tmp_path / "broken.xlsx"
    bad.write_bytes(b"PK\x03\x04 not really a zip")
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["analyze", "--input", str(bad), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 2
    assert "Could not read Excel workbook" in result.stdout


def test_analyze_internal_error_exits_1(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)
    out_dir = tmp_path / "out"

    def _boom(*_args: object, **_kwargs: object) -> Path:
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(cli_mod, "write_report", _boom)

    result = runner.invoke(
        app, ["analyze", "--input", str(xlsx), "--out-dir", str(out_dir), "--quiet"]
    )

    assert result.exit_code == 1
    assert "Unexpected internal error" in result.stdout
    manifest = json.loads((out_dir / "run_manifest.json").read_text())
    assert manifest["error_code"] == 1


def test_analyze_rejects_bad_as_of_date(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)

    result = runner.invoke(
        app, ["analyze", "--input", str(xlsx), "--out-dir", str(tmp_path / "o"), "--as-of", "01/01/2024"]
    )

    assert result.exit_code != 0


def test_analyze_json_flag_prints_result(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)

    result = runner.invoke(
        app,
        [
            "analyze",
            "--input",
            str(xlsx),
            "--out-dir",
            str(tmp_path / "out"),
            "--as-of",
            "2024-01-01",
            "--json",
            "--quiet",
        ],
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout)["overdue_count"] == 2


def test_analyze_nonquiet_shows_panels_and_table(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", TRACKER_ROWS)

    result = runner.invoke(
        app,
        ["analyze", "--input", str(xlsx), "--out-dir", str(tmp_path / "out"), "--as-of", "2024-01-01"],
    )

    assert result.exit_code == 0
    assert "Analysis Start" in result.stdout
    assert "Reading workbook" in result.stdout
    assert "Analysis Results" in result.stdout
    assert "Analyzed 3 rows successfully" in result.stdout
    assert "Analysis Complete" in result.stdout


def test_locate_reports_columns(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", [["Owner", "Action", "Due Date"], ["a", "Yes", None]])

    result = runner.invoke(app, ["locate", "--input", str(xlsx)])

    assert result.exit_code == 0
    assert "Action column:   B" in result.stdout
    assert "Due Date column: C" in result.stdout


def test_locate_without_due_date_column(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", [["Action"], ["Yes"]])

    result = runner.invoke(app, ["locate", "--input", str(xlsx)])

    assert result.exit_code == 0
    assert "Due Date column: Not found" in result.stdout


def test_locate_missing_action_column_exits_2(tmp_path: Path) -> None:
    xlsx = _write_xlsx(tmp_path, "tracker.xlsx", [["Task", "Owner"], ["a", "b"]])

    result = runner.invoke(app, ["locate", "--input", str(xlsx)])

    assert result.exit_code == 2
    assert "Action column not found" in result.stdout


def test_locate_malformed_workbook_xml_exits_2(tmp_path: Path) -> None:
    good = _write_xlsx(tmp_path, "good.xlsx", TRACKER_ROWS)
    bad = tmp_path / "bad.xlsx"
    with zipfile.ZipFile(good) as src, zipfile.ZipFile(bad, "w") as dst:
        for item in src.infolist():
            payload = b"<not-xml" if item.filename == "xl/workbook.xml" else src.read(item.filename)
            dst.writestr(item, payload)

    result = runner.invoke(app, ["locate", "--input", str(bad)])

    assert result.exit_code == 2
    assert "Could not read Excel workbook" in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"action-analyzer v{__version__}" in result.stdout
