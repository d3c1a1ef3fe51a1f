from datetime import date
from pathlib import Path

import pandas as pd
import pytest

import run_report
from premiums.config import load_config
from premiums.filters import FilterState, ReportOptions
from premiums.runner import ReportError, ReportSession, run_report as run

from conftest import JANUARY, SUBMISSIONS, TEAMS, make_csv


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "submissions.csv").write_text(make_csv(*SUBMISSIONS))
    (tmp_path / "teams.csv").write_text(TEAMS)
    return tmp_path


def test_session_rebuilds_from_loaded_rows(submissions_text: str) -> None:
    session = ReportSession()
    session.load_submissions(submissions_text)
    session.load_teams(TEAMS)

    result = session.build(FilterState(), today=JANUARY)
    assert [r.team for r in result.rows] == ["South", "North", "NO TEAM"]

    # a new team file replaces the old mapping entirely
    session.load_teams("Writing Agent Number,Team ID\nA300,East\n")
    result = session.build(FilterState(), today=JANUARY)
    assert [r.team for r in result.rows] == ["NO TEAM", "NO TEAM", "East"]


def test_session_keeps_row_warnings() -> None:
    session = ReportSession()
    session.load_submissions(make_csv("1/5/2025,Doe,Jane,A,$10,A1", "1/5/2025,Doe"))
    assert len(session.rows) == 1
    assert len(session.warnings) == 1


def test_blocking_file_clears_previous_rows(submissions_text: str) -> None:
    session = ReportSession()
    session.load_submissions(submissions_text)
    with pytest.raises(ReportError, match="Missing required columns"):
        session.load_submissions("Submit Date,Product\n1/5/2025,A\n")
    assert session.rows.empty
    assert session.build(FilterState(period="all"), today=JANUARY).rows == []


def test_load_config_overrides(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "report.yml").write_text(
        "team_columns:\n  team: Equipo\nno_team_label: SIN EQUIPO\ndefaults:\n  max_records: 2\n"
    )
    cfg = load_config(tmp_path)
    assert cfg.team_columns == {"agent_number": "Writing Agent Number", "team": "Equipo"}
    assert cfg.no_team_label == "SIN EQUIPO"
    assert cfg.max_records == 2
    assert cfg.sort_by == "annualized"


def test_load_config_without_file(tmp_path: Path) -> None:
    cfg = load_config(tmp_path)
    assert cfg.required_columns == [
        "Submit Date",
        "Writing Agent Last Name",
        "Writing Agent First Name",
        "Product",
        "Premium Amount",
    ]


def test_run_report_writes_outputs(workspace: Path) -> None:
    out = workspace / "output"
    result = run(
        submissions=workspace / "submissions.csv",
        teams=workspace / "teams.csv",
        output_dir=out,
        options=ReportOptions(),
        generate_excel=True,
        today=JANUARY,
    )
    assert result.displayed_records == 3
    assert (out / "agent-premiums-2025-01.pdf").exists()
    assert (out / "agent-premiums-2025-01.xlsx").exists()


def test_run_report_rejects_bad_files(workspace: Path) -> None:
    bad = workspace / "bad.csv"
    bad.write_text("Name,Amount\nJane,10\n")
    with pytest.raises(ReportError):
        run(submissions=bad, output_dir=workspace / "output")
    with pytest.raises(ReportError):
        run(submissions=workspace / "submissions.txt", output_dir=workspace / "output")
    assert not (workspace / "output").exists()


def test_cli_writes_pdf(workspace: Path, capsys) -> None:
    out = workspace / "out"
    code = run_report.main(
        [
            str(workspace / "submissions.csv"),
            "--teams",
            str(workspace / "teams.csv"),
            "--base",
            str(workspace),
            "--out",
            str(out),
            "--period",
            "2025-01",
            "--max-records",
            "2",
        ]
    )
    assert code == 0
    assert (out / "agent-premiums-2025-01.pdf").exists()
    printed = capsys.readouterr().out
    assert "John Smith" in printed
    assert "Ann Lee" not in printed


def test_cli_custom_range_includes_end_day(workspace: Path) -> None:
    out = workspace / "out"
    code = run_report.main(
        [
            str(workspace / "submissions.csv"),
            "--out",
            str(out),
            "--base",
            str(workspace),
            "--from",
            "2025-01-20",
            "--to",
            "2025-01-20",
            "--excel",
        ]
    )
    assert code == 0
    summary = pd.read_excel(out / "agent-premiums-2025-01.xlsx", sheet_name="Summary", dtype=str).fillna("")
    assert summary.values.tolist() == [
        ["NO TEAM", "Jane Doe", "$960.00", "$600.00"],
        ["TOTAL", "", "$960.00", "$600.00"],
    ]


def test_cli_list(workspace: Path, capsys) -> None:
    code = run_report.main(
        [str(workspace / "submissions.csv"), "--teams", str(workspace / "teams.csv"), "--list"]
    )
    assert code == 0
    printed = capsys.readouterr().out
    assert "Periods (2):" in printed
    assert "  2024-12" in printed
    assert "Teams (2):" in printed


def test_cli_reports_blocking_errors(workspace: Path) -> None:
    bad = workspace / "bad.csv"
    bad.write_text("Name,Amount\nJane,10\n")
    assert run_report.main([str(bad), "--out", str(workspace / "out")]) == 1
    assert not (workspace / "out").exists()


def test_cli_rejects_bad_period(workspace: Path) -> None:
    with pytest.raises(SystemExit):
        run_report.main([str(workspace / "submissions.csv"), "--period", "2025-13"])
