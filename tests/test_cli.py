from __future__ import annotations

import json
from pathlib import Path

from helpers import write_ts
from typer.testing import CliRunner

from codestink import __version__
from codestink.cli import app

STINKY_FILE = "function Bad_name() {\n  return 1;\n}\n"
CLEAN_FILE = "function fetchUser(id) {\n  return store.get(id);\n}\n"


def test_version_flag() -> None:
    res = CliRunner().invoke(app, ["--version"])

    assert res.exit_code == 0
    assert __version__ in res.stdout


def test_scan_json_output(tmp_path: Path) -> None:
    write_ts(tmp_path, "src/bad.ts", STINKY_FILE)

    res = CliRunner().invoke(app, ["scan", str(tmp_path), "--format", "json", "--no-output"])

    assert res.exit_code == 0, res.stdout
    payload = json.loads(res.stdout)
    assert payload["summary"]["files"] == 1
    assert payload["summary"]["issues"] == 3
    assert payload["files"][0]["name"] == "src/bad.ts"


def test_scan_writes_markdown_report(tmp_path: Path) -> None:
    write_ts(tmp_path, "src/clean.ts", CLEAN_FILE)
    out = tmp_path / "report.md"

    res = CliRunner().invoke(app, ["--no-progress", "scan", str(tmp_path), "-o", str(out)])

    assert res.exit_code == 0, res.stdout
    report = out.read_text(encoding="utf-8")
    assert report.startswith("# Code Quality Analysis Report")
    assert "### src/clean.ts" in report
    assert "Average Clean Level: 100.0/100" in res.stdout


def test_scan_show_report_prints_banner_and_markdown(tmp_path: Path) -> None:
    write_ts(tmp_path, "src/clean.ts", CLEAN_FILE)

    res = CliRunner().invoke(app, ["--no-progress", "scan", str(tmp_path), "--no-output", "-s"])

    assert res.exit_code == 0, res.stdout
    assert "CODE QUALITY ANALYZER" in res.stdout
    assert "## Files Analyzed" in res.stdout


def test_scan_markdown_format(tmp_path: Path) -> None:
    write_ts(tmp_path, "src/bad.ts", STINKY_FILE)

    res = CliRunner().invoke(app, ["scan", str(tmp_path), "--format", "markdown", "--no-output"])

    assert res.exit_code == 0, res.stdout
    assert "- Function 'Bad_name' lacks descriptive naming (1 instances)" in res.stdout


def test_scan_fail_under(tmp_path: Path) -> None:
    write_ts(tmp_path, "src/bad.ts", STINKY_FILE)
    runner = CliRunner()

    failing = runner.invoke(app, ["scan", str(tmp_path), "--format", "json", "--no-output", "--fail-under", "90"])
    passing = runner.invoke(app, ["scan", str(tmp_path), "--format", "json", "--no-output", "--fail-under", "80"])

    assert failing.exit_code == 1
    assert passing.exit_code == 0


def test_scan_fail_on_stink_from_config(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "[tool.codestink]\nmin-clean-level = 95\nfail-on-stink = true\n",
        encoding="utf-8",
    )
    write_ts(tmp_path, "src/bad.ts", STINKY_FILE)

    res = CliRunner().invoke(app, ["scan", str(tmp_path), "--format", "json", "--no-output"])

    assert res.exit_code == 1


def test_scan_invalid_config_exits_2(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text("[tool.codestink.thresholds]\nmax-lines = -4\n", encoding="utf-8")
    write_ts(tmp_path, "src/bad.ts", STINKY_FILE)

    res = CliRunner().invoke(app, ["scan", str(tmp_path), "--format", "json", "--no-output"])

    assert res.exit_code == 2


def test_scan_rejects_unknown_format(tmp_path: Path) -> None:
    res = CliRunner().invoke(app, ["scan", str(tmp_path), "--format", "sarif", "--no-output"])

    assert res.exit_code == 2


def test_verbose_and_quiet_are_mutually_exclusive(tmp_path: Path) -> None:
    res = CliRunner().invoke(app, ["-v", "-q", "scan", str(tmp_path), "--no-output"])

    assert res.exit_code == 2


def test_rules_command_json_lists_catalogue(tmp_path: Path) -> None:
    res = CliRunner().invoke(app, ["rules", str(tmp_path), "--format", "json"])

    assert res.exit_code == 0, res.stdout
    rows = json.loads(res.stdout)
    assert [row["rule_id"] for row in rows][:3] == ["F01", "F02", "F03"]
    assert {row["rule_id"] for row in rows} >= {"V01", "V02", "D01"}
    assert all(row["enabled"] for row in rows)


def test_rules_command_enabled_only_respects_config(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.codestink.rules]\nenable = ["variable"]\n',
        encoding="utf-8",
    )

    res = CliRunner().invoke(app, ["rules", str(tmp_path), "--enabled-only", "--format", "json"])

    assert res.exit_code == 0, res.stdout
    assert [row["rule_id"] for row in json.loads(res.stdout)] == ["V01", "V02"]


def test_rules_command_table(tmp_path: Path) -> None:
    res = CliRunner().invoke(app, ["rules", str(tmp_path)])

    assert res.exit_code == 0, res.stdout
    assert "CodeStink Rules" in res.stdout
    assert "D01" in res.stdout
