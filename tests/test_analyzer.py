from __future__ import annotations

from pathlib import Path

import pytest
from helpers import write_ts

from codestink.analyzer import analyze_files, analyze_path, analyze_source
from codestink.engine.scoring import StinkEngine
from codestink.scanner import prepare_target

STINKY_FILE = """function Bad_name() {
  return 1;
}
"""


def test_file_without_functions_or_duplicates_scores_100(engine: StinkEngine) -> None:
    analysis = analyze_source("empty.ts", "export const limit = 3;\n", engine)

    assert analysis.functions == ()
    assert analysis.overall_clean_level == pytest.approx(100.0)


def test_overall_level_combines_file_and_function_scores(engine: StinkEngine) -> None:
    analysis = analyze_source("bad.ts", STINKY_FILE, engine)

    (fn,) = analysis.functions
    # camelCase, verb and descriptiveness checks all fail.
    assert fn.clean_level == 70
    assert analysis.result.clean_level == 100
    assert analysis.overall_clean_level == pytest.approx(0.4 * 100 + 0.6 * 70)
    assert analysis.issue_count == 3


def test_issue_count_includes_variable_issues(engine: StinkEngine) -> None:
    text = "function fetchUser() {\n  const isReady = 1;\n  return isReady;\n}\n"

    analysis = analyze_source("vars.ts", text, engine)

    (fn,) = analysis.functions
    (var,) = fn.variables
    assert var.clean_level == 85
    assert fn.clean_level == 100
    assert analysis.issue_count == 1
    # Variable scores are reported but not folded into the file score.
    assert analysis.overall_clean_level == pytest.approx(100.0)


def test_malformed_functions_are_recorded_as_skipped(monkeypatch: pytest.MonkeyPatch, engine: StinkEngine) -> None:
    import codestink.engine.syntax as syntax

    monkeypatch.setattr(syntax, "parse", lambda _language, _source: None)

    analysis = analyze_source("bad.ts", STINKY_FILE, engine)

    assert [s.entity_name for s in analysis.skipped] == ["Bad_name"]
    assert analysis.functions[0].clean_level == 100


def test_analyze_path_summarizes_project(tmp_path: Path) -> None:
    write_ts(tmp_path, "a.ts", STINKY_FILE)
    write_ts(tmp_path, "b.ts", "export const limit = 3;\n")

    run = analyze_path(tmp_path, workers=1)
    results = run.results

    assert results.file_count == 2
    assert results.function_count == 1
    assert results.issue_count == 3
    assert results.average_clean_level == pytest.approx((82.0 + 100.0) / 2)
    assert [f.file.name for f in results.files] == ["a.ts", "b.ts"]


def test_unreadable_files_are_skipped(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_ts(tmp_path, "a.ts", STINKY_FILE)
    target = prepare_target(tmp_path)

    def _boom(_path: Path) -> str:
        raise OSError("denied")

    monkeypatch.setattr("codestink.analyzer.read_source", _boom)
    results = analyze_files(target, [path], workers=1)

    assert results.files == ()
    assert [s.file_name for s in results.skipped] == ["a.ts"]


def test_parallel_analysis_matches_serial(tmp_path: Path) -> None:
    for name in ("alpha.ts", "beta.ts", "gamma.ts", "delta.ts"):
        write_ts(tmp_path, name, STINKY_FILE)

    serial = analyze_path(tmp_path, workers=1).results
    parallel = analyze_path(tmp_path, workers=4).results

    assert serial == parallel


def test_empty_project_has_zero_average(tmp_path: Path) -> None:
    results = analyze_path(tmp_path, workers=1).results

    assert results.file_count == 0
    assert results.average_clean_level == 0.0


def test_failing_file_is_skipped_and_scan_continues(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import codestink.analyzer as analyzer

    broken = write_ts(tmp_path, "broken.ts", STINKY_FILE)
    healthy = write_ts(tmp_path, "healthy.ts", STINKY_FILE)
    real_analyze_source = analyzer.analyze_source

    def _flaky(name, text, engine, **kwargs):
        if name == "broken.ts":
            raise RuntimeError("grammar unavailable")
        return real_analyze_source(name, text, engine, **kwargs)

    monkeypatch.setattr(analyzer, "analyze_source", _flaky)
    results = analyze_files(prepare_target(tmp_path), [broken, healthy], workers=2)

    assert [f.file.name for f in results.files] == ["healthy.ts"]
    assert [(s.file_name, s.reason) for s in results.skipped] == [("broken.ts", "analysis failed: grammar unavailable")]
