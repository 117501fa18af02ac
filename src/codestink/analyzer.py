from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from codestink.engine.extraction import extract_functions
from codestink.engine.scoring import StinkEngine, overall_clean_level
from codestink.engine.tree_sitter import parse as ts_parse
from codestink.engine.types import (
    AnalysisResults,
    FileAnalysis,
    FunctionAnalysis,
    SkippedEntity,
    SourceFile,
    VariableAnalysis,
)
from codestink.languages.registry import detect_language
from codestink.scanner import ScanTarget, discover_files, prepare_target, read_source, worker_count_from_env
from codestink.utils import report_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnalysisRun:
    target: ScanTarget
    files: tuple[Path, ...]
    results: AnalysisResults


def analyze_source(
    name: str,
    text: str,
    engine: StinkEngine,
    *,
    path: Path | None = None,
    language: str = "typescript",
) -> FileAnalysis:
    """Extract and score every function and variable of one source text."""

    source_file = SourceFile(name=name, text=text, language=language, path=path)
    skipped: list[SkippedEntity] = []

    tree = ts_parse(language, text)
    if tree is None:
        skipped.append(SkippedEntity(file_name=name, reason="could not parse file; no functions extracted"))
    else:
        source_file.functions = extract_functions(source_file, tree)

    file_result = engine.evaluate_file(source_file)
    if file_result.degraded:
        skipped.append(
            SkippedEntity(
                file_name=name,
                reason=f"duplicate detection skipped (more than {engine.config.max_duplicate_scan_lines} lines)",
            )
        )

    functions: list[FunctionAnalysis] = []
    for fn in source_file.functions:
        fn_result = engine.evaluate_function(fn)
        if fn_result.malformed:
            skipped.append(SkippedEntity(file_name=name, reason="function could not be parsed", entity_name=fn.name))
        variables = tuple(VariableAnalysis(variable=var, result=engine.evaluate_variable(var)) for var in fn.variables)
        functions.append(FunctionAnalysis(function=fn, result=fn_result, variables=variables))

    overall = overall_clean_level(file_result.clean_level, [f.clean_level for f in functions])
    logger.debug("%s: clean level %.1f (%d functions)", name, overall, len(functions))
    return FileAnalysis(
        file=source_file,
        result=file_result,
        functions=tuple(functions),
        overall_clean_level=overall,
        skipped=tuple(skipped),
    )


def _analyze_path(engine: StinkEngine, project_root: Path, path: Path) -> FileAnalysis | SkippedEntity:
    name = report_name(path, project_root)
    try:
        text = read_source(path)
    except OSError as exc:
        logger.warning("Cannot read %s: %s", name, exc)
        return SkippedEntity(file_name=name, reason=f"unreadable file: {exc.strerror or exc}")
    language = detect_language(path) or "typescript"
    try:
        return analyze_source(name, text, engine, path=path, language=language)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Analysis of %s failed: %s", name, exc)
        return SkippedEntity(file_name=name, reason=f"analysis failed: {exc}")


def analyze_files(
    target: ScanTarget,
    files: list[Path],
    *,
    engine: StinkEngine | None = None,
    workers: int | None = None,
    on_file_done: Callable[[Path], None] | None = None,
) -> AnalysisResults:
    """
    Analyze `files` and collect the project summary.

    Results keep the input order regardless of the number of workers.
    """

    engine = engine if engine is not None else StinkEngine(target.config)
    effective_workers = workers if workers is not None else worker_count_from_env()
    analyze = partial(_analyze_path, engine, target.project_root)

    outcomes: list[FileAnalysis | SkippedEntity] = []
    if effective_workers <= 1 or len(files) <= 1:
        for path in files:
            outcomes.append(analyze(path))
            if on_file_done is not None:
                on_file_done(path)
    else:
        max_workers = min(effective_workers, len(files))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            for path, outcome in zip(files, executor.map(analyze, files), strict=True):
                outcomes.append(outcome)
                if on_file_done is not None:
                    on_file_done(path)

    analyses: list[FileAnalysis] = []
    skipped: list[SkippedEntity] = []
    for outcome in outcomes:
        if isinstance(outcome, SkippedEntity):
            skipped.append(outcome)
        else:
            analyses.append(outcome)
            skipped.extend(outcome.skipped)
    return AnalysisResults(files=tuple(analyses), skipped=tuple(skipped))


def analyze_path(scan_path: Path, *, workers: int | None = None) -> AnalysisRun:
    target = prepare_target(scan_path)
    files = discover_files(target)
    results = analyze_files(target, files, workers=workers)
    return AnalysisRun(target=target, files=tuple(files), results=results)
