from __future__ import annotations

from collections import Counter

from codestink.engine.types import AnalysisResults, FileAnalysis

EMPTY_REPORT = "No analysis has been performed yet. Run analyze() first."
TOP_ISSUES_LIMIT = 5


def render_markdown(results: AnalysisResults) -> str:
    if not results.files:
        return EMPTY_REPORT

    lines: list[str] = []
    lines.append("# Code Quality Analysis Report")
    lines.append("")
    lines.append("## Summary")
    lines.append(f"- Analyzed {results.file_count} files")
    lines.append(f"- Found {results.function_count} functions")
    lines.append(f"- Detected {results.issue_count} issues")
    lines.append(f"- Average Clean Level: {results.average_clean_level:.1f}/100")
    lines.append("")

    lines.append("## Files Analyzed")
    # Worst files first; sorted() is stable so ties keep scan order.
    for analysis in sorted(results.files, key=lambda f: f.overall_clean_level):
        lines.extend(_render_file(analysis))

    if results.skipped:
        lines.append("## Skipped")
        for skipped in results.skipped:
            subject = f"{skipped.file_name}::{skipped.entity_name}" if skipped.entity_name else skipped.file_name
            lines.append(f"- {subject}: {skipped.reason}")
        lines.append("")

    return "\n".join(lines) + "\n"


def _render_file(analysis: FileAnalysis) -> list[str]:
    issues = analysis.all_issues()
    lines = [
        f"### {analysis.file.name}",
        f"- Clean Level: {analysis.overall_clean_level:.1f}/100",
        f"- Functions: {len(analysis.functions)}",
        f"- Issues: {len(issues)}",
        "",
    ]
    if issues:
        lines.append("#### Top Issues:")
        # Counter keeps first-seen order for equal keys.
        for issue, count in list(Counter(issues).items())[:TOP_ISSUES_LIMIT]:
            lines.append(f"- {issue} ({count} instances)")
        lines.append("")
    return lines
