from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from codestink import __version__
from codestink.engine.types import AnalysisResults, FileAnalysis

WORST_FILES_LIMIT = 5

BANNER = r"""
  ███████  ████████ ██ ███   ██ ██   ██
  ██         ██    ██ ████   ██ ██  ██
  ███████    ██    ██ ██ ██  ██ █████
       ██    ██    ██ ██  ██ ██ ██  ██
  ███████    ██    ██ ██   ████ ██   ██
         CODE QUALITY ANALYZER
"""


def interpret_clean_level(level: float) -> tuple[str, str]:
    """Return (message, style) describing an average clean level."""

    if level > 90:
        return "Your code is very clean! Great job!", "bold green"
    if level > 75:
        return "Your code is reasonably clean, with some room for improvement.", "green"
    if level > 60:
        return "Your code has moderate stink. Consider addressing the top issues.", "yellow"
    return "Your code has significant stink. Check the report for details.", "bold red"


def _level_style(level: float) -> str:
    if level > 75:
        return "green"
    if level > 60:
        return "yellow"
    return "red"


def render_terminal(results: AnalysisResults, *, console: Console, show_details: bool = True) -> None:
    header = Text()
    header.append("CodeStink ", style="bold")
    header.append(f"v{__version__}", style="dim")
    header.append(" code quality analysis", style="dim")

    console.print(
        Panel(
            header,
            subtitle=f"Analyzed {results.file_count} files",
            border_style="cyan",
        )
    )

    if show_details:
        worst = sorted(results.files, key=lambda f: f.overall_clean_level)[:WORST_FILES_LIMIT]
        if worst:
            console.print(Text("Worst files", style="bold"))
            for analysis in worst:
                _print_file(console, analysis)
            console.print()

        if results.skipped:
            console.print(Text("Skipped", style="bold"))
            for skipped in results.skipped:
                subject = f"{skipped.file_name}::{skipped.entity_name}" if skipped.entity_name else skipped.file_name
                console.print(Text(f"  - {subject}: {skipped.reason}", style="dim"))
            console.print()

    _print_summary(results, console=console)


def _print_file(console: Console, analysis: FileAnalysis) -> None:
    level = analysis.overall_clean_level
    line = Text()
    line.append(f"  {level:5.1f} ", style=_level_style(level))
    line.append(analysis.file.name, style="bold")
    line.append(f"  ({len(analysis.functions)} functions, {analysis.issue_count} issues)", style="dim")
    console.print(line)


def _print_summary(results: AnalysisResults, *, console: Console) -> None:
    console.print(Text("─" * 60, style="dim"))
    console.print(Text(f"Files analyzed: {results.file_count}"))
    console.print(Text(f"Functions found: {results.function_count}"))
    console.print(Text(f"Issues detected: {results.issue_count}"))
    average = results.average_clean_level
    console.print(Text(f"Average Clean Level: {average:.1f}/100", style="bold"))
    console.print(Text("─" * 60, style="dim"))
    if results.files:
        message, style = interpret_clean_level(average)
        console.print(Text(message, style=style))


def print_banner(console: Console) -> None:
    console.print(Text("=" * 80, style="dim"))
    console.print(Text(BANNER, style="bold magenta"))
    console.print(Text("=" * 80, style="dim"))
