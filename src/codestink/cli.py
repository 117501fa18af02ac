from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.console import Console

from codestink import __version__
from codestink.analyzer import AnalysisRun, analyze_files
from codestink.config import ConfigError, compute_enabled_rule_ids
from codestink.engine.types import AnalysisResults
from codestink.logging_utils import configure_logging
from codestink.reporters.json_reporter import render_json
from codestink.reporters.markdown import render_markdown
from codestink.reporters.terminal import print_banner, render_terminal
from codestink.scanner import ScanError, discover_files, prepare_target

DEFAULT_REPORT_FILE = "code-quality-report.md"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="CodeStink - check your TypeScript code for stinkiness.",
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logs (printed to stderr)."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Reduce non-essential output."),
    ] = False,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar for long scans.", show_default=True),
    ] = True,
) -> None:
    """CodeStink CLI."""

    if verbose and quiet:
        raise typer.BadParameter("Choose at most one: --verbose or --quiet.")
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = {"verbose": verbose, "quiet": quiet, "progress": progress}


def _cli_settings() -> dict[str, bool]:
    ctx = click.get_current_context(silent=True)
    if ctx is None or not isinstance(ctx.obj, dict):
        return {"verbose": False, "quiet": False, "progress": True}
    return {
        "verbose": bool(ctx.obj.get("verbose", False)),
        "quiet": bool(ctx.obj.get("quiet", False)),
        "progress": bool(ctx.obj.get("progress", True)),
    }


def _analyze_with_optional_progress(path: Path, *, show_progress: bool) -> AnalysisRun:
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

    target = prepare_target(path)
    files = discover_files(target)

    if not show_progress or not files:
        return AnalysisRun(target=target, files=tuple(files), results=analyze_files(target, files))

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        transient=True,
    )
    task = progress.add_task("Analyze", total=len(files))

    def _on_file_done(_path: Path) -> None:
        progress.advance(task, 1)

    with progress:
        results = analyze_files(target, files, on_file_done=_on_file_done)
    return AnalysisRun(target=target, files=tuple(files), results=results)


def _emit_output(fmt: str, *, results: AnalysisResults, show_details: bool) -> None:
    normalized = fmt.strip().lower()
    if normalized == "terminal":
        render_terminal(results, console=console, show_details=show_details)
        return
    if normalized == "json":
        typer.echo(render_json(results))
        return
    if normalized == "markdown":
        typer.echo(render_markdown(results))
        return
    raise typer.BadParameter("Unsupported format. Use: terminal, markdown, json.")


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=True,
            resolve_path=True,
            help="File or directory to analyze (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, markdown, json.", show_default=True),
    ] = "terminal",
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Markdown report file.", show_default=True),
    ] = Path(DEFAULT_REPORT_FILE),
    no_output: Annotated[
        bool,
        typer.Option("--no-output", help="Do not write the Markdown report file."),
    ] = False,
    show_report: Annotated[
        bool,
        typer.Option("--show-report", "-s", help="Print the full Markdown report after the summary."),
    ] = False,
    fail_under: Annotated[
        int | None,
        typer.Option("--fail-under", min=0, max=100, help="Exit 1 if the average clean level is below N (0-100)."),
    ] = None,
) -> None:
    """Analyze TypeScript files and report their clean level."""

    normalized = output_format.strip().lower()
    if normalized not in {"terminal", "markdown", "json"}:
        raise typer.BadParameter("Unsupported format. Use: terminal, markdown, json.")

    settings = _cli_settings()
    try:
        run = _analyze_with_optional_progress(
            path,
            show_progress=settings["progress"] and not settings["quiet"] and normalized == "terminal",
        )
    except (ConfigError, ScanError) as exc:
        err_console.print(f"Error analyzing code: {exc}")
        raise typer.Exit(code=2) from exc

    results = run.results
    _emit_output(normalized, results=results, show_details=not settings["quiet"])

    report = render_markdown(results)
    if not no_output:
        try:
            output.write_text(report, encoding="utf-8")
        except OSError as exc:
            err_console.print(f"Cannot write report to {output}: {exc}")
            raise typer.Exit(code=2) from exc
        logger.info("Report saved to: %s", output)

    if show_report:
        print_banner(console)
        console.print(report, markup=False, highlight=False)

    config = run.target.config
    threshold = fail_under if fail_under is not None else config.min_clean_level
    should_fail = fail_under is not None or config.fail_on_stink
    if should_fail and results.files and results.average_clean_level < threshold:
        logger.info("Average clean level %.1f is below %d", results.average_clean_level, threshold)
        raise typer.Exit(code=1)


@app.command()
def rules(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            help="Project directory (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
    enabled_only: Annotated[
        bool,
        typer.Option("--enabled-only", help="Only show rules enabled by the current config."),
    ] = False,
) -> None:
    """List the rule catalogue and whether each rule is enabled."""

    from rich.table import Table

    from codestink.rules.registry import all_rules, groups_for_rule

    try:
        target = prepare_target(path)
    except (ConfigError, ScanError) as exc:
        err_console.print(f"Failed to load configuration: {exc}")
        raise typer.Exit(code=2) from exc

    available_rules = list(all_rules())
    enabled_ids = compute_enabled_rule_ids(target.config, available_rule_ids=(r.meta.rule_id for r in available_rules))

    rows = []
    for rule in available_rules:
        meta = rule.meta
        enabled = meta.rule_id in enabled_ids
        if enabled_only and not enabled:
            continue
        rows.append(
            {
                "rule_id": meta.rule_id,
                "enabled": enabled,
                "target": meta.target,
                "groups": list(groups_for_rule(meta.rule_id)),
                "title": meta.title,
                "description": meta.description,
            }
        )

    normalized = output_format.strip().lower()
    if normalized == "json":
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    if normalized != "terminal":
        raise typer.BadParameter("Unsupported format. Use: terminal, json.")

    table = Table(title="CodeStink Rules")
    table.add_column("ID", style="bold")
    table.add_column("Enabled", justify="center")
    table.add_column("Groups")
    table.add_column("Title")
    for row in rows:
        table.add_row(
            str(row["rule_id"]),
            "yes" if row["enabled"] else "no",
            ", ".join(row["groups"]),  # type: ignore[arg-type]
            str(row["title"]),
        )
    console.print(table)
