"""CLI for benchtrail list|info|new|run|remove|compare|plot commands."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from benchtrail.comparison import (
    ComparisonReport,
    Direction,
    RunSelector,
    compare_runs,
    resolve_run_id,
    run_prompt,
)
from benchtrail.config import load_config
from benchtrail.errors import (
    BenchTrailError,
    ExternalToolUnavailable,
    NoRunsRecorded,
    NotFound,
    OutOfRange,
    Unparseable,
)
from benchtrail.logging_setup import setup_logging
from benchtrail.models import BenchHeader, BenchmarkHistory
from benchtrail.operations import record_run, register_benchmark, remove_run
from benchtrail.plotting import plot_points, render_plot
from benchtrail.store import validate_name
from benchtrail.workspace import Workspace

app = typer.Typer(help="Track benchmark runs over time and compare them.")
console = Console()
logger = logging.getLogger(__name__)

SEPARATOR = "+" + "-" * 78 + "+"


@contextmanager
def _error_boundary() -> Iterator[None]:
    """Report benchtrail errors and turn them into exit codes."""
    try:
        yield
    except BenchTrailError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code)


def _workspace(ctx: typer.Context) -> Workspace:
    return ctx.obj


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: str | None = typer.Option(
        None,
        "--root",
        help="Workspace directory. Default: $BENCHTRAIL_HOME or ~/.config/benchtrail",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Track benchmark runs over time and compare them."""
    with _error_boundary():
        config = load_config(root)
    setup_logging("DEBUG" if verbose else config.log_level)
    logger.debug("Using workspace at %s", config.root_dir)
    ctx.obj = Workspace.from_config(config)


def _prompt_benchmark_name(ws: Workspace) -> str:
    while True:
        name = typer.prompt("Which benchmark?")
        try:
            ws.catalog.require(name)
            return name
        except NotFound as e:
            console.print(f"[red]{escape(str(e))}[/red]")


def _prompt_run(
    name: str,
    history: BenchmarkHistory,
    *,
    action: str,
    allow_all: bool,
) -> RunSelector:
    error: BenchTrailError | None = None
    while True:
        token = typer.prompt(run_prompt(name, history, error, action=action, allow_all=allow_all))
        try:
            selector = resolve_run_id(history, token)
        except (Unparseable, OutOfRange) as e:
            error = e
            continue
        if selector.is_all and not allow_all:
            error = Unparseable(token)
            continue
        return selector


def _resolve_single(history: BenchmarkHistory, token: str) -> int:
    selector = resolve_run_id(history, token)
    if selector.is_all:
        raise Unparseable(token)
    return selector.index


def _load_comparable(ws: Workspace, name: str) -> BenchmarkHistory:
    history = ws.histories.load(name)
    if not len(history):
        raise NoRunsRecorded(name)
    return history


def _require_all_or_none(values: dict[str, str | None]) -> bool:
    """Return True if every value was given; fail unless none were."""
    given = [key for key, value in values.items() if value is not None]
    if given and len(given) != len(values):
        names = ", ".join(f"<{key}>" for key in values)
        console.print(
            f"[red]Error: supply either all of {names} or none. "
            "In the case of none, a prompt will guide you.[/red]"
        )
        raise typer.Exit(code=2)
    return bool(given)


@app.command("list")
def list_benchmarks(ctx: typer.Context) -> None:
    """List registered benchmarks."""
    ws = _workspace(ctx)
    with _error_boundary():
        catalog = ws.catalog.list()
    if not catalog:
        console.print("No benchmarks registered yet. Use [bold]benchtrail new[/bold].")
        return
    console.print(f"[bold]{len(catalog)} benchmark(s) found:[/bold]")
    for name, header in sorted(catalog.items()):
        console.print(f"> Name: [bold cyan]{escape(name)}[/bold cyan]")
        console.print(f"  Description: {escape(header.description)}")
        console.print(f"  Source Location: {escape(header.source_root)}")
        console.print(f"  Executable Location: {escape(header.source_bin)}")


@app.command()
def info(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Benchmark name"),
) -> None:
    """Show a benchmark's header and recorded runs."""
    ws = _workspace(ctx)
    with _error_boundary():
        if name is None:
            name = _prompt_benchmark_name(ws)
        header = ws.catalog.require(name)
        history = ws.histories.load(name)

    console.print(f"> Name: [bold cyan]{escape(name)}[/bold cyan]")
    console.print(f"  Description: {escape(header.description)}")
    console.print(f"  Source Location: {escape(header.source_root)}")
    console.print(f"  Executable Location: {escape(header.source_bin)}")
    console.print(f"  Previous run information ({len(history)} runs):")
    for entry in history.describe():
        console.print(
            f"  :: Run #{entry['run']} (git:{entry['source_hash']}, "
            f"{entry['measurements']} measurements): {escape(entry['commentary'])}"
        )

    context = history.context
    if context is not None:
        console.print("  Last run context:")
        if context.date:
            console.print(f"    Date: {context.date}")
        if context.num_cpus is not None:
            console.print(f"    CPUs: {context.num_cpus} @ {context.mhz_per_cpu} MHz")
        if context.cpu_scaling_enabled is not None:
            console.print(f"    CPU scaling enabled: {context.cpu_scaling_enabled}")
        for cache in context.caches:
            console.print(
                f"    L{cache.level} cache: {cache.size} bytes (shared by {cache.num_sharing})"
            )
        if context.library_build_type:
            console.print(f"    Library build type: {context.library_build_type}")


@app.command()
def new(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Name for the benchmark"),
    source: str | None = typer.Option(None, "--source", "-s", help="Source directory location"),
    binary: str | None = typer.Option(None, "--bin", "-b", help="Benchmark executable path"),
    description: str | None = typer.Option(None, "--description", "-d", help="Benchmark description"),
) -> None:
    """Register a new benchmark."""
    ws = _workspace(ctx)
    with _error_boundary():
        if name is None:
            while True:
                name = typer.prompt("Enter a name for the benchmark")
                try:
                    validate_name(name)
                except BenchTrailError as e:
                    console.print(f"[red]{escape(str(e))}[/red]")
                    continue
                if ws.catalog.get(name) is not None:
                    console.print(f"[red]Benchmark '{escape(name)}' already exists.[/red]")
                    continue
                break
        if source is None:
            source = typer.prompt("Enter a source directory location")
        if binary is None:
            binary = typer.prompt("Enter an executable path")
        if description is None:
            description = typer.prompt("Describe this benchmark", default="")

        header = BenchHeader(source_root=source, source_bin=binary, description=description)
        register_benchmark(ws.catalog, name, header)
    console.print(f"[green]Registered benchmark [bold]{escape(name)}[/bold][/green]")


@app.command()
def run(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Benchmark name"),
    message: str | None = typer.Option(
        None, "--message", "-m", help="What has changed since the last run?"
    ),
) -> None:
    """Run another iteration of a benchmark and record it."""
    ws = _workspace(ctx)
    with _error_boundary():
        if name is None:
            name = _prompt_benchmark_name(ws)
        ws.catalog.require(name)
        if message is None:
            message = typer.prompt("What has changed since the last run?")
        history = record_run(ws.catalog, ws.histories, ws.executor, ws.git, name, message)
    latest = history.runs[-1]
    console.print(
        f"[green]Recorded run #{len(history) - 1} of [bold]{escape(name)}[/bold] "
        f"({len(latest.measurements)} measurements, git:{latest.short_hash})[/green]"
    )


@app.command()
def remove(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Benchmark name"),
    run_id: str | None = typer.Argument(None, help="Run index, or * for all runs"),
) -> None:
    """Remove one run (or all runs) from a benchmark's history."""
    ws = _workspace(ctx)
    one_shot = _require_all_or_none({"name": name, "run_id": run_id})
    with _error_boundary():
        if one_shot:
            ws.catalog.require(name)
            history = ws.histories.load(name)
            selector = resolve_run_id(history, run_id)
        else:
            catalog = ws.catalog.list()
            console.print("Current benchmarks (run info command for more info):")
            for bench_name, header in sorted(catalog.items()):
                console.print(f" > {escape(bench_name)}: {escape(header.description)}")
            name = _prompt_benchmark_name(ws)
            history = ws.histories.load(name)
            selector = _prompt_run(name, history, action="remove", allow_all=True)
        history = remove_run(ws.histories, name, selector)
    what = "all runs" if selector.is_all else f"run #{selector.index}"
    console.print(
        f"Removed {what} from [bold]{escape(name)}[/bold]; {len(history)} run(s) remain."
    )


def print_comparison(report: ComparisonReport) -> None:
    """Render a comparison report to the console."""
    console.print(SEPARATOR)
    console.print(f"Comparing run {report.run1} and {report.run2} from {escape(report.name)}")
    console.print(f"Run {report.run1} description: {escape(report.commentary1)}")
    console.print(f"Run {report.run2} description: {escape(report.commentary2)}")

    table = Table(show_edge=False)
    table.add_column("Name", style="italic")
    table.add_column(f"Run {report.run1} Time", justify="right")
    table.add_column(f"Run {report.run2} Time", justify="right")
    table.add_column(f"Time Diff({report.time_unit})", justify="right")
    table.add_column("% Diff", justify="right")
    table.add_column("Speedup", justify="right")

    styles = {
        Direction.IMPROVED: "green",
        Direction.REGRESSED: "red",
        Direction.UNCHANGED: "blue",
    }
    for row in report.rows:
        table.add_row(
            escape(row.name),
            f"{row.time1:g}",
            f"{row.time2:g}",
            Text(f"{row.absolute_diff:+g}", style=styles[row.direction]),
            f"{row.percent_diff:+.2f}%",
            f"{row.speedup_ratio:.3f}x",
        )
    console.print(table)

    if any(not row.is_finite for row in report.rows):
        console.print("[yellow]Some runs recorded a zero time; their ratios are not finite.[/yellow]")
    if report.truncated:
        console.print(
            f"[yellow]{report.skipped} measurement(s) skipped: "
            "the runs have different lengths.[/yellow]"
        )

    console.print(SEPARATOR)
    console.print("Source difference(s):")
    if report.source_diff:
        console.print(Text.from_ansi(report.source_diff))
    else:
        console.print("[dim]No source diff available.[/dim]")
    console.print(SEPARATOR)


@app.command()
def compare(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Benchmark name"),
    run_id_1: str | None = typer.Argument(None, help="Baseline run index"),
    run_id_2: str | None = typer.Argument(None, help="Run index compared against the baseline"),
    no_diff: bool = typer.Option(False, "--no-diff", help="Skip the source diff."),
    json_path: str | None = typer.Option(None, "--json", help="Also write the report as JSON."),
    markdown_path: str | None = typer.Option(
        None, "--markdown", help="Also write the report as Markdown."
    ),
) -> None:
    """Compare two runs of a benchmark."""
    ws = _workspace(ctx)
    one_shot = _require_all_or_none({"name": name, "run_id_1": run_id_1, "run_id_2": run_id_2})
    with _error_boundary():
        if one_shot:
            ws.catalog.require(name)
            history = _load_comparable(ws, name)
            first = _resolve_single(history, run_id_1)
            second = _resolve_single(history, run_id_2)
        else:
            name = _prompt_benchmark_name(ws)
            history = _load_comparable(ws, name)
            first = _prompt_run(name, history, action="use as baseline", allow_all=False).index
            second = _prompt_run(name, history, action="compare against", allow_all=False).index
        header = ws.catalog.require(name)
        report = compare_runs(
            history,
            first,
            second,
            header,
            source_diff=None if no_diff else ws.git.diff,
        )

    print_comparison(report)
    if json_path:
        report.write_json(Path(json_path))
        console.print(f"[bold]JSON report:[/bold] {json_path}")
    if markdown_path:
        report.write_markdown(Path(markdown_path))
        console.print(f"[bold]Markdown report:[/bold] {markdown_path}")


@app.command()
def plot(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Benchmark name"),
    run_id: str = typer.Argument("*", help="Run index, or * for all runs"),
    output: str | None = typer.Option(
        None, "--output", "-o", help="Image path. Default: <name>-plot.png"
    ),
) -> None:
    """Plot real time per measurement for one or all runs."""
    ws = _workspace(ctx)
    with _error_boundary():
        ws.catalog.require(name)
        history = ws.histories.load(name)
        selector = resolve_run_id(history, run_id)
        series = plot_points(history, selector)

    time_unit = "ns"
    for run_record in history.runs:
        if run_record.measurements:
            time_unit = run_record.measurements[0].time_unit
            break

    path = Path(output or f"{name}-plot.png")
    title = f"{name}: " + ("all runs" if selector.is_all else f"run #{selector.index}")
    try:
        render_plot(series, path, title=title, time_unit=time_unit)
    except ExternalToolUnavailable as e:
        logger.warning("%s Plot skipped.", e)
        console.print("[yellow]matplotlib is not installed; plot skipped.[/yellow]")
        return
    console.print(f"[bold]Plot written to:[/bold] {path}")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
