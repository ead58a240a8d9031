"""
triage.cli
AUTHOR: carter-vin

Minimal triage CLI for inspecting a collector series file
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import typer

from collector import __version__
from collector.model import SIZE
from triage.read import SeriesFileError, load_series_file
from triage.render import RENDERER_NAMES, get_renderer
from triage.summarize import summarize_series


app = typer.Typer(add_completion=False, help="table-size-triage: inspect collected table sizes")


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: table-size-triage --help")


@app.command()
def version() -> None:
    """
    Print triage version
    """
    typer.echo(f"table-size-triage v{__version__}")


@app.command("summarize")
def summarize(
    input_path: str = typer.Option(
        ...,
        "--input",
        help="Series file written by `table-size-collector collect`.",
    ),
    metric: str = typer.Option(
        SIZE,
        "--metric",
        help="Metric key to summarize.",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Output format: text, table or json.",
    ),
    table: list[str] = typer.Option(
        [],
        "--table",
        help="Only show these tables (repeatable).",
    ),
) -> None:
    """
    Summarize growth per table with deterministic output
    """
    if output_format not in RENDERER_NAMES:
        raise typer.BadParameter(f"--format must be one of: {', '.join(RENDERER_NAMES)}")

    path = Path(input_path)
    try:
        series = load_series_file(path)
    except SeriesFileError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)

    if table:
        wanted = set(table)
        series = [named for named in series if named.name in wanted]

    summaries = summarize_series(series, metric=metric)

    meta = {
        "series_path": str(path),
        "metric": metric,
        "tables_seen": len(summaries),
        "computed_at": datetime.now(timezone.utc).isoformat(),
    }

    typer.echo(get_renderer(output_format).render(summaries, meta=meta))


if __name__ == "__main__":
    app()
