"""
collector.main
------------
AUTHOR: carter-vin

Command-line tool that polls HDFS for HBase table physical sizes on disk.
The output file is consumed by the d3 animation renderer.

Key contract:
- `table-size-collector collect -output sizes.json -tableNames a b` polls
  until SIGINT/SIGTERM, then writes every series to -output.
- Data is only written on graceful stop: Ctrl-C in the foreground or
  `kill -2 <pid>` / `kill <pid>` in the background. `kill -9` loses the run.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer

from collector import __version__
from collector.poller import DEFAULT_INTERVAL_S, Poller
from collector.probe import DEFAULT_HADOOP_BIN, DEFAULT_HBASE_ROOT, TableSizeProber

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="table-size-collector: sample HBase table sizes on HDFS over time",
)


# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


@dataclass(frozen=True)
class CollectorConfig:
    """
    Validated collect settings
    - table_names: non-empty, unique, in the order given
    - probe_timeout_s: None means wait for hadoop as long as it takes
    """

    interval_s: int
    output_path: Path
    hbase_root: str
    table_names: tuple[str, ...]
    hadoop_bin: str = DEFAULT_HADOOP_BIN
    probe_timeout_s: Optional[float] = None
    emit_stdout: bool = True


def normalize_table_names(names: List[str]) -> tuple[str, ...]:
    """
    Strip, reject blanks and duplicates, keep order
    """
    cleaned: list[str] = []
    for name in names:
        stripped = name.strip()
        if not stripped:
            raise typer.BadParameter("table names must not be blank", param_hint="'-tableNames'")
        if stripped in cleaned:
            raise typer.BadParameter(f"duplicate table name: {stripped}", param_hint="'-tableNames'")
        cleaned.append(stripped)

    if not cleaned:
        raise typer.BadParameter("at least one table name is required", param_hint="'-tableNames'")

    return tuple(cleaned)


def build_poller(config: CollectorConfig) -> Poller:
    prober = TableSizeProber(
        config.hbase_root,
        hadoop_bin=config.hadoop_bin,
        timeout_s=config.probe_timeout_s,
    )
    return Poller(
        config.table_names,
        prober,
        output_path=config.output_path,
        interval_s=config.interval_s,
        emit_stdout=config.emit_stdout,
    )


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior.
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: table-size-collector --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print collector version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"table-size-collector v{__version__}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command(
    "collect",
    context_settings={"allow_extra_args": True},
)
def collect(
    ctx: typer.Context,
    interval: int = typer.Option(
        DEFAULT_INTERVAL_S,
        "-interval",
        "--interval",
        help="Poll interval in seconds.",
        min=1,
    ),
    output: Path = typer.Option(
        ...,
        "-output",
        "--output",
        help="Output file, overwritten with all series on exit.",
        dir_okay=False,
    ),
    hbase_root: str = typer.Option(
        DEFAULT_HBASE_ROOT,
        "-hbaseRoot",
        "--hbase-root",
        help="The HDFS path of the HBase root.",
    ),
    table_names: List[str] = typer.Option(
        ...,
        "-tableNames",
        "--table-names",
        help="Table names to report data for (space delimited).",
    ),
    hadoop_bin: str = typer.Option(
        DEFAULT_HADOOP_BIN,
        "--hadoop-bin",
        help="hadoop executable used for `fs -du -s`.",
    ),
    probe_timeout: Optional[float] = typer.Option(
        None,
        "--probe-timeout",
        help="Seconds to wait for one `hadoop fs -du` call (default: no limit).",
        min=0.1,
    ),
    no_stdout: bool = typer.Option(
        False,
        "--no-stdout",
        help="Disable printing each cycle's snapshot to stdout.",
    ),
) -> None:
    """
    Poll table sizes until interrupted, then write the series file.

    Failure semantics:
    - invalid options exit with a usage error before anything is written
    - a failed write at shutdown raises and exits non-zero
    """
    # `-tableNames a b c`: Click binds `a`, the rest arrive as extra args
    config = CollectorConfig(
        interval_s=interval,
        output_path=output,
        hbase_root=hbase_root,
        table_names=normalize_table_names([*table_names, *ctx.args]),
        hadoop_bin=hadoop_bin,
        probe_timeout_s=probe_timeout,
        emit_stdout=not no_stdout,
    )

    poller = build_poller(config)
    poller.serve()


# run command if invoked directly
if __name__ == "__main__":
    app()
