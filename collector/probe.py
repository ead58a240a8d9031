"""
collector.probe
AUTHOR: carter-vin

Size prober
- Runs `hadoop fs -du -s <hbase_root>/<table>` per table
- Parses the leading byte count from stdout
- Failure is data: probe() never raises, it logs and returns None
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from collector.logging import emit_event

DEFAULT_HBASE_ROOT = "/hbase"
DEFAULT_HADOOP_BIN = "hadoop"


class ProbeError(RuntimeError):
    """Raised when a table size cannot be measured or parsed."""


@dataclass(frozen=True)
class ProbeOutcome:
    """
    Normalized probe result
    - ok: false=failure, error details in error fields
    - value: size in bytes if ok=true
    """

    table: str
    ok: bool
    value: Optional[int] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None


def run_probe(table: str, fn, *args: Any, **kwargs: Any) -> ProbeOutcome:
    """
    Run a measurement & collect failure as data
    """
    try:
        v = fn(*args, **kwargs)
        return ProbeOutcome(table=table, ok=True, value=v)
    except Exception as e:
        return ProbeOutcome(
            table=table,
            ok=False,
            value=None,
            error_type=type(e).__name__,
            error_message=str(e),
        )


def table_path(hbase_root: str, table: str) -> str:
    """
    Build the HDFS directory that physically holds a table
    """
    return f"{hbase_root.rstrip('/')}/{table}"


def parse_du_output(stdout: str) -> int:
    """
    Parse `hadoop fs -du -s` output into a byte count

    Expected shape: "<bytes> [<bytes with replication>] /hbase/<table>"
    Only the first numeric token before the path is used.
    """
    head = stdout.split("/", 1)[0]
    tokens = head.split()
    if not tokens:
        raise ProbeError(f"no size in du output: {stdout.strip()!r}")

    try:
        size = int(tokens[0])
    except ValueError as e:
        raise ProbeError(f"unparseable size {tokens[0]!r} in du output") from e

    if size < 0:
        raise ProbeError(f"negative size {size} in du output")

    return size


class TableSizeProber:
    """
    Measures one table at a time by shelling out to the hadoop CLI.

    No timeout unless one is configured: a hung `hadoop` call blocks the
    caller until it exits.
    """

    def __init__(
        self,
        hbase_root: str = DEFAULT_HBASE_ROOT,
        *,
        hadoop_bin: str = DEFAULT_HADOOP_BIN,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.hbase_root = hbase_root
        self.hadoop_bin = hadoop_bin
        self.timeout_s = timeout_s

    def command_for(self, table: str) -> Sequence[str]:
        return [self.hadoop_bin, "fs", "-du", "-s", table_path(self.hbase_root, table)]

    def measure(self, table: str) -> int:
        """
        Measure a table size in bytes

        Raises ProbeError (or OSError / TimeoutExpired from subprocess)
        """
        command = self.command_for(table)
        process = subprocess.run(
            command,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=self.timeout_s,
            check=False,
        )

        if process.returncode != 0:
            stderr = process.stderr.strip()
            raise ProbeError(f"{command[0]} exited with {process.returncode}: {stderr}")

        return parse_du_output(process.stdout)

    def probe(self, table: str) -> Optional[int]:
        """
        Best-effort measurement: size in bytes, or None on any failure
        """
        outcome = run_probe(table, self.measure, table)
        if not outcome.ok:
            emit_event(
                "probe_failed",
                table=table,
                path=table_path(self.hbase_root, table),
                error_type=outcome.error_type,
                message=outcome.error_message,
            )
            return None
        return outcome.value

    __call__ = probe
