"""
Contract tests for the `collect` command line surface
"""

import json
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path

import pytest
from typer.testing import CliRunner

from collector.main import app
from collector.poller import Poller


def _fake_hadoop(sizes: dict[str, int]):
    calls: list[list[str]] = []

    def run(args, **kwargs):
        calls.append(list(args))
        table = args[-1].rsplit("/", 1)[-1]
        if table in sizes:
            return subprocess.CompletedProcess(args, 0, stdout=f"{sizes[table]}  {args[-1]}\n", stderr="")
        return subprocess.CompletedProcess(args, 1, stdout="", stderr="No such file or directory")

    return run, calls


def _two_cycles_then_stop(self: Poller, *, install_signal_handlers: bool = True) -> None:
    self.run_cycle()
    self.run_cycle()
    self.flush_on_shutdown()


def test_missing_output_exits_nonzero_without_writing() -> None:
    """
    -output is required; nothing is created when it is missing
    """
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(app, ["collect", "-tableNames", "orders"])

        assert result.exit_code != 0
        assert list(Path(".").iterdir()) == []


def test_missing_table_names_exits_nonzero() -> None:
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(app, ["collect", "-output", "sizes.json"])
        assert result.exit_code != 0

        result = runner.invoke(app, ["collect", "-output", "sizes.json", "-tableNames"])
        assert result.exit_code != 0

        assert not Path("sizes.json").exists()


def test_blank_or_duplicate_table_names_rejected() -> None:
    runner = CliRunner()

    with runner.isolated_filesystem():
        blank = runner.invoke(app, ["collect", "-output", "sizes.json", "-tableNames", " "])
        dup = runner.invoke(app, ["collect", "-output", "sizes.json", "-tableNames", "a", "b", "a"])

        assert blank.exit_code == 2
        assert dup.exit_code == 2
        assert not Path("sizes.json").exists()


def test_interval_below_one_rejected() -> None:
    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(
            app, ["collect", "-interval", "0", "-output", "sizes.json", "-tableNames", "a"]
        )
        assert result.exit_code != 0


def test_collect_variable_arity_tables_end_to_end(monkeypatch) -> None:
    """
    `-tableNames a b c` tracks three tables in order under -hbaseRoot
    """
    run, calls = _fake_hadoop({"a": 100, "c": 7})
    monkeypatch.setattr("collector.probe.subprocess.run", run)
    monkeypatch.setattr(Poller, "serve", _two_cycles_then_stop)

    runner = CliRunner()

    with runner.isolated_filesystem():
        result = runner.invoke(
            app,
            [
                "collect",
                "-interval",
                "1",
                "-tableNames",
                "a",
                "b",
                "c",
                "-hbaseRoot",
                "/data/hbase",
                "-output",
                "out/sizes.json",
                "--no-stdout",
            ],
        )

        assert result.exit_code == 0, result.output

        payload = json.loads(Path("out/sizes.json").read_text(encoding="utf-8"))

    assert [entry["name"] for entry in payload] == ["a", "b", "c"]
    assert [v for _, v in payload[0]["size"]] == [100, 100]
    assert [v for _, v in payload[1]["size"]] == [0, 0]
    assert [v for _, v in payload[2]["size"]] == [7, 7]

    # Same two timestamps on every table
    stamps = {tuple(ts for ts, _ in entry["size"]) for entry in payload}
    assert len(stamps) == 1

    assert calls[0] == ["hadoop", "fs", "-du", "-s", "/data/hbase/a"]
    assert [c[-1] for c in calls[:3]] == ["/data/hbase/a", "/data/hbase/b", "/data/hbase/c"]


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX signals")
def test_collect_runs_until_sigterm_then_writes_series(monkeypatch) -> None:
    """
    The real collect loop: first cycle runs at once, SIGTERM stops it and
    the series file is written before the command returns
    """
    run, calls = _fake_hadoop({"orders": 10485760})
    monkeypatch.setattr("collector.probe.subprocess.run", run)
    previous = signal.getsignal(signal.SIGTERM)

    runner = CliRunner()

    with runner.isolated_filesystem():
        timer = threading.Timer(0.3, os.kill, args=(os.getpid(), signal.SIGTERM))
        timer.start()
        try:
            result = runner.invoke(
                app,
                ["collect", "-interval", "60", "-output", "sizes.json", "-tableNames", "orders", "users"],
            )
        finally:
            timer.cancel()

        assert result.exit_code == 0, result.output
        payload = json.loads(Path("sizes.json").read_text(encoding="utf-8"))

    assert [entry["name"] for entry in payload] == ["orders", "users"]
    assert [v for _, v in payload[0]["size"]] == [10485760]
    assert [v for _, v in payload[1]["size"]] == [0]
    assert payload[0]["size"][0][0] == payload[1]["size"][0][0]
    assert len(calls) == 2
    assert signal.getsignal(signal.SIGTERM) is previous


def test_collect_flush_failure_exits_nonzero(monkeypatch) -> None:
    """
    A failed write at shutdown must not look like success
    """
    run, _ = _fake_hadoop({"a": 1})
    monkeypatch.setattr("collector.probe.subprocess.run", run)
    monkeypatch.setattr(Poller, "serve", _two_cycles_then_stop)

    runner = CliRunner()

    with runner.isolated_filesystem():
        Path("blocker").write_text("file, not a directory", encoding="utf-8")
        result = runner.invoke(app, ["collect", "-output", "blocker/sizes.json", "-tableNames", "a"])

    assert result.exit_code != 0
    assert isinstance(result.exception, OSError)


def test_version_command() -> None:
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.startswith("table-size-collector v")
