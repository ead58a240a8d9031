"""
Contract tests for serve(): run until stopped, then flush exactly once
"""

import json
import os
import signal
import sys
import threading
import time
from pathlib import Path

import pytest

from collector.poller import Poller


def _read_counts(output: Path) -> list[int]:
    payload = json.loads(output.read_text(encoding="utf-8"))
    return [len(entry["size"]) for entry in payload]


def test_serve_flushes_after_request_stop(tmp_path: Path) -> None:
    """
    request_stop() wakes the scheduler, the file holds every appended cycle
    """
    output = tmp_path / "sizes.json"
    poller = Poller(["a", "b"], lambda table: 5, output_path=output, interval_s=0.01, emit_stdout=False)

    timer = threading.Timer(0.2, poller.request_stop)
    timer.start()
    try:
        poller.serve(install_signal_handlers=False)
    finally:
        timer.cancel()

    counts = _read_counts(output)
    assert counts[0] == counts[1] == poller.cycles_completed
    assert poller.cycles_completed >= 1
    assert poller.stopping is True


def test_serve_stop_does_not_wait_out_the_interval(tmp_path: Path) -> None:
    """
    A long interval does not delay shutdown
    """
    output = tmp_path / "sizes.json"
    poller = Poller(["a"], lambda table: 1, output_path=output, interval_s=3600, emit_stdout=False)

    timer = threading.Timer(0.2, poller.request_stop)
    timer.start()
    start = time.monotonic()
    poller.serve(install_signal_handlers=False)

    assert time.monotonic() - start < 5
    assert _read_counts(output) == [1]


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX signals")
def test_serve_flushes_on_sigterm_and_restores_handler(tmp_path: Path, capsys) -> None:
    """
    SIGTERM is a graceful stop: flush, then the previous handler is back
    """
    output = tmp_path / "sizes.json"
    previous = signal.getsignal(signal.SIGTERM)
    poller = Poller(["a"], lambda table: 2, output_path=output, interval_s=0.01, emit_stdout=False)

    timer = threading.Timer(0.2, os.kill, args=(os.getpid(), signal.SIGTERM))
    timer.start()
    try:
        poller.serve()
    finally:
        timer.cancel()

    assert output.exists()
    assert _read_counts(output)[0] == poller.cycles_completed
    assert signal.getsignal(signal.SIGTERM) is previous

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    kinds = [e["event_type"] for e in events]
    assert kinds[0] == "collector_start"
    assert "shutdown_requested" in kinds
    assert kinds[-2:] == ["series_flushed", "collector_shutdown"]
    requested = next(e for e in events if e["event_type"] == "shutdown_requested")
    assert requested["signal"] == "SIGTERM"


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX signals")
def test_sigterm_during_hung_measurement_still_flushes(tmp_path: Path) -> None:
    """
    A hadoop call that never returns must not hold shutdown past the grace
    period; the file holds only the cycles appended before it hung
    """
    output = tmp_path / "sizes.json"
    release = threading.Event()
    calls = {"b": 0}

    def prober(table: str) -> int:
        if table == "b":
            calls["b"] += 1
            if calls["b"] == 2:
                release.wait(10)
        return 4

    poller = Poller(
        ["a", "b"],
        prober,
        output_path=output,
        interval_s=0.05,
        emit_stdout=False,
        shutdown_grace_s=0.5,
    )

    timer = threading.Timer(0.5, os.kill, args=(os.getpid(), signal.SIGTERM))
    timer.start()
    start = time.monotonic()
    try:
        poller.serve()
        elapsed = time.monotonic() - start
    finally:
        timer.cancel()
        release.set()

    assert elapsed < 3
    assert calls["b"] == 2
    assert _read_counts(output) == [1, 1]
    assert poller.stopping is True
