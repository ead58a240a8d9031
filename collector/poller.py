"""
collector.poller
AUTHOR: carter-vin

Poll scheduler + series accumulator

Lifecycle:
- RUNNING: a worker thread runs one cycle, then waits `interval_s` on the
  stop event before the next one
- STOPPING: entered once on SIGINT/SIGTERM or request_stop(); no further
  appends, the series file is written exactly once

Shared state:
- RunState is only touched under self._lock
- probes run outside the lock so a slow hadoop call never blocks the flush
"""

from __future__ import annotations

import signal
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from collector.emit import EmitTargets, emit_snapshot, write_series_file
from collector.logging import emit_event
from collector.model import RunState, epoch_millis, series_to_json, snapshot_to_json

Prober = Callable[[str], Optional[int]]

DEFAULT_INTERVAL_S = 30
SHUTDOWN_GRACE_S = 5.0
JOIN_POLL_S = 0.5

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Poller:
    """
    Owns the run state and drives measurement cycles.

    prober: callable table_name -> size in bytes, or None on failure
    clock: callable returning epoch millis (injectable for tests)
    """

    def __init__(
        self,
        table_names: Sequence[str],
        prober: Prober,
        *,
        output_path: Path,
        interval_s: float = DEFAULT_INTERVAL_S,
        emit_stdout: bool = True,
        clock: Callable[[], int] = epoch_millis,
        shutdown_grace_s: float = SHUTDOWN_GRACE_S,
    ) -> None:
        self.state = RunState(table_names)
        self.targets = EmitTargets(output_path=Path(output_path), emit_stdout=emit_stdout)
        self.interval_s = interval_s

        self._prober = prober
        self._clock = clock
        self._shutdown_grace_s = shutdown_grace_s

        self._lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._stopping = False
        self._flushed = False
        self._signal_received = False
        self._last_timestamp: Optional[int] = None

    # -----------------------------
    # STATE
    # -----------------------------
    @property
    def stopping(self) -> bool:
        return self._stopping

    @property
    def cycles_completed(self) -> int:
        with self._lock:
            return self.state.cycle_count()

    def _stop_wanted(self) -> bool:
        return self._signal_received or self._stop_requested.is_set()

    def request_stop(self) -> None:
        """
        Ask the worker to stop after (or instead of) the current cycle
        """
        self._stop_requested.set()

    # -----------------------------
    # CYCLE
    # -----------------------------
    def _measure(self, table: str) -> Optional[int]:
        try:
            return self._prober(table)
        except Exception as e:
            # Probers should not raise; one bad table must not sink the cycle
            emit_event(
                "probe_failed",
                table=table,
                error_type=type(e).__name__,
                message=str(e),
            )
            return None

    def _next_timestamp(self) -> int:
        now = self._clock()
        # Wall clock can step backwards; each cycle still gets a later timestamp
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + 1
        self._last_timestamp = now
        return now

    def run_cycle(self) -> bool:
        """
        Probe every table once and append one sample per table.

        Returns True if the cycle was appended, False if it was skipped or
        abandoned because shutdown had started.
        """
        if self._stop_requested.is_set() or self._stopping:
            return False

        start = time.monotonic()

        sizes: dict[str, Optional[int]] = {}
        for table in self.state.table_names:
            sizes[table] = self._measure(table)

        # One timestamp per cycle so every series lines up
        timestamp = self._next_timestamp()

        try:
            emit_snapshot(snapshot_to_json(timestamp, sizes), self.targets)
        except Exception as e:
            emit_event(
                "snapshot_failed",
                timestamp=timestamp,
                error_type=type(e).__name__,
                message=str(e),
            )

        with self._lock:
            if self._stopping:
                emit_event("cycle_abandoned", timestamp=timestamp)
                return False
            self.state.append_cycle(timestamp, sizes)
            cycles = self.state.cycle_count()

        emit_event(
            "cycle_completed",
            timestamp=timestamp,
            cycle=cycles,
            tables=len(sizes),
            probes_failed=sum(1 for size in sizes.values() if size is None),
            cycle_elapsed_ms=int((time.monotonic() - start) * 1000),
            next_cycle_in_s=self.interval_s,
        )
        return True

    def run_loop(self) -> None:
        """
        Run cycles until stop is requested.

        The next cycle starts interval_s after the previous one finished.
        """
        while not self._stop_requested.is_set():
            try:
                self.run_cycle()
            except Exception as e:
                emit_event(
                    "cycle_failed",
                    error_type=type(e).__name__,
                    message=str(e),
                )
                # Keep running; the schedule is the retry mechanism.

            if self._stop_requested.wait(self.interval_s):
                break

    # -----------------------------
    # SHUTDOWN
    # -----------------------------
    def flush_on_shutdown(self) -> bool:
        """
        Enter STOPPING and write every series to the output file.

        Runs at most once; later calls return False. IO errors propagate.
        """
        self._stop_requested.set()

        with self._lock:
            self._stopping = True
            if self._flushed:
                return False
            self._flushed = True

            output_path = self.targets.output_path
            try:
                write_series_file(output_path, series_to_json(self.state))
            except Exception as e:
                emit_event(
                    "flush_failed",
                    output_path=str(output_path),
                    error_type=type(e).__name__,
                    message=str(e),
                )
                raise

            emit_event(
                "series_flushed",
                output_path=str(output_path),
                tables=len(self.state.series),
                cycles=self.state.cycle_count(),
            )
        return True

    def _handle_signal(self, signum: int, frame: Any) -> None:
        # Runs on the main thread, which may be inside Event internals; flag only
        if self._signal_received or self._stop_requested.is_set():
            return
        self._signal_received = True
        emit_event("shutdown_requested", signal=signal.Signals(signum).name)

    def _install_signal_handlers(self) -> dict[int, Any]:
        previous: dict[int, Any] = {}
        for signum in HANDLED_SIGNALS:
            previous[signum] = signal.signal(signum, self._handle_signal)
        return previous

    @staticmethod
    def _restore_signal_handlers(previous: dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def serve(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run until SIGINT/SIGTERM (or request_stop), then flush.

        Signal handlers can only be installed from the main thread.
        """
        emit_event(
            "collector_start",
            tables=self.state.table_names,
            interval_s=self.interval_s,
            output_path=str(self.targets.output_path),
        )

        previous = self._install_signal_handlers() if install_signal_handlers else {}

        worker = threading.Thread(target=self.run_loop, name="table-size-poller", daemon=True)
        worker.start()

        try:
            # Wait for a stop, not for the worker: a hung probe never finishes
            while worker.is_alive() and not self._stop_wanted():
                worker.join(JOIN_POLL_S)
        finally:
            if not self._stop_requested.is_set():
                self._stop_requested.set()
            # In-flight cycle gets a chance to land; a hung probe does not block exit
            worker.join(self._shutdown_grace_s)
            try:
                self.flush_on_shutdown()
            finally:
                self._restore_signal_handlers(previous)
                emit_event(
                    "collector_shutdown",
                    cycles=self.cycles_completed,
                    worker_alive=worker.is_alive(),
                )
