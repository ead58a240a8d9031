"""
collector.model
AUTHOR: carter-vin

Series model + deterministic serialization primitives.

Design goals:
- Output shape matches the d3 renderer: [{"name": ..., "size": [[ts, v], ...]}]
- Explicit structure (no accidental serialization via __dict__)
- Metric keys are open-ended; "size" is the only one collected today
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

SIZE = "size"
METRIC_KEYS = (SIZE,)

# Recorded for failed probes. Indistinguishable from a real empty table.
MISSING_VALUE = 0


def epoch_millis() -> int:
    """
    Current wall clock time in integer epoch milliseconds
    """
    return int(time.time() * 1000)


def zero_if_none(value: Optional[int]) -> int:
    return MISSING_VALUE if value is None else value


@dataclass(frozen=True)
class Sample:
    """
    One timestamped measurement
    - timestamp: epoch millis, shared by every table in a cycle
    - value: bytes (0 when the probe failed)
    """

    timestamp: int
    value: int

    def to_pair(self) -> list[int]:
        return [self.timestamp, self.value]

    @staticmethod
    def from_pair(pair: Any) -> "Sample":
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ValueError(f"sample must be a [timestamp, value] pair: {pair!r}")
        timestamp, value = pair
        for item in (timestamp, value):
            # bool is an int subclass; reject it explicitly
            if isinstance(item, bool) or not isinstance(item, int):
                raise ValueError(f"sample entries must be integers: {pair!r}")
        return Sample(timestamp=timestamp, value=value)


@dataclass
class NamedSeries:
    """
    A table name plus its metric -> samples mapping

    Serialized flat: metric keys sit next to "name" in the same object.
    Mutated in place (append-only) once per cycle.
    """

    name: str
    data: dict[str, list[Sample]] = field(default_factory=dict)

    @staticmethod
    def empty(name: str, metric_keys: Iterable[str] = METRIC_KEYS) -> "NamedSeries":
        return NamedSeries(name=name, data={key: [] for key in metric_keys})

    def append(self, metric: str, sample: Sample) -> None:
        self.data[metric].append(sample)

    def samples(self, metric: str = SIZE) -> list[Sample]:
        return self.data.get(metric, [])

    def to_dict(self) -> dict[str, Any]:
        # "name" first, then metrics in insertion order
        payload: dict[str, Any] = {"name": self.name}
        for metric, samples in self.data.items():
            payload[metric] = [sample.to_pair() for sample in samples]
        return payload

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "NamedSeries":
        if not isinstance(payload, Mapping):
            raise ValueError("series entry must be an object")

        name = payload.get("name")
        if not isinstance(name, str):
            raise ValueError("series entry is missing a string 'name'")

        data: dict[str, list[Sample]] = {}
        for metric, values in payload.items():
            if metric == "name":
                continue
            if not isinstance(values, list):
                raise ValueError(f"{name}.{metric} must be a list of samples")
            data[metric] = [Sample.from_pair(pair) for pair in values]

        series = NamedSeries(name=name, data=data)
        validate_named_series(series)
        return series


def validate_named_series(series: NamedSeries) -> None:
    """
    Validate series structure + ordering

    Raises ValueError on invalid
    """
    if not series.name:
        raise ValueError("series name is empty")

    for metric, samples in series.data.items():
        if not metric:
            raise ValueError(f"{series.name}: metric key is empty")
        previous: Optional[int] = None
        for sample in samples:
            if previous is not None and sample.timestamp < previous:
                raise ValueError(f"{series.name}.{metric}: timestamps out of order")
            previous = sample.timestamp


class RunState:
    """
    All series for one run, in configured table order, plus a name lookup.

    Not thread-safe on its own; the poller guards it with a lock.
    """

    def __init__(self, table_names: Iterable[str], metric_keys: Iterable[str] = METRIC_KEYS) -> None:
        keys = tuple(metric_keys)
        self.series: list[NamedSeries] = []
        self._lookup: dict[str, NamedSeries] = {}

        for name in table_names:
            if name in self._lookup:
                raise ValueError(f"duplicate table name: {name}")
            named = NamedSeries.empty(name, keys)
            self.series.append(named)
            self._lookup[name] = named

        if not self.series:
            raise ValueError("at least one table name is required")

    @property
    def table_names(self) -> list[str]:
        return [named.name for named in self.series]

    def get(self, name: str) -> NamedSeries:
        return self._lookup[name]

    def append_cycle(self, timestamp: int, sizes: Mapping[str, Optional[int]]) -> None:
        """
        Append one cycle: the same timestamp for every table

        Tables missing from sizes, or with a None size, get MISSING_VALUE.
        """
        for name in self.table_names:
            value = zero_if_none(sizes.get(name))
            self._lookup[name].append(SIZE, Sample(timestamp=timestamp, value=value))

    def cycle_count(self) -> int:
        # Every table gets exactly one sample per cycle
        return len(self.series[0].samples(SIZE))

    def to_list(self) -> list[dict[str, Any]]:
        return [named.to_dict() for named in self.series]


def series_to_json(state: RunState) -> str:
    """
    Serialize all series for the output file

    Rules:
    - table order follows configuration
    - compact separators keep long runs small
    """
    return json.dumps(state.to_list(), separators=(",", ":"), ensure_ascii=False)


def snapshot_to_json(timestamp: int, sizes: Mapping[str, Optional[int]]) -> str:
    """
    Pretty-printed single-cycle snapshot for stdout

    Failed probes show as null here; the series file records them as 0.
    """
    payload = {str(timestamp): dict(sizes)}
    return json.dumps(payload, indent=2, ensure_ascii=False)
