"""
triage.summarize
AUTHOR: carter-vin

Deterministic per-table growth summaries for operator-friendly output
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from collector.model import MISSING_VALUE, SIZE, NamedSeries


TRIAGE_SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class TableSummary:
    name: str
    metric: str
    samples: int
    first_timestamp: int | None
    latest_timestamp: int | None
    first_value: int | None
    latest_value: int | None
    min_value: int | None
    max_value: int | None
    growth: int | None
    zero_samples: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "metric": self.metric,
            "samples": self.samples,
            "first_timestamp": self.first_timestamp,
            "latest_timestamp": self.latest_timestamp,
            "first_value": self.first_value,
            "latest_value": self.latest_value,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "growth": self.growth,
            "zero_samples": self.zero_samples,
        }


def summarize_table(series: NamedSeries, *, metric: str = SIZE) -> TableSummary:
    """
    Summarize one table's samples for a metric

    Zero samples are counted, not dropped: a failed probe and an empty table
    both record 0, so growth is taken from the raw first/latest values.
    """
    samples = series.samples(metric)
    if not samples:
        return TableSummary(
            name=series.name,
            metric=metric,
            samples=0,
            first_timestamp=None,
            latest_timestamp=None,
            first_value=None,
            latest_value=None,
            min_value=None,
            max_value=None,
            growth=None,
            zero_samples=0,
        )

    values = [sample.value for sample in samples]
    first, latest = samples[0], samples[-1]

    return TableSummary(
        name=series.name,
        metric=metric,
        samples=len(samples),
        first_timestamp=first.timestamp,
        latest_timestamp=latest.timestamp,
        first_value=first.value,
        latest_value=latest.value,
        min_value=min(values),
        max_value=max(values),
        growth=latest.value - first.value,
        zero_samples=sum(1 for value in values if value == MISSING_VALUE),
    )


def summarize_series(series: Iterable[NamedSeries], *, metric: str = SIZE) -> list[TableSummary]:
    """
    Summarize every table, keeping file order
    """
    return [summarize_table(named, metric=metric) for named in series]


def _display(value: int | None) -> str:
    return str(value) if value is not None else "unknown"


def render_text(table_summaries: Iterable[TableSummary], *, meta: dict) -> str:
    """
    Render per-table summaries into deterministic text
    """
    summaries = list(table_summaries)
    # Header comes first for quick operator scan
    lines: list[str] = [
        f"tables_seen: {meta.get('tables_seen', 0)}",
        f"metric: {meta.get('metric', SIZE)}",
    ]

    for summary in summaries:
        lines.append("")
        lines.append(f"name: {summary.name}")
        lines.append(f"samples: {summary.samples}")
        lines.append(f"first_timestamp: {_display(summary.first_timestamp)}")
        lines.append(f"latest_timestamp: {_display(summary.latest_timestamp)}")
        lines.append(f"latest_value: {_display(summary.latest_value)}")
        lines.append(f"min_value: {_display(summary.min_value)}")
        lines.append(f"max_value: {_display(summary.max_value)}")
        lines.append(f"growth: {_display(summary.growth)}")
        lines.append(f"zero_samples: {summary.zero_samples} / {summary.samples}")

    return "\n".join(lines)


def render_json(table_summaries: Iterable[TableSummary], *, meta: dict) -> dict:
    """
    Render per-table summaries into a deterministic JSON payload
    """
    summaries = list(table_summaries)

    meta_payload = {
        "schema_version": TRIAGE_SCHEMA_VERSION,
        "series_path": meta.get("series_path"),
        "metric": meta.get("metric", SIZE),
        "tables_seen": meta.get("tables_seen", 0),
        "computed_at": meta.get("computed_at"),
    }

    return {
        "meta": meta_payload,
        "tables": [summary.to_dict() for summary in summaries],
    }
