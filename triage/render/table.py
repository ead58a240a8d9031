"""
triage.render.table
AUTHOR: carter-vin

Compact table renderer
"""

from __future__ import annotations

from triage.render.base import Renderer
from triage.render.utils import format_bytes, format_signed_bytes


class TableRenderer(Renderer):
    name = "table"

    def render(self, summaries, *, meta=None) -> str:
        headers = [
            "TABLE",
            "SAMPLES",
            "LATEST",
            "MIN",
            "MAX",
            "GROWTH",
            "ZERO",
        ]

        rows = [headers]
        for summary in summaries:
            rows.append(
                [
                    summary.name,
                    str(summary.samples),
                    format_bytes(summary.latest_value),
                    format_bytes(summary.min_value),
                    format_bytes(summary.max_value),
                    format_signed_bytes(summary.growth),
                    str(summary.zero_samples),
                ]
            )

        widths = [max(len(row[i]) for row in rows) for i in range(len(headers))]
        lines: list[str] = []

        for row in rows:
            padded = [row[i].ljust(widths[i]) for i in range(len(headers))]
            lines.append("  ".join(padded).rstrip())

        return "\n".join(lines)
