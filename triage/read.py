"""
triage.read
AUTHOR: carter-vin

Series file reader for triage
"""

from __future__ import annotations

from pathlib import Path

import json

from collector.model import NamedSeries


class SeriesFileError(ValueError):
    """Raised when a series file is missing, not JSON, or not the expected shape."""


def load_series_file(path: Path) -> list[NamedSeries]:
    """
    Load every named series from a collector output file

    The whole document must be valid; a partial file is an error, not data.
    """
    if not path.exists():
        raise SeriesFileError(f"series file not found: {path}")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SeriesFileError(f"series file is not valid JSON: {path}: {e}") from e

    if not isinstance(payload, list):
        raise SeriesFileError(f"series file must hold a JSON array: {path}")

    series: list[NamedSeries] = []
    for index, entry in enumerate(payload):
        try:
            series.append(NamedSeries.from_dict(entry))
        except ValueError as e:
            raise SeriesFileError(f"invalid series entry #{index}: {e}") from e

    return series
