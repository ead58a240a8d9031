"""
triage.render.utils
AUTHOR: carter-vin

Formatting helpers for renderers
"""

from __future__ import annotations

_UNITS = ("B", "K", "M", "G", "T", "P")


def format_bytes(bytes_value: int | None) -> str:
    if bytes_value is None:
        return "n/a"
    value = float(bytes_value)
    for unit in _UNITS:
        if abs(value) < 1024 or unit == _UNITS[-1]:
            break
        value /= 1024
    if unit == "B":
        return f"{int(value)}B"
    if abs(value) >= 10:
        return f"{value:.0f}{unit}"
    return f"{value:.1f}{unit}"


def format_signed_bytes(bytes_value: int | None) -> str:
    if bytes_value is None:
        return "n/a"
    sign = "+" if bytes_value >= 0 else "-"
    return sign + format_bytes(abs(bytes_value))
