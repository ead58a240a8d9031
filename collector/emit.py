"""
collector.emit

AUTHOR: carter-vin

OUTPUT:
- per-cycle snapshot to stdout (observability only)
- series file, written once at shutdown, full overwrite

Design goals:
- Create output directory if missing
- Never leave a half-written series file behind (temp file + os.replace)
- Provide explicit error surfaces (do not silently drop data)
"""

from __future__ import annotations

import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class EmitTargets:
    """
    Emission destination configuration.
    """

    output_path: Path
    emit_stdout: bool = True


def emit_snapshot(snapshot_json: str, targets: EmitTargets) -> None:
    """
    Print a cycle snapshot if stdout emission is enabled
    """
    if targets.emit_stdout:
        sys.stdout.write(snapshot_json + "\n")
        sys.stdout.flush()


def write_series_file(output_path: Path, content: str) -> None:
    """
    Replace output_path with content.

    Contract:
    - content is the complete JSON document; nothing is appended
    - readers see either the old file or the new one, never a partial write

    Failure semantics:
    - raises on IO errors; the temp file is removed and the target untouched
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.",
        suffix=".tmp",
        dir=str(output_path.parent),
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, mode="w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, output_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
