"""
triage.render.base
AUTHOR: carter-vin

Renderer interface
- summaries arrive in series file order; renderers must not reorder them
"""

from __future__ import annotations

from typing import Iterable, Optional

from triage.summarize import TableSummary


class Renderer:
    name: str = "base"

    def render(self, summaries: Iterable[TableSummary], *, meta: Optional[dict] = None) -> str:
        raise NotImplementedError
