"""
triage.render.text
AUTHOR: carter-vin

Text renderer
- appends a caveat when zero samples are present: a failed probe and an
  empty table both record 0
"""

from __future__ import annotations

from triage.render.base import Renderer
from triage.summarize import render_text

ZERO_CAVEAT = "note: 0 marks a failed measurement or an empty table"


class TextRenderer(Renderer):
    name = "text"

    def render(self, summaries, *, meta=None) -> str:
        summaries = list(summaries)
        text = render_text(summaries, meta=meta or {})
        if any(summary.zero_samples for summary in summaries):
            text = f"{text}\n\n{ZERO_CAVEAT}"
        return text
