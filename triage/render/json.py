"""
triage.render.json
AUTHOR: carter-vin

JSON renderer
- one compact line, keys in schema order so diffs between runs line up
"""

from __future__ import annotations

import json

from triage.render.base import Renderer
from triage.summarize import render_json


class JsonRenderer(Renderer):
    name = "json"

    def render(self, summaries, *, meta=None) -> str:
        payload = render_json(summaries, meta=meta or {})
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
