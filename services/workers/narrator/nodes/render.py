from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.state import _with_phase, _emit_callback
from ..markup import render


def render_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    report_html = render(state.get("report_text") or "")

    payload = {"htmlChars": len(report_html)}
    update = _with_phase(state, "render", payload, report_html=report_html)
    _emit_callback(state, "render", payload)
    return update
