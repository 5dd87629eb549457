from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.errors import GenerationEmpty
from ..core.state import _with_phase, _emit_callback


def generate_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    generator = state["generator"]
    request = state["request"]
    report_text = generator(request)
    if not isinstance(report_text, str):
        raise GenerationEmpty("Failed to generate report")

    payload = {"reportChars": len(report_text)}
    update = _with_phase(state, "generate", payload, report_text=report_text)
    _emit_callback(state, "generate", payload)
    return update
