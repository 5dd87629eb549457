from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..core.constants import REPORT_MAX_TOKENS, REPORT_MODEL
from ..core.state import _with_phase, _emit_callback
from ..prompts import build_report_request


def build_request_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    regenerate = bool(state.get("regenerate"))
    request = build_report_request(
        state["summary"],
        state["rows"],
        state.get("directive"),
        regenerate=regenerate,
        model=state.get("model") or REPORT_MODEL,
        max_tokens=state.get("max_tokens") or REPORT_MAX_TOKENS,
    )

    payload = {
        "mode": "regenerate" if regenerate else "initial",
        "model": request.model,
        "maxTokens": request.max_tokens,
        "promptChars": len(request.system) + len(request.user),
    }
    update = _with_phase(state, "build_request", payload, request=request)
    _emit_callback(state, "build_request", payload)
    return update
