from __future__ import annotations
from typing import Any, Dict, MutableMapping
from ..analysis import infer_column_types, summarize
from ..core.errors import NoData
from ..core.state import _with_phase, _emit_callback


def infer_types_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    rows = state.get("rows") or []
    if not rows:
        raise NoData("No data to analyze")
    columns = list(state.get("columns") or [])
    column_types = infer_column_types(rows, columns)

    payload = {"columnTypes": column_types}
    update = _with_phase(state, "infer_types", payload, column_types=column_types)
    _emit_callback(state, "infer_types", payload)
    return update


def summarize_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    summary = summarize(
        state.get("file_name", ""),
        state["rows"],
        list(state.get("columns") or []),
        state.get("column_types"),
    )

    payload = summary.to_dict()
    update = _with_phase(state, "summarize", payload, summary=summary)
    _emit_callback(state, "summarize", payload)
    return update
