"""LangGraph report pipeline for InsightPress."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from langgraph.graph import END, StateGraph

from .core.constants import PHASE_ORDER, REPORT_MAX_TOKENS, REPORT_MODEL
from .core.state import AnalysisState, PhaseCallback
from .core.types import Dataset, PipelineResult, ReportRequest
from .nodes import (
    build_request_node,
    generate_node,
    infer_types_node,
    render_node,
    summarize_node,
)

logger = logging.getLogger(__name__)

ReportGenerator = Callable[[ReportRequest], str]


def build_graph():
    g = StateGraph(AnalysisState)
    g.add_node("infer_types", infer_types_node)
    g.add_node("summarize", summarize_node)
    g.add_node("build_request", build_request_node)
    g.add_node("generate", generate_node)
    g.add_node("render", render_node)

    g.set_entry_point("infer_types")
    g.add_edge("infer_types", "summarize")
    g.add_edge("summarize", "build_request")
    g.add_edge("build_request", "generate")
    g.add_edge("generate", "render")
    g.add_edge("render", END)
    return g.compile()


_GRAPH = None


def _compiled_graph():
    global _GRAPH
    if _GRAPH is None:
        _GRAPH = build_graph()
    return _GRAPH


def run_pipeline(
    dataset: Dataset,
    generator: ReportGenerator,
    *,
    directive: Optional[str] = None,
    regenerate: bool = False,
    model: str = REPORT_MODEL,
    max_tokens: int = REPORT_MAX_TOKENS,
    on_phase: Optional[PhaseCallback] = None,
) -> PipelineResult:
    initial_state: Dict[str, Any] = {
        "file_name": dataset.file_name,
        "rows": dataset.rows,
        "columns": list(dataset.columns),
        "directive": directive,
        "regenerate": regenerate,
        "model": model,
        "max_tokens": max_tokens,
        "generator": generator,
        "phase_outputs": {},
    }
    if on_phase:
        initial_state["on_phase"] = on_phase

    logger.info(
        "starting report pipeline",
        extra={"file_name": dataset.file_name, "rows": dataset.row_count, "regenerate": regenerate},
    )
    final_state = _compiled_graph().invoke(initial_state)

    phases = final_state.get("phase_outputs", {}) or {}
    return PipelineResult(
        phases={phase: phases[phase] for phase in PHASE_ORDER if phase in phases},
        summary=final_state["summary"],
        request=final_state["request"],
        report_text=final_state["report_text"],
        report_html=final_state["report_html"],
        column_types=dict(final_state.get("column_types", {}) or {}),
    )


__all__ = ["PHASE_ORDER", "build_graph", "run_pipeline"]
