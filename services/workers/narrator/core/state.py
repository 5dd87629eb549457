from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, TypedDict
from .constants import PHASE_ORDER
from .types import DatasetSummary, ReportRequest, Row

PhaseCallback = Callable[[str, Mapping[str, Any], int, int], None]


class AnalysisState(TypedDict, total=False):
    file_name: str
    rows: List[Row]
    columns: List[str]
    directive: Optional[str]
    regenerate: bool
    model: str
    max_tokens: int
    generator: Callable[[ReportRequest], str]
    on_phase: Optional[PhaseCallback]
    phase_outputs: Dict[str, Dict[str, Any]]
    column_types: Dict[str, str]
    summary: DatasetSummary
    request: ReportRequest
    report_text: str
    report_html: str


def _with_phase(state: MutableMapping[str, Any], phase: str, payload: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    phases = dict(state.get("phase_outputs", {}))
    phases[phase] = payload
    update: Dict[str, Any] = {"phase_outputs": phases}
    update.update(extra)
    return update

def _emit_callback(state: Mapping[str, Any], phase: str, payload: Mapping[str, Any]) -> None:
    callback = state.get("on_phase")
    if not callable(callback):
        return
    index = PHASE_ORDER.index(phase)
    callback(phase, payload, index, len(PHASE_ORDER))
