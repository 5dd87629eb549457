"""Dataset-to-report pipeline: ingestion, summary, generation request and rendering."""
from .graph import PHASE_ORDER, build_graph, run_pipeline
from .session import ReportSession

__all__ = ["PHASE_ORDER", "ReportSession", "build_graph", "run_pipeline"]
