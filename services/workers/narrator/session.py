"""In-memory report session: current dataset, current report, current error.

A session owns one report slot. ``analyze`` rejects a second call while one is
in flight, and ``upload`` installs a parsed dataset only if no newer upload
started in the meantime, so dataset and report state change atomically.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .analysis import summarize
from .client import GenerationClient
from .core.constants import REPORT_MAX_TOKENS, REPORT_MODEL
from .core.errors import GenerationFailure, NoData, ReportBusy, ReportError
from .core.state import PhaseCallback
from .core.types import BinaryInput, Dataset, PipelineResult, ReportState
from .export import build_document, write_document
from .graph import ReportGenerator, run_pipeline
from .io.ingest import ingest_dataset

logger = logging.getLogger(__name__)


class ReportSession:
    def __init__(
        self,
        generator: Optional[ReportGenerator] = None,
        *,
        model: str = REPORT_MODEL,
        max_tokens: int = REPORT_MAX_TOKENS,
    ) -> None:
        self.generator: ReportGenerator = generator or GenerationClient()
        self.model = model
        self.max_tokens = max_tokens
        self.dataset: Optional[Dataset] = None
        self.report = ReportState()
        self.error: Optional[str] = None
        self.last_result: Optional[PipelineResult] = None
        self._state_lock = threading.Lock()
        self._report_slot = threading.Lock()
        self._upload_ticket = 0
        self._report_file_name = ""

    @property
    def file_name(self) -> str:
        return self.dataset.file_name if self.dataset is not None else ""

    @property
    def is_analyzing(self) -> bool:
        return self._report_slot.locked()

    def _fail(self, exc: ReportError) -> None:
        self.error = exc.message
        logger.warning("%s: %s", exc.kind, exc.message)

    # ---- Dataset ----
    def upload(self, file_name: str, body: BinaryInput) -> Optional[Dataset]:
        """Parse ``body`` and make it the current dataset.

        Returns ``None`` when a newer upload superseded this one while parsing.
        """
        with self._state_lock:
            self.error = None
            self._upload_ticket += 1
            ticket = self._upload_ticket

        try:
            dataset = ingest_dataset(file_name, body)
        except ReportError as exc:
            with self._state_lock:
                if ticket == self._upload_ticket:
                    self._fail(exc)
            raise

        with self._state_lock:
            if ticket != self._upload_ticket:
                logger.info("discarding superseded upload", extra={"file_name": file_name})
                return None
            self.dataset = dataset
        return dataset

    def dataset_overview(self, dataset: Optional[Dataset] = None) -> Dict[str, Any]:
        """Describe ``dataset``, or the current dataset when none is given."""
        if dataset is None:
            dataset = self.dataset
        if dataset is None:
            raise NoData("No data to analyze")
        overview = dataset.overview()
        summary = summarize(dataset.file_name, dataset.rows, dataset.columns)
        overview["dataTypes"] = dict(summary.data_types)
        overview["sampleData"] = [dict(row) for row in summary.sample_data]
        return overview

    # ---- Report ----
    def set_directive(self, directive: str) -> None:
        self.report.directive = directive

    def analyze(
        self,
        *,
        regenerate: bool = False,
        directive: Optional[str] = None,
        on_phase: Optional[PhaseCallback] = None,
    ) -> str:
        """Run one generation pass and store its report.

        In regeneration mode the pending directive (or ``directive`` when
        given, which becomes the pending one) steers the re-analysis; it is
        cleared only when a report comes back.
        """
        if not self._report_slot.acquire(blocking=False):
            exc = ReportBusy("A report is already being generated")
            self._fail(exc)
            raise exc

        try:
            self.error = None
            if regenerate and directive is not None:
                self.report.directive = directive
            dataset = self.dataset
            if dataset is None or dataset.is_empty:
                raise NoData("No data to analyze")

            result = run_pipeline(
                dataset,
                self.generator,
                directive=self.report.directive if regenerate else None,
                regenerate=regenerate,
                model=self.model,
                max_tokens=self.max_tokens,
                on_phase=on_phase,
            )
            self.report.text = result.report_text
            self.report.html = result.report_html
            self.report.directive = ""
            self.last_result = result
            self._report_file_name = dataset.file_name
        except ReportError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            logger.exception("report pipeline failed")
            failure = GenerationFailure(f"Analysis error: {exc}")
            self._fail(failure)
            raise failure from exc
        finally:
            self._report_slot.release()
        return result.report_text

    def export(self, destination: Optional[Union[str, Path]] = None) -> str:
        self.error = None
        try:
            document = build_document(self.report.text, self._report_file_name or self.file_name, body_html=self.report.html)
            if destination is not None:
                write_document(document, destination)
        except ReportError as exc:
            self._fail(exc)
            raise
        return document

    def state(self) -> Dict[str, Any]:
        payload = self.report.to_dict()
        payload["fileName"] = self.file_name or None
        payload["error"] = self.error
        payload["analyzing"] = self.is_analyzing
        return payload


__all__ = ["ReportSession"]
