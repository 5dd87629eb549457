# Keep prompt templates centralized
from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from .core.constants import REPORT_MAX_TOKENS, REPORT_MODEL
from .core.errors import EmptyDirective
from .core.types import DatasetSummary, ReportRequest, Row

SYSTEM_PROMPT = """You are an expert data analyst. Analyze the provided dataset and generate a comprehensive report in markdown format.

The report should include:
1. Executive Summary
2. Dataset Overview (rows, columns, data types)
3. Key Findings and Insights
4. Trend Analysis
5. Relationships and Correlations
6. Data Quality Assessment
7. Visualizations descriptions (describe what charts would be useful)
8. Conclusions and Recommendations

Identify the report type needed (performance analysis, trend analysis, comparative analysis, etc.) based on the data structure.

Format the response as clean markdown suitable for PDF conversion."""

INITIAL_PROMPT = """Analyze this dataset and generate a professional report:

Dataset: {summary}

Full data:
{data}"""

REGENERATE_PROMPT = """Please re-analyze this dataset with the following focus: {directive}

Dataset: {summary}

Full data:
{data}"""


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def build_report_request(
    summary: DatasetSummary,
    rows: Sequence[Row],
    directive: Optional[str] = None,
    *,
    regenerate: bool = False,
    model: str = REPORT_MODEL,
    max_tokens: int = REPORT_MAX_TOKENS,
) -> ReportRequest:
    """Compose the system and user instructions for one generation call.

    Regeneration requires a non-empty directive; it is embedded verbatim.
    """
    summary_text = _to_json(summary.to_dict())
    data_text = _to_json([dict(row) for row in rows])

    if regenerate:
        if directive is None or not directive.strip():
            raise EmptyDirective("Please describe what the re-analysis should focus on")
        user = REGENERATE_PROMPT.format(directive=directive, summary=summary_text, data=data_text)
    else:
        user = INITIAL_PROMPT.format(summary=summary_text, data=data_text)

    return ReportRequest(system=SYSTEM_PROMPT, user=user, model=model, max_tokens=max_tokens)


__all__ = ["INITIAL_PROMPT", "REGENERATE_PROMPT", "SYSTEM_PROMPT", "build_report_request"]
