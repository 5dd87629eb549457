"""Column type inference and the dataset summary sent alongside each report request."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from dateutil import parser as date_parser

from .core.constants import (
    COLUMN_TYPE_DATE,
    COLUMN_TYPE_NUMERIC,
    COLUMN_TYPE_TEXT,
    _MAX_PREVIEW_ROWS,
)
from .core.types import KIND_NUMBER, KIND_STRING, DatasetSummary, Row, Scalar, scalar_kind
from .core.utils import _is_blank, _parse_number

logger = logging.getLogger(__name__)


def _first_non_null(rows: Sequence[Mapping[str, Scalar]], column: str) -> Optional[Scalar]:
    for row in rows:
        value = row.get(column)
        if not _is_blank(value):
            return value
    return None


# Two unrelated fallbacks: fields the parser fills from the default differ between them.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _looks_like_date(value: Any) -> bool:
    """True when ``value`` names a calendar date with at least a year and a month.

    Bare month or weekday names ("May", "Monday") and day ordinals ("1st")
    parse with dateutil but leave the year to the default, so they stay text.
    """
    if not isinstance(value, str) or not any(char.isdigit() for char in value):
        return False
    try:
        first = date_parser.parse(value, default=_DEFAULT_A)
        second = date_parser.parse(value, default=_DEFAULT_B)
    except (ValueError, OverflowError, TypeError):
        return False
    return (first.year, first.month) == (second.year, second.month)


def classify_value(sample: Optional[Scalar]) -> str:
    kind = scalar_kind(sample)
    if kind == KIND_NUMBER:
        return COLUMN_TYPE_NUMERIC
    if kind == KIND_STRING:
        if _parse_number(sample) is not None:
            return COLUMN_TYPE_NUMERIC
        if _looks_like_date(sample):
            return COLUMN_TYPE_DATE
    return COLUMN_TYPE_TEXT


def infer_column_types(rows: Sequence[Mapping[str, Scalar]], columns: Sequence[str]) -> Dict[str, str]:
    """Classify every column from its first non-null value.

    Only one sample per column is inspected; columns without any value
    default to ``text``.
    """
    types = {column: classify_value(_first_non_null(rows, column)) for column in columns}
    logger.debug("inferred column types", extra={"column_types": types})
    return types


def summarize(
    file_name: str,
    rows: Sequence[Row],
    columns: Sequence[str],
    column_types: Optional[Mapping[str, str]] = None,
) -> DatasetSummary:
    if column_types is None:
        column_types = infer_column_types(rows, columns)
    sample = tuple(dict(row) for row in rows[:_MAX_PREVIEW_ROWS])
    return DatasetSummary(
        file_name=file_name,
        row_count=len(rows),
        columns=tuple(columns),
        sample_data=sample,
        data_types={column: column_types.get(column, COLUMN_TYPE_TEXT) for column in columns},
    )


__all__ = ["classify_value", "infer_column_types", "summarize"]
