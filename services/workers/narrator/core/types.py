from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, IO, List, Optional, Tuple, Union

# type alias used across the code
BinaryInput = Union[bytes, bytearray, IO[bytes]]

Scalar = Union[None, bool, int, float, str]
Row = Dict[str, Scalar]

KIND_NULL = "null"
KIND_BOOLEAN = "boolean"
KIND_NUMBER = "number"
KIND_STRING = "string"


def scalar_kind(value: Any) -> str:
    """Return the variant tag of a row value.

    ``bool`` is checked before numbers because it subclasses ``int``.
    """
    if value is None:
        return KIND_NULL
    if isinstance(value, bool):
        return KIND_BOOLEAN
    if isinstance(value, (int, float)):
        return KIND_NUMBER
    if isinstance(value, str):
        return KIND_STRING
    raise TypeError(f"Unsupported scalar value: {type(value).__name__}")


@dataclass(frozen=True)
class Dataset:
    file_name: str
    rows: List[Row]
    columns: List[str]
    source_format: str
    bytes_read: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def overview(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "rows": self.row_count,
            "columns": list(self.columns),
            "sourceFormat": self.source_format,
            "bytesRead": self.bytes_read,
        }


@dataclass(frozen=True)
class DatasetSummary:
    file_name: str
    row_count: int
    columns: Tuple[str, ...]
    sample_data: Tuple[Row, ...]
    data_types: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "rowCount": self.row_count,
            "columns": list(self.columns),
            "sampleData": [dict(row) for row in self.sample_data],
            "dataTypes": dict(self.data_types),
        }


@dataclass(frozen=True)
class ReportRequest:
    system: str
    user: str
    model: str
    max_tokens: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": self.user}],
            "system": self.system,
        }


@dataclass
class ReportState:
    text: Optional[str] = None
    html: Optional[str] = None
    directive: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"report": self.text, "html": self.html, "directive": self.directive}


@dataclass
class PipelineResult:
    phases: Dict[str, Dict[str, Any]]
    summary: DatasetSummary
    request: ReportRequest
    report_text: str
    report_html: str
    column_types: Dict[str, str] = field(default_factory=dict)
