"""Error kinds surfaced by the report session.

Every failure a user can see is a ``ReportError``; ``kind`` is the stable
identifier the API and the session expose next to the message.
"""
from __future__ import annotations


class ReportError(Exception):
    kind = "ReportError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class UnsupportedFormat(ReportError):
    kind = "UnsupportedFormat"


class ParseError(ReportError):
    kind = "ParseError"


class NoData(ReportError):
    kind = "NoData"


class EmptyDirective(ReportError):
    kind = "EmptyDirective"


class ReportBusy(ReportError):
    kind = "ReportBusy"


class GenerationFailure(ReportError):
    kind = "GenerationFailure"


class GenerationEmpty(ReportError):
    kind = "GenerationEmpty"


class ExportUnavailable(ReportError):
    kind = "ExportUnavailable"


__all__ = [
    "EmptyDirective",
    "ExportUnavailable",
    "GenerationEmpty",
    "GenerationFailure",
    "NoData",
    "ParseError",
    "ReportBusy",
    "ReportError",
    "UnsupportedFormat",
]
