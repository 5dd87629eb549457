from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .core.constants import _EXPORT_TEMPLATE_NAME, _TEMPLATE_DIR
from .core.errors import ExportUnavailable
from .markup import render

logger = logging.getLogger(__name__)

_JINJA_ENV = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml", "j2"]),
)


def build_document(report_text: Optional[str], file_name: str, *, body_html: Optional[str] = None) -> str:
    """Embed the rendered report into a standalone printable HTML document."""
    if not report_text:
        raise ExportUnavailable("There is no report to export yet")
    body = body_html if body_html is not None else render(report_text)
    template = _JINJA_ENV.get_template(_EXPORT_TEMPLATE_NAME)
    return template.render(file_name=file_name, body=body)


def write_document(document: str, destination: Union[str, Path]) -> Path:
    path = Path(destination)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
    except OSError as exc:
        logger.exception("failed to write export document: %s", path)
        raise ExportUnavailable(f"Unable to write the export document to {path}") from exc
    return path


__all__ = ["build_document", "write_document"]
