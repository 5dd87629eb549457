import os
from pathlib import Path

PHASE_ORDER = [
    "infer_types",
    "summarize",
    "build_request",
    "generate",
    "render",
]

_MAX_PREVIEW_ROWS = 5
_DELIMITED_STREAM_CHUNK_SIZE = 64 * 1024

_CSV_EXTENSIONS = {"csv"}
_EXCEL_EXTENSIONS = {"xlsx", "xls"}

_BOOLEAN_TOKENS = {
    "true": True,
    "TRUE": True,
    "True": True,
    "false": False,
    "FALSE": False,
    "False": False,
}

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_EXPORT_TEMPLATE_NAME = "report_document.html.j2"

COLUMN_TYPE_NUMERIC = "numeric"
COLUMN_TYPE_DATE = "date"
COLUMN_TYPE_TEXT = "text"

# ---- Generation service ----
GENERATION_API_URL = os.environ.get("GENERATION_API_URL", "https://api.anthropic.com/v1/messages")
GENERATION_API_VERSION = os.environ.get("GENERATION_API_VERSION", "2023-06-01")
GENERATION_TIMEOUT_SECONDS = float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "120"))
REPORT_MODEL = os.environ.get("REPORT_MODEL", "claude-sonnet-4-20250514")
REPORT_MAX_TOKENS = int(os.environ.get("REPORT_MAX_TOKENS", "4000"))
