# services/api/app.py
from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from services.workers.narrator.core.errors import (
    EmptyDirective,
    ExportUnavailable,
    GenerationEmpty,
    GenerationFailure,
    NoData,
    ParseError,
    ReportBusy,
    ReportError,
    UnsupportedFormat,
)
from services.workers.narrator.session import ReportSession

# ---- Logging ----
logger = logging.getLogger("insightpress.api")
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)
logger.setLevel(logging.INFO)

# ---- Session ----
session = ReportSession()

# ---- App ----
app = FastAPI(title="InsightPress API")

# --- CORS for local dashboard ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
    allow_credentials=False,
)

STATUS_BY_KIND: Dict[str, int] = {
    UnsupportedFormat.kind: 415,
    ParseError.kind: 422,
    NoData.kind: 409,
    EmptyDirective.kind: 400,
    ReportBusy.kind: 409,
    GenerationFailure.kind: 502,
    GenerationEmpty.kind: 502,
    ExportUnavailable.kind: 409,
}


# ---- Models ----
class AnalyzeRequest(BaseModel):
    """Request payload for report generation."""
    regenerate: bool = False
    directive: Optional[str] = None


class DirectiveBody(BaseModel):
    directive: str


@app.exception_handler(ReportError)
async def report_error_handler(_request: Request, exc: ReportError):
    status_code = STATUS_BY_KIND.get(exc.kind, 400)
    logger.info("request failed", extra={"kind": exc.kind, "status_code": status_code})
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "kind": exc.kind})


# ---- Routes ----
@app.get("/health")
def health():
    return {"ok": True}


@app.post("/dataset")
async def upload_dataset(request: Request, file_name: str = Query(..., min_length=1)):
    body = await request.body()
    dataset = await run_in_threadpool(session.upload, file_name, body)
    if dataset is None:
        raise HTTPException(status_code=409, detail="Upload superseded by a newer file")
    logger.info("dataset loaded", extra={"file_name": file_name, "rows": dataset.row_count})
    return session.dataset_overview(dataset)


@app.get("/dataset")
def get_dataset():
    if session.dataset is None:
        raise HTTPException(status_code=404, detail="No dataset loaded")
    return session.dataset_overview()


@app.post("/report")
def create_report(body: AnalyzeRequest):
    report = session.analyze(regenerate=body.regenerate, directive=body.directive)
    result = session.last_result
    return {
        "report": report,
        "html": session.report.html,
        "phases": result.phases if result is not None else {},
    }


@app.put("/report/directive")
def set_directive(body: DirectiveBody):
    session.set_directive(body.directive)
    return {"directive": session.report.directive}


@app.get("/report")
def get_report():
    return session.state()


@app.get("/report/export", response_class=HTMLResponse)
def export_report():
    return HTMLResponse(content=session.export())
