"""
api.py - FastAPI upload/review/filing layer.

Endpoints:
    GET  /health
    POST /analyze-text        already-recognized text -> analysis
    POST /analyze-batch       N uploads -> N independent analyses
    POST /analyze-multipage   N uploads -> one analysis (pages of one document)
    POST /confirm-batch       reviewer-confirmed fields -> rename + move + audit

Uploads are staged in UPLOAD_DIR under random names (extension kept) until
they are confirmed. No extraction logic lives here.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from pathlib import Path
from typing import Any, Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from analyze import analyze_text
from classify import DOC_TYPE_NAMES, VENDOR_NAMES
from config import env_flag, env_int, env_str
from extractors import DocumentExtractor, get_extractor
from filing import MULTIPAGE_NAME_JOINER, file_batch, log_root
from logging_config import get_logger, setup_logging
from models import AnalysisResult, FilingItem, FilingOutcome

logger = get_logger("doc-filer-api")

DEFAULT_UPLOAD_DIR = "uploads"
MAX_BATCH_FILES = 50
API_LOG_NAME = "api.log"

app = FastAPI(
    title="Document Filing Assistant API",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Allows the local review UI to be served from another host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeTextRequest(BaseModel):
    text: str = Field(default="", description="Recognized document text.")


class ConfirmBatchRequest(BaseModel):
    items: list[FilingItem] = Field(default_factory=list)


class ConfirmBatchResponse(BaseModel):
    results: list[FilingOutcome]


def upload_dir() -> Path:
    directory = Path(env_str("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)).resolve()
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _analysis_payload(analysis: AnalysisResult) -> dict[str, Any]:
    payload = analysis.model_dump(mode="json")
    payload["po_digits"] = analysis.po_digits
    return payload


def _enumerations() -> dict[str, list[str]]:
    return {"vendors": list(VENDOR_NAMES), "doc_types": list(DOC_TYPE_NAMES)}


def _select_extractor(mode: Optional[str]) -> DocumentExtractor:
    try:
        return get_extractor(mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _check_files(files: Optional[list[UploadFile]]) -> list[UploadFile]:
    files = [upload for upload in (files or []) if upload.filename]
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_BATCH_FILES:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files: {len(files)} (max {MAX_BATCH_FILES})",
        )
    return files


async def _stage_upload(upload: UploadFile, directory: Path) -> Path:
    """Save an UploadFile under a random name, keeping its extension."""
    suffix = Path(upload.filename or "").suffix.lower()
    destination = directory / f"{secrets.token_hex(8)}{suffix}"
    try:
        with destination.open("wb") as out_file:
            while True:
                chunk = await upload.read(1024 * 1024)
                if not chunk:
                    break
                out_file.write(chunk)
    finally:
        await upload.close()
    return destination


async def _analyze_staged(
    extractor: DocumentExtractor,
    pages: list[Path],
    label: str,
) -> Optional[AnalysisResult]:
    try:
        analysis = await run_in_threadpool(extractor.analyze_pages, pages)
    except Exception as exc:
        logger.error(
            "api_analyze_error | file=%s | mode=%s | error_type=%s | error=%s",
            label,
            extractor.name,
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        return None
    logger.info(
        "api_analyze_done | file=%s | vendor=%s | doc_type=%s | po=%s",
        label,
        analysis.vendor.value,
        analysis.doc_type.value,
        analysis.po_number.value,
    )
    return analysis


@app.get("/health")
def health() -> dict[str, str]:
    """Service health check."""
    return {"status": "ok"}


@app.post("/analyze-text")
def analyze_text_endpoint(request: AnalyzeTextRequest) -> dict[str, Any]:
    """Analyze text that was recognized elsewhere."""
    return {"analysis": _analysis_payload(analyze_text(request.text)), **_enumerations()}


@app.post("/analyze-batch")
async def analyze_batch(
    files: Optional[list[UploadFile]] = File(default=None),
    mode: Optional[str] = Form(default=None),
) -> dict[str, Any]:
    """Analyze every uploaded file as its own document, concurrently."""
    files = _check_files(files)
    extractor = _select_extractor(mode)
    directory = upload_dir()

    logger.info("api_analyze_batch | files=%s | mode=%s", len(files), extractor.name)
    staged = [await _stage_upload(upload, directory) for upload in files]
    analyses = await asyncio.gather(
        *(
            _analyze_staged(extractor, [path], upload.filename or path.name)
            for upload, path in zip(files, staged)
        )
    )

    results = [
        {
            "temp_file": path.name,
            "original_name": upload.filename,
            "analysis": _analysis_payload(analysis) if analysis else None,
            "status": "analyzed" if analysis else "error",
        }
        for upload, path, analysis in zip(files, staged, analyses)
    ]
    return {"results": results, **_enumerations()}


@app.post("/analyze-multipage")
async def analyze_multipage(
    files: Optional[list[UploadFile]] = File(default=None),
    mode: Optional[str] = Form(default=None),
) -> dict[str, Any]:
    """Analyze all uploaded files as the pages of ONE document, in upload order."""
    files = _check_files(files)
    extractor = _select_extractor(mode)
    directory = upload_dir()

    logger.info("api_analyze_multipage | pages=%s | mode=%s", len(files), extractor.name)
    staged = [await _stage_upload(upload, directory) for upload in files]
    original_name = MULTIPAGE_NAME_JOINER.join(upload.filename or "" for upload in files)
    analysis = await _analyze_staged(extractor, staged, original_name)

    results = [
        {
            "temp_file": staged[0].name,
            "temp_files": [path.name for path in staged],
            "original_name": original_name,
            "analysis": _analysis_payload(analysis) if analysis else None,
            "status": "analyzed" if analysis else "error",
        }
    ]
    return {"results": results, **_enumerations()}


@app.post("/confirm-batch", response_model=ConfirmBatchResponse)
def confirm_batch(request: ConfirmBatchRequest) -> ConfirmBatchResponse:
    """Rename, route and audit every confirmed document."""
    if not request.items:
        raise HTTPException(status_code=400, detail="No items to confirm")
    try:
        outcomes = file_batch(request.items, upload_dir())
    except Exception as exc:
        logger.error(
            "api_confirm_error | error_type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Batch confirm failed") from exc
    return ConfirmBatchResponse(results=outcomes)


if __name__ == "__main__":
    setup_logging(
        level=logging.DEBUG if env_flag("DEBUG") else logging.INFO,
        json_format=env_flag("LOG_JSON"),
        log_file=log_root() / API_LOG_NAME,
    )
    port = env_int("PORT", 8000)
    uvicorn.run("api:app", host=env_str("HOST", "0.0.0.0"), port=port, reload=False)
