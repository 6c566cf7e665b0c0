"""
analyze.py - Field extraction orchestrator.

Runs the detectors in a fixed order over one document's recognized text:

    preprocess_ocr -> vendor -> doc type -> date -> PO
                   -> part number (needs PO digits + vendor)
                   -> description (needs doc type)

Stateless and side-effect free apart from logging: the same text always
yields the same result, except for the documented "today" date fallback.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from classify import detect_doc_type, detect_vendor
from describe import extract_description
from extract import detect_date, detect_part_number, detect_po
from logging_config import get_logger
from models import AnalysisResult
from normalize import preprocess_ocr

logger = get_logger(__name__)


def analyze_text(raw_text: Optional[str], today: Optional[date] = None) -> AnalysisResult:
    """Extract the six reviewable fields from recognized document text.

    Args:
        raw_text: Recognizer output, possibly several pages joined with
            `normalize.PAGE_BREAK`. Stored unchanged as `raw_text`.
        today: Date used when no date can be found. Defaults to today.

    Returns:
        A frozen AnalysisResult. Never raises for any text input.
    """
    raw_text = raw_text or ""
    cleaned = preprocess_ocr(raw_text)

    vendor = detect_vendor(cleaned)
    doc_type = detect_doc_type(cleaned)
    doc_date = detect_date(cleaned, today=today)
    po_number = detect_po(cleaned)

    po_digits = po_number.value[2:] if po_number.value else None
    part_number = detect_part_number(cleaned, po_digits, vendor.value)
    description = extract_description(cleaned, doc_type.value)

    result = AnalysisResult(
        vendor=vendor,
        doc_type=doc_type,
        date=doc_date,
        po_number=po_number,
        part_number=part_number,
        description=description,
        raw_text=raw_text,
    )
    logger.info(
        "analyze_complete | vendor=%r | doc_type=%s | date=%s | po=%s | part=%s | low=%s",
        vendor.value,
        doc_type.value,
        doc_date.value,
        po_number.value,
        part_number.value,
        ",".join(result.low_confidence_fields) or "-",
    )
    logger.debug("analyze_raw_text | chars=%s | text=%r", len(raw_text), raw_text)
    return result
