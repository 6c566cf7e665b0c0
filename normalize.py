"""
normalize.py - Text normalization helpers.

    preprocess_ocr(text)   -> copy of text with recognizer garble repaired
    fold_text(text)        -> lower-cased, separator-collapsed keyword text
    combine_pages(texts)   -> one document text with page-break markers
    today_dotted()         -> today's date as YYYY.MM.DD

Design principles:
    - Pure transformations, no I/O
    - Never mutate the caller's text; always return a new string
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Optional

from logging_config import get_logger

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- PAGE BREAK ---\n\n"

# Ordered (pattern, replacement) rewrites. Tesseract swaps O<->0, b<->8,
# e<->3 and n<->r inside "PO Number"; "romero" is what it tends to read for
# the whole phrase on some packing-slip fonts.
OCR_GARBLE_REWRITES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"P[O0]\s*[Nn][uü][mn][b8][e3][rn]"), "PO Number"),
    (re.compile(r"[Pp][O0]\s*#"), "PO#"),
    (re.compile(r"[Rr]omero"), "PO Number"),
]

_SEPARATOR_RUN = re.compile(r"[_-]+")
_WHITESPACE_RUN = re.compile(r"\s+")


def preprocess_ocr(text: Optional[str]) -> str:
    """Rewrite known recognizer garble into the canonical tokens detectors expect."""
    if not text:
        return ""

    cleaned = text
    for pattern, replacement in OCR_GARBLE_REWRITES:
        cleaned, count = pattern.subn(replacement, cleaned)
        if count:
            logger.debug(
                "preprocess_ocr | pattern=%r | replacement=%r | count=%s",
                pattern.pattern,
                replacement,
                count,
            )
    return cleaned


def fold_text(text: Optional[str]) -> str:
    """Case-fold and collapse `_`/`-` runs and whitespace for keyword matching."""
    if not text:
        return ""
    folded = _SEPARATOR_RUN.sub(" ", text.lower())
    return _WHITESPACE_RUN.sub(" ", folded).strip()


def combine_pages(texts: Iterable[str]) -> str:
    """Join recognized page texts into one document, in page order."""
    return PAGE_BREAK.join(text or "" for text in texts)


def today_dotted(today: Optional[date] = None) -> str:
    """Format a date (default: today) as YYYY.MM.DD."""
    today = today or date.today()
    return today.strftime("%Y.%m.%d")
