"""
extract.py - Date, purchase-order and part-number extraction.

Pipeline role:
- Consumes text that already went through `normalize.preprocess_ocr`.
- Every detector returns a `FieldValue` and never raises; a missing or
  ambiguous value degrades to a defined fallback with low confidence.

The PO detector is the delicate one. Scanned documents are full of numbers
that look like PO numbers (zip codes, phone numbers, account, order and
delivery numbers), so it first harvests those into an exclusion set and only
then runs its candidate cascade:

    1. direct      "PO 00044162", "PO#00044162", "PO-00044162"   -> high
    2. zero garble "P0 00044162"                                  -> high
    3. labeled     "PO Number: ... 00044162" (within 30 chars)     -> high
    4. line scan   8-10 digits on a PO-ish, non-address line       -> low

Exclusion membership is deliberately loose (substring either way), which
catches zip+4 fragments but can also hide a short real PO that happens to
sit inside an unrelated phone number.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Optional

from classify import CONSUMABLES_VENDOR
from logging_config import get_logger
from models import FieldValue
from normalize import today_dotted

logger = get_logger(__name__)

# -- Dates --

ISO_DATE_RE = re.compile(r"(20[0-9]{2})[.\-/]([0-9]{1,2})[.\-/]([0-9]{1,2})")
US_DATE_RE = re.compile(r"([0-9]{1,2})[.\-/]([0-9]{1,2})[.\-/]([0-9]{2,4})")

# -- PO exclusion patterns (run on upper-cased text) --

# "PO 000441621" must not read as a state token followed by a zip. This
# departs from the older heuristic, which also dropped "PO 12345" as a zip.
ZIP_RE = re.compile(r"\b(?!P[O0]\b)[A-Z]{2}\s+([0-9]{5})(?:[.\-\s]?([0-9]{4}))?\b")
PHONE_RE = re.compile(
    r"\b([0-9]{10})\b|(?:\(?([0-9]{3})\)?[\s.\-]?([0-9]{3})[\s.\-]?([0-9]{4}))"
)
DELIVERY_RE = re.compile(r"DELIVERY[\s#:NUMBER|]*\s*([0-9]{7,13})")
ACCOUNT_RE = re.compile(r"ACCOUNT[\s#:NUMBER|]*\s*([0-9]{5,12})")
ORDER_NUMBER_RE = re.compile(r"ORDER\s*NUMBER[\s#:|]*\s*([0-9]{5,12})")

# -- PO candidate cascade --

PO_DIRECT_RE = re.compile(r"\bPO[\s#:\-]*([0-9]{3,10})\b")
PO_ZERO_GARBLE_RE = re.compile(r"\bP0[\s#:\-]*([0-9]{3,10})\b")
PO_LABELED_RE = re.compile(r"PO\s*(?:NUMBER|NUM|#|NO\.?)[\s\S]{0,30}?([0-9]{5,10})")

ADDRESS_LINE_RE = re.compile(r"\b[A-Z]{2}\s+[0-9]{5}\b")
PHONE_LINE_RE = re.compile(r"PHONE|TELE|FAX|CALL")
PO_TOKEN_RE = re.compile(r"PO|P\.?O\.?|P0")
LONG_DIGITS_RE = re.compile(r"[0-9]{8,10}")

PO_CASCADE: list[tuple[str, re.Pattern[str]]] = [
    ("direct", PO_DIRECT_RE),
    ("zero_garble", PO_ZERO_GARBLE_RE),
    ("labeled", PO_LABELED_RE),
]

# -- Part numbers (run on upper-cased text, first match per pattern) --

PART_LABEL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(?:PART|CATALOG|CAT)\s*[#:NO.]+\s*([A-Z0-9]{3,12})"),
    re.compile(r"\bP/N[:\s]*([A-Z0-9]{3,12})"),
    re.compile(r"\bITEM\s*[#:NO.]+\s*([A-Z0-9]{3,12})"),
]


def detect_date(text: Optional[str], today: Optional[date] = None) -> FieldValue:
    """Find the document date and format it as YYYY.MM.DD.

    ISO-like dates win over US-like ones. When neither is usable the current
    date is returned with low confidence.
    """
    text = text or ""

    iso = ISO_DATE_RE.search(text)
    if iso:
        year, month, day = iso.groups()
        return FieldValue.high(f"{year}.{month.zfill(2)}.{day.zfill(2)}")

    us = US_DATE_RE.search(text)
    if us:
        month, day, year = us.groups()
        if len(year) == 2:
            year = f"20{year}"
        if len(year) == 4 and year.startswith("20"):
            return FieldValue.high(f"{year}.{month.zfill(2)}.{day.zfill(2)}")
        logger.debug("detect_date | rejected_year=%r | match=%r", year, us.group(0))

    return FieldValue.low(today_dotted(today))


def build_exclusion_set(upper: str) -> set[str]:
    """Collect digit strings that must never be read as a PO number."""
    excluded: set[str] = set()

    for match in ZIP_RE.finditer(upper):
        excluded.add(match.group(1))
        if match.group(2):
            excluded.add(match.group(2))

    for match in PHONE_RE.finditer(upper):
        if match.group(1):
            excluded.add(match.group(1))
        if match.group(2) and match.group(3) and match.group(4):
            excluded.add(match.group(2) + match.group(3) + match.group(4))

    for pattern in (DELIVERY_RE, ACCOUNT_RE, ORDER_NUMBER_RE):
        for match in pattern.finditer(upper):
            excluded.add(match.group(1))

    return excluded


def is_excluded(number: str, excluded: Iterable[str]) -> bool:
    """True if `number` equals, contains, or is contained in an excluded string."""
    for ignored in excluded:
        if number == ignored or number in ignored or ignored in number:
            return True
    return False


def _scan_po_lines(upper: str, excluded: set[str]) -> Optional[str]:
    for line in upper.split("\n"):
        if ADDRESS_LINE_RE.search(line):
            continue
        if PHONE_LINE_RE.search(line):
            continue
        if not PO_TOKEN_RE.search(line):
            continue
        for match in LONG_DIGITS_RE.finditer(line):
            if not is_excluded(match.group(0), excluded):
                return match.group(0)
    return None


def detect_po(text: Optional[str]) -> FieldValue:
    """Find a purchase-order number, returned as PO<digits>."""
    upper = (text or "").upper()
    excluded = build_exclusion_set(upper)

    for step, pattern in PO_CASCADE:
        for match in pattern.finditer(upper):
            digits = match.group(1)
            if is_excluded(digits, excluded):
                logger.debug("detect_po | step=%s | excluded=%s", step, digits)
                continue
            logger.debug("detect_po | step=%s | digits=%s", step, digits)
            return FieldValue.high(f"PO{digits}")

    digits = _scan_po_lines(upper, excluded)
    if digits:
        logger.debug("detect_po | step=line_scan | digits=%s", digits)
        return FieldValue.low(f"PO{digits}")

    return FieldValue.low(None)


def detect_part_number(
    text: Optional[str],
    po_digits: Optional[str],
    vendor: Optional[str],
) -> FieldValue:
    """Find a label-anchored part number.

    Consumables-vendor documents never carry a standalone part number; their
    item codes feed the description instead. Without a label nothing is
    guessed.
    """
    if vendor == CONSUMABLES_VENDOR:
        return FieldValue.low(None)

    upper = (text or "").upper()
    for pattern in PART_LABEL_PATTERNS:
        match = pattern.search(upper)
        if not match:
            continue
        value = match.group(1)
        if len(value) == 4 and value.startswith("20"):
            continue
        if po_digits and value == po_digits:
            continue
        if len(value) < 3:
            continue
        return FieldValue.high(value)

    return FieldValue.low(None)
