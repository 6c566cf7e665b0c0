"""
describe.py - Short human-readable description of what a document covers.

Packing slips and invoices list items as

    [item code] [catalog description] [quantities / prices]

e.g.

    52CD02- Ice Scraper, Steel, 7" W  3  0  -3  E  90.62  271.86
    1FD55 Lid Ext Crd,50f,14Ga,15A,SJTW,Org/Blk  0  4  0  0.00  0.00

Each item line is reduced to a compact name ("Ice Scraper", "50ft Ext Cord")
and as many names as fit in the description budget are joined with ", ".

Receipts have no item codes, so the first plausible free-text line near the
top is used instead, with low confidence.
"""

from __future__ import annotations

import re
from typing import Optional

from classify import CREDIT_CARD_RECEIPTS, INVOICES, PACKING_SLIPS
from logging_config import get_logger
from models import DESCRIPTION_MAX_CHARS, FieldValue

logger = get_logger(__name__)

ITEM_DOC_TYPES = {PACKING_SLIPS, INVOICES}
RECEIPT_SCAN_LINES = 10
SEPARATOR = ", "

# Vendor item codes always mix letters and digits: 52CD02, 1FD55, 1VAJ7, 21A070.
ITEM_LINE_RE = re.compile(
    r"^[^a-zA-Z0-9]*(?:[0-9]{0,2}\s+)?([A-Z0-9]{4,8})\s*[-–.]?\s+(.+)",
    re.IGNORECASE,
)
SECONDARY_CODE_RE = re.compile(r"^WWG", re.IGNORECASE)
HEADER_DESC_RE = re.compile(
    r"^(Granger|Customer|UOM|Part\s*Nbr|Caller|Carrier)", re.IGNORECASE
)
TRAILING_NUMBERS_RE = re.compile(r"\s+[0-9.,$Eco]+(?:\s+[0-9.,$Eco]+)*\s*$")
TRAILING_ARTIFACTS_RE = re.compile(r"\s*[~\-_|\[\]{}]+\s*$")

# Ordered catalog abbreviation expansions; the first ones cover common
# recognizer misreads of the same abbreviation.
ABBREVIATIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bLid\s*Ext\s*Crd\b", re.IGNORECASE), "Ext Cord"),
    (re.compile(r"\bLtd\s*Ext\s*Crd\b", re.IGNORECASE), "Ext Cord"),
    (re.compile(r"\bExt\s*Crd\b", re.IGNORECASE), "Ext Cord"),
    (re.compile(r"\bOust\s*Pan\b", re.IGNORECASE), "Dust Pan"),
    (re.compile(r"\bDust\s*Pan\b", re.IGNORECASE), "Dust Pan"),
    (re.compile(r"\bHx\s*Bolt\b", re.IGNORECASE), "Hex Bolt"),
]

# "25R" is how 25ft tends to come back from the recognizer.
LENGTH_RE = re.compile(r"([0-9]+)\s*(?:ft?|foot|feet|R)\b", re.IGNORECASE)
CORD_RE = re.compile(r"cord|cable|crd", re.IGNORECASE)
FILLER_WORDS = [
    re.compile(r"\bHandheld\b", re.IGNORECASE),
    re.compile(r"\bBlack\b", re.IGNORECASE),
    re.compile(r"\bWhite\b", re.IGNORECASE),
    re.compile(r"\bOrange\b", re.IGNORECASE),
]
SPEC_SPLIT_RE = re.compile(r"[,;]")
SPEC_NOISE = [
    re.compile(r"\s+[0-9]+\s*[\"']?\s*[WwHhLl]?\s*$"),  # 7" W
    re.compile(r"\s+[0-9]+\s*[Oo]z\.?\s*$", re.IGNORECASE),  # 11 Oz.
    re.compile(r"\bAerosol\b", re.IGNORECASE),
    re.compile(r"\bHandheld\b", re.IGNORECASE),
]
MULTISPACE_RE = re.compile(r"\s{2,}")

RECEIPT_STORE_NOISE_RE = re.compile(r"self\s*checkout|store|sale", re.IGNORECASE)
RECEIPT_PAYMENT_NOISE_RE = re.compile(r"receipt|visa|mastercard|auth|total", re.IGNORECASE)
HAS_LETTER_RE = re.compile(r"[a-zA-Z]")


def _content_lines(text: str) -> list[str]:
    lines = (line.strip() for line in text.split("\n"))
    return [line for line in lines if len(line) > 3]


def parse_item_lines(lines: list[str]) -> list[str]:
    """Return the cleaned catalog description of every item line."""
    items: list[str] = []

    for line in lines:
        match = ITEM_LINE_RE.match(line)
        if not match:
            continue

        code = match.group(1)
        desc = match.group(2).strip()

        # Pure words ("WELL", "BOXID") are not item codes.
        if not HAS_LETTER_RE.search(code) or not re.search(r"[0-9]", code):
            continue
        if SECONDARY_CODE_RE.match(code):
            continue
        if len(desc) < 3 or HEADER_DESC_RE.match(desc):
            continue

        desc = TRAILING_NUMBERS_RE.sub("", desc).strip()
        desc = TRAILING_ARTIFACTS_RE.sub("", desc).strip()

        if len(desc) > 2:
            items.append(desc)

    return items


def shorten_item_name(desc: str) -> str:
    """Reduce a catalog description to a short name.

    >>> shorten_item_name('Ice Scraper, Steel, 7" W')
    'Ice Scraper'
    >>> shorten_item_name("Lid Ext Crd,50f,14Ga,15A,SJTW,Org/Blk")
    '50ft Ext Cord'
    >>> shorten_item_name("Starting Fluid Aerosol, 11 Oz.")
    'Starting Fluid'
    """
    name = desc
    for pattern, replacement in ABBREVIATIONS:
        name = pattern.sub(replacement, name, count=1)

    length = LENGTH_RE.search(name)
    length_prefix = f"{length.group(1)}ft " if length else ""

    if name != desc:
        cleaned = SPEC_SPLIT_RE.split(name)[0].strip()
        for filler in FILLER_WORDS:
            cleaned = filler.sub("", cleaned, count=1)
        cleaned = MULTISPACE_RE.sub(" ", cleaned).strip()

        if length_prefix and CORD_RE.search(desc):
            return length_prefix + cleaned
        return cleaned

    first_part = SPEC_SPLIT_RE.split(name)[0].strip()
    for noise in SPEC_NOISE:
        first_part = noise.sub("", first_part, count=1)
    first_part = MULTISPACE_RE.sub(" ", first_part).strip()

    return first_part or desc


def summarize_items(names: list[str], budget: int = DESCRIPTION_MAX_CHARS) -> str:
    """Join names with ", " until the next one would overflow `budget`."""
    included: list[str] = []
    length = 0

    for name in names:
        added = len(name) + (len(SEPARATOR) if included else 0)
        if included and length + added > budget:
            break
        included.append(name)
        length += added

    summary = SEPARATOR.join(included)
    if len(summary) > budget:
        # Only possible when the very first name is already too long.
        summary = summary[: budget - 3] + "..."
    return summary


def _receipt_headline(lines: list[str]) -> Optional[str]:
    for line in lines[:RECEIPT_SCAN_LINES]:
        if RECEIPT_STORE_NOISE_RE.search(line):
            continue
        if RECEIPT_PAYMENT_NOISE_RE.search(line):
            continue
        if 5 < len(line) < 60 and HAS_LETTER_RE.search(line):
            return line
    return None


def extract_description(text: Optional[str], doc_type: Optional[str]) -> FieldValue:
    """Build the short description for a document of the given type."""
    lines = _content_lines(text or "")

    if doc_type in ITEM_DOC_TYPES:
        items = parse_item_lines(lines)
        if items:
            summary = summarize_items([shorten_item_name(item) for item in items])
            logger.debug("extract_description | items=%s | summary=%r", len(items), summary)
            return FieldValue.high(summary)

    if doc_type == CREDIT_CARD_RECEIPTS:
        headline = _receipt_headline(lines)
        if headline:
            return FieldValue.low(headline)

    return FieldValue.low("")
