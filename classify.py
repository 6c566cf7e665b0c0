"""
classify.py - Vendor and document-type classification.

Both classifiers are ordered keyword tables evaluated top to bottom: the first
rule with a keyword that occurs in the folded text wins. Table order IS the
tie-break, so never sort these lists.

The same tables define the shared enumerations (`VENDOR_NAMES`,
`DOC_TYPE_NAMES`) used by the filing layer's folder routing, the vision
extractor and the API. Adding a vendor or document type here is the only
change needed to make it routable.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from logging_config import get_logger
from models import FieldValue
from normalize import fold_text

logger = get_logger(__name__)


class KeywordRule(NamedTuple):
    """One row of an ordered classification table."""

    label: str
    keywords: tuple[str, ...]

    def matches(self, folded: str) -> Optional[str]:
        """Return the first keyword found in `folded`, or None."""
        for keyword in self.keywords:
            if keyword in folded:
                return keyword
        return None


VENDOR_RULES: list[KeywordRule] = [
    KeywordRule("Amazon", ("amazon",)),
    KeywordRule("Grainger", ("grainger", "w.w. grainger")),
    KeywordRule("McMaster_Carr", ("mcmaster", "mcmaster-carr", "mcmaster carr")),
    KeywordRule("Uline", ("uline",)),
    KeywordRule("Home_Depot", ("home depot",)),
    KeywordRule("Fastenal", ("fastenal",)),
    KeywordRule("Linde", ("linde",)),
    KeywordRule("Cleanova", ("cleanova",)),
    KeywordRule("Motion_Industries", ("motion industries",)),
]

PACKING_SLIPS = "Packing_Slips"
PURCHASE_ORDERS = "Purchase_Orders"
ORDER_CONFIRMATIONS = "Order_Confirmations"
INVOICES = "Invoices"
CREDIT_CARD_RECEIPTS = "Credit_Card_Receipts"
OTHER_DOC_TYPE = "Other"

# Precedence: Packing_Slips, Purchase_Orders, Order_Confirmations, Invoices,
# Credit_Card_Receipts. Keyword lists overlap on purpose.
DOC_TYPE_RULES: list[KeywordRule] = [
    KeywordRule(
        PACKING_SLIPS,
        (
            "packing slip",
            "packing list",
            "pack list",
            "packing",
            "delivery ticket",
            "ship to",
            "shipped via",
            "ship date",
            "cartons shipped",
            "box id",
        ),
    ),
    KeywordRule(PURCHASE_ORDERS, ("purchase order", "po number", "po#", "po :")),
    KeywordRule(
        ORDER_CONFIRMATIONS,
        ("order confirmation", "confirmation number", "order number", "order placed"),
    ),
    KeywordRule(INVOICES, ("invoice", "invoice number", "inv#", "bill to", "amount due")),
    KeywordRule(
        CREDIT_CARD_RECEIPTS,
        (
            "receipt",
            "visa",
            "mastercard",
            "auth code",
            "subtotal",
            "self checkout",
            "credit card",
            "amex",
            "total due",
        ),
    ),
]

VENDOR_NAMES: tuple[str, ...] = tuple(rule.label for rule in VENDOR_RULES)
DOC_TYPE_NAMES: tuple[str, ...] = tuple(rule.label for rule in DOC_TYPE_RULES)

# Vendor-specific behavior elsewhere in the pipeline keys off these names.
CONSUMABLES_VENDOR = "Grainger"

# Filenames carry far less signal than document text, so the intake planner
# uses its own short table. Labels still come from the shared enumeration.
UNKNOWN_VENDOR = "Unknown"
MISC_DOC_TYPE = "Miscellaneous"
FILENAME_DOC_TYPE_RULES: list[KeywordRule] = [
    KeywordRule(CREDIT_CARD_RECEIPTS, ("receipt", "credit", "visa")),
    KeywordRule(PACKING_SLIPS, ("packing slip", "pack slip")),
    KeywordRule(PURCHASE_ORDERS, ("purchase order", "po ")),
    KeywordRule(ORDER_CONFIRMATIONS, ("order confirmation", "confirmation")),
]


def _first_match(rules: list[KeywordRule], folded: str) -> tuple[Optional[str], Optional[str]]:
    for rule in rules:
        keyword = rule.matches(folded)
        if keyword is not None:
            return rule.label, keyword
    return None, None


def detect_vendor(text: Optional[str]) -> FieldValue:
    """Return the earliest-listed vendor whose keyword occurs in the text."""
    label, keyword = _first_match(VENDOR_RULES, fold_text(text))
    if label is None:
        return FieldValue.low("")
    logger.debug("detect_vendor | vendor=%s | keyword=%r", label, keyword)
    return FieldValue.high(label)


def detect_doc_type(text: Optional[str]) -> FieldValue:
    """Return the highest-precedence document type with a keyword hit."""
    label, keyword = _first_match(DOC_TYPE_RULES, fold_text(text))
    if label is None:
        return FieldValue.low(OTHER_DOC_TYPE)
    logger.debug("detect_doc_type | doc_type=%s | keyword=%r", label, keyword)
    return FieldValue.high(label)


def vendor_from_filename(filename: str) -> str:
    label, _ = _first_match(VENDOR_RULES, fold_text(filename))
    return label or UNKNOWN_VENDOR


def doc_type_from_filename(filename: str) -> str:
    label, _ = _first_match(FILENAME_DOC_TYPE_RULES, fold_text(filename))
    return label or MISC_DOC_TYPE
