"""
test_classify.py - Vendor and document-type classification tests

Usage: python test_classify.py  (or: pytest test_classify.py)
"""

from __future__ import annotations

import os
import sys

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest

from classify import (
    DOC_TYPE_NAMES,
    MISC_DOC_TYPE,
    UNKNOWN_VENDOR,
    VENDOR_NAMES,
    detect_doc_type,
    detect_vendor,
    doc_type_from_filename,
    vendor_from_filename,
)
from models import Confidence


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Shipped from W.W. Grainger, Inc.", "Grainger"),
        ("AMAZON.COM Order Summary", "Amazon"),
        ("McMaster-Carr Supply Company", "McMaster_Carr"),
        ("THE HOME DEPOT #4821", "Home_Depot"),
        ("ULINE  Shipping Supply Specialists", "Uline"),
        ("Motion Industries, Inc.", "Motion_Industries"),
    ],
)
def test_detect_vendor(text, expected):
    result = detect_vendor(text)
    assert result.value == expected
    assert result.confidence == Confidence.HIGH


def test_vendor_table_order_breaks_ties():
    # Both names appear; Amazon is listed first.
    assert detect_vendor("Grainger item sold on Amazon").value == "Amazon"


def test_unknown_vendor_is_empty_low():
    result = detect_vendor("Acme Hardware\n123 Main St")
    assert result.value == ""
    assert result.confidence == Confidence.LOW


@pytest.mark.parametrize(
    "text, expected",
    [
        ("PACKING SLIP\nShip To: Plant 2", "Packing_Slips"),
        ("PURCHASE ORDER 4500123", "Purchase_Orders"),
        ("po_number: 4500123", "Purchase_Orders"),
        ("Order Confirmation\nThanks for your order", "Order_Confirmations"),
        ("INVOICE\nAmount Due $10.00", "Invoices"),
        ("VISA ****1234\nAUTH CODE 0099", "Credit_Card_Receipts"),
    ],
)
def test_detect_doc_type(text, expected):
    result = detect_doc_type(text)
    assert result.value == expected
    assert result.confidence == Confidence.HIGH


def test_doc_type_precedence_invoice_over_receipt():
    assert detect_doc_type("Invoice\nThank you, keep this receipt").value == "Invoices"


def test_doc_type_precedence_packing_over_invoice():
    assert detect_doc_type("Packing Slip\nInvoice to follow").value == "Packing_Slips"


def test_doc_type_default_other():
    result = detect_doc_type("hello world")
    assert result.value == "Other"
    assert result.confidence == Confidence.LOW


def test_enumerations_follow_table_order():
    assert DOC_TYPE_NAMES == (
        "Packing_Slips",
        "Purchase_Orders",
        "Order_Confirmations",
        "Invoices",
        "Credit_Card_Receipts",
    )
    assert VENDOR_NAMES[0] == "Amazon"
    assert "Other" not in DOC_TYPE_NAMES


def test_filename_helpers():
    assert vendor_from_filename("grainger_packing_slip.pdf") == "Grainger"
    assert doc_type_from_filename("grainger_packing_slip.pdf") == "Packing_Slips"
    assert doc_type_from_filename("amazon receipt.jpg") == "Credit_Card_Receipts"
    assert vendor_from_filename("scan001.jpg") == UNKNOWN_VENDOR
    assert doc_type_from_filename("scan001.jpg") == MISC_DOC_TYPE


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
