"""
test_analyze.py - End-to-end field extraction tests

Runs analyze_text over realistic recognizer output and checks the result
contract: fixed field formats, confidence tags, determinism and an
untouched raw_text.

Usage: python test_analyze.py  (or: pytest test_analyze.py)
"""

from __future__ import annotations

import os
import sys
from datetime import date

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest
from pydantic import ValidationError

from analyze import analyze_text
from models import DATE_VALUE_RE, PO_VALUE_RE, Confidence, FieldValue
from normalize import combine_pages

TODAY = date(2026, 3, 4)

GRAINGER_SLIP = """W.W. GRAINGER, INC.
PACKING SLIP
Ship Date: 02/06/2026
Customer PO Number: PO00044162
Springfield IL 62704
Phone: (217) 555-0143
Part# 52CD02
52CD02- Ice Scraper, Steel, 7" W  3  0  -3  E  90.62  271.86
1FD55 Lid Ext Crd,50f,14Ga,15A,SJTW,Org/Blk  0  4  0  0.00  0.00
"""

MCMASTER_INVOICE = """McMaster-Carr Supply Company
Invoice
Invoice Date: 2026-01-19
Your order PO 4500123
Part No. 91251A540
Socket Head Screw
Amount Due $45.10
"""

HOME_DEPOT_RECEIPT = """THE HOME DEPOT #4821
SELF CHECKOUT
Drywall Screws 1lb
SUBTOTAL 24.00
VISA 24.00
01/15/26
"""


def test_grainger_packing_slip():
    result = analyze_text(GRAINGER_SLIP, today=TODAY)

    assert result.vendor == FieldValue.high("Grainger")
    assert result.doc_type == FieldValue.high("Packing_Slips")
    assert result.date == FieldValue.high("2026.02.06")
    assert result.po_number == FieldValue.high("PO00044162")
    assert result.po_digits == "00044162"
    # Grainger item codes feed the description, never the part number.
    assert result.part_number == FieldValue.low(None)
    assert result.description == FieldValue.high("Ice Scraper, 50ft Ext Cord")
    assert result.low_confidence_fields == ["part_number"]


def test_mcmaster_invoice():
    result = analyze_text(MCMASTER_INVOICE, today=TODAY)

    assert result.vendor.value == "McMaster_Carr"
    assert result.doc_type.value == "Invoices"
    assert result.date.value == "2026.01.19"
    assert result.po_number.value == "PO4500123"
    assert result.part_number == FieldValue.high("91251A540")
    assert result.description == FieldValue.low("")


def test_home_depot_receipt():
    result = analyze_text(HOME_DEPOT_RECEIPT, today=TODAY)

    assert result.vendor.value == "Home_Depot"
    assert result.doc_type.value == "Credit_Card_Receipts"
    assert result.date.value == "2026.01.15"
    assert result.po_number == FieldValue.low(None)
    assert result.description.confidence == Confidence.LOW
    assert result.description.value


def test_garbled_po_label_is_repaired_before_detection():
    result = analyze_text("P0 Numb3r: Ref 12345678", today=TODAY)
    assert result.po_number == FieldValue.high("PO12345678")
    assert result.doc_type.value == "Purchase_Orders"


def test_multipage_text_fuses_fields_across_pages():
    text = combine_pages(["W.W. Grainger\nPACKING SLIP", "Customer PO 00044162"])
    result = analyze_text(text, today=TODAY)
    assert result.vendor.value == "Grainger"
    assert result.po_number.value == "PO00044162"


def test_empty_text_uses_every_fallback():
    result = analyze_text("", today=TODAY)

    assert result.vendor == FieldValue.low("")
    assert result.doc_type == FieldValue.low("Other")
    assert result.date == FieldValue.low("2026.03.04")
    assert result.po_number == FieldValue.low(None)
    assert result.part_number == FieldValue.low(None)
    assert result.description == FieldValue.low("")
    assert analyze_text(None, today=TODAY) == result


@pytest.mark.parametrize(
    "text",
    [
        GRAINGER_SLIP,
        MCMASTER_INVOICE,
        HOME_DEPOT_RECEIPT,
        "Established 12/25/1999\nPO 12",
        "\n".join(f"1AB{i:02d} Gasket Kit Number {i}  1  1  0  9.99" for i in range(40))
        + "\nINVOICE",
        "%%%%\n\n\t  ~~ 0000 ~~",
    ],
)
def test_result_contract_holds(text):
    result = analyze_text(text, today=TODAY)

    assert DATE_VALUE_RE.match(result.date.value)
    assert result.po_number.value is None or PO_VALUE_RE.match(result.po_number.value)
    assert len(result.description.value) <= 120
    assert result.raw_text == text
    # Same input, same output.
    assert analyze_text(text, today=TODAY) == result


def test_bare_po_line():
    assert analyze_text("PO 00044162", today=TODAY).po_number == FieldValue.high("PO00044162")


def test_address_alone_has_no_po():
    assert analyze_text("Springfield IL 62704", today=TODAY).po_number.value is None


def test_grainger_part_label_is_ignored():
    result = analyze_text("Grainger\nPart# 52CD02", today=TODAY)
    assert result.vendor.value == "Grainger"
    assert result.part_number.value is None


def test_invoice_and_receipt_words_classify_as_invoice():
    assert analyze_text("invoice\nreceipt", today=TODAY).doc_type.value == "Invoices"


def test_raw_text_keeps_original_garble():
    text = "P0 Numb3r: 00044162"
    assert analyze_text(text, today=TODAY).raw_text == text


def test_result_is_frozen():
    result = analyze_text(GRAINGER_SLIP, today=TODAY)
    with pytest.raises(ValidationError):
        result.vendor = FieldValue.high("Amazon")


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
