"""
test_normalize.py - Normalization helper tests

Covers:
- preprocess_ocr garble rewrites
- fold_text
- combine_pages
- today_dotted

Usage: python test_normalize.py  (or: pytest test_normalize.py)
"""

from __future__ import annotations

import os
import sys
from datetime import date

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest

from normalize import PAGE_BREAK, combine_pages, fold_text, preprocess_ocr, today_dotted


def test_preprocess_repairs_po_number_garble():
    assert preprocess_ocr("P0 Numb3r: 00044162") == "PO Number: 00044162"
    assert preprocess_ocr("PO Nunber 4500123") == "PO Number 4500123"


def test_preprocess_repairs_po_hash():
    assert preprocess_ocr("po #4500123") == "PO#4500123"
    assert preprocess_ocr("P0# 4500123") == "PO# 4500123"


def test_preprocess_romero_reads_as_po_number():
    assert preprocess_ocr("Romero 00044162") == "PO Number 00044162"


def test_preprocess_leaves_input_untouched():
    raw = "P0 Numb3r: 1234"
    cleaned = preprocess_ocr(raw)
    assert raw == "P0 Numb3r: 1234"
    assert cleaned != raw


def test_preprocess_empty():
    assert preprocess_ocr(None) == ""
    assert preprocess_ocr("") == ""


def test_fold_text():
    assert fold_text("W.W._GRAINGER--Inc\n  Packing   Slip") == "w.w. grainger inc packing slip"
    assert fold_text("PO_Number") == "po number"
    assert fold_text(None) == ""


def test_combine_pages_keeps_order():
    combined = combine_pages(["first page", "second page"])
    assert combined == "first page" + PAGE_BREAK + "second page"
    assert combined.index("first") < combined.index("second")


def test_combine_single_page_has_no_marker():
    assert combine_pages(["only"]) == "only"


def test_today_dotted():
    assert today_dotted(date(2026, 2, 6)) == "2026.02.06"
    assert len(today_dotted()) == 10


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
