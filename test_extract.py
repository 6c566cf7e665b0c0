"""
test_extract.py - Date, PO number and part number detection tests

Usage: python test_extract.py  (or: pytest test_extract.py)
"""

from __future__ import annotations

import os
import sys
from datetime import date

# Ensure we can import from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest

from extract import build_exclusion_set, detect_date, detect_part_number, detect_po, is_excluded
from models import Confidence, PO_VALUE_RE

TODAY = date(2026, 3, 4)


# -- Dates --


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Date: 2026-01-19", "2026.01.19"),
        ("Printed 2026/1/9 10:32", "2026.01.09"),
        ("Ship Date: 01/19/2026", "2026.01.19"),
        ("1-9-26", "2026.01.09"),
    ],
)
def test_detect_date(text, expected):
    result = detect_date(text, today=TODAY)
    assert result.value == expected
    assert result.confidence == Confidence.HIGH


def test_iso_date_wins_over_us_date():
    assert detect_date("Due 01/05/2026, issued 2026-02-07", today=TODAY).value == "2026.02.07"


def test_us_date_outside_2000s_falls_back_to_today():
    result = detect_date("Established 12/25/1999", today=TODAY)
    assert result.value == "2026.03.04"
    assert result.confidence == Confidence.LOW


def test_three_digit_year_is_rejected():
    result = detect_date("1/19/202", today=TODAY)
    assert result.value == "2026.03.04"
    assert result.confidence == Confidence.LOW


def test_no_date_falls_back_to_today():
    result = detect_date("no dates here", today=TODAY)
    assert result.value == "2026.03.04"
    assert result.confidence == Confidence.LOW


@pytest.mark.parametrize("text", ["Invoice date 2026/０１/１９", "Ship Date: ０１/１９/２０２６"])
def test_full_width_digits_are_not_a_date(text):
    result = detect_date(text, today=TODAY)
    assert result.value == "2026.03.04"
    assert result.confidence == Confidence.LOW


# -- PO numbers --


def test_po_direct():
    result = detect_po("Customer PO 00044162")
    assert result.value == "PO00044162"
    assert result.confidence == Confidence.HIGH


@pytest.mark.parametrize("text", ["PO#00044162", "PO-00044162", "PO#: 00044162"])
def test_po_direct_separators(text):
    assert detect_po(text).value == "PO00044162"


def test_po_zero_garble():
    result = detect_po("P0 00044162")
    assert result.value == "PO00044162"
    assert result.confidence == Confidence.HIGH


def test_po_labeled():
    result = detect_po("PO Number: Ref 12345678")
    assert result.value == "PO12345678"
    assert result.confidence == Confidence.HIGH


def test_po_line_scan_is_low_confidence():
    result = detect_po("Customer P.O. 12345678")
    assert result.value == "PO12345678"
    assert result.confidence == Confidence.LOW


def test_zip_code_is_never_a_po():
    result = detect_po("Springfield IL 62704")
    assert result.value is None
    assert result.confidence == Confidence.LOW


def test_zip_plus_four_excludes_both_parts():
    text = "Chicago, IL 60601-1234\nPO 1234"
    assert {"60601", "1234"} <= build_exclusion_set(text.upper())
    assert detect_po(text).value is None


def test_phone_number_excluded():
    assert detect_po("Phone: (312) 555-0199\nPO 3125550199").value is None


def test_account_delivery_and_order_numbers_excluded():
    assert detect_po("Account #: 123456\nPO 123456").value is None
    assert detect_po("Delivery: 81234567\nPO 81234567").value is None
    assert detect_po("Order Number: 77889900\nPO 77889900").value is None


def test_excluded_candidate_does_not_stop_the_scan():
    text = "Ship to: Chicago IL 60601\nRef PO 60601\nPO 4500777"
    result = detect_po(text)
    assert result.value == "PO4500777"
    assert result.confidence == Confidence.HIGH


def test_nine_digit_po_is_not_mistaken_for_a_zip():
    assert detect_po("PO 000441621").value == "PO000441621"


def test_five_digit_po_is_not_mistaken_for_a_zip():
    assert detect_po("PO 12345").value == "PO12345"


def test_short_po_inside_phone_number_is_lost():
    # Known false negative of the substring exclusion: 44162 sits inside
    # 8004441620, so the real PO is dropped.
    assert detect_po("Questions? 800-444-1620\nPO 44162").value is None


def test_is_excluded_both_directions():
    assert is_excluded("60601", {"60601"})
    assert is_excluded("0601", {"60601"})
    assert is_excluded("606011234", {"60601"})
    assert not is_excluded("4500777", {"60601"})


def test_no_po():
    result = detect_po("nothing to see")
    assert result.value is None
    assert result.confidence == Confidence.LOW
    assert detect_po(None).value is None


def test_po_values_always_match_format():
    samples = [
        "PO 00044162",
        "P0 12345",
        "Customer P.O. 1234567890",
        "PO Number: 00012345",
        "random 1234 text",
    ]
    for text in samples:
        value = detect_po(text).value
        assert value is None or PO_VALUE_RE.match(value)


# -- Part numbers --


def test_part_number_label():
    result = detect_part_number("Part# 52CD02", po_digits=None, vendor="McMaster_Carr")
    assert result.value == "52CD02"
    assert result.confidence == Confidence.HIGH


def test_part_number_suppressed_for_consumables_vendor():
    result = detect_part_number("Part# 52CD02", po_digits=None, vendor="Grainger")
    assert result.value is None
    assert result.confidence == Confidence.LOW


def test_part_number_pn_label():
    assert detect_part_number("P/N: 7781K22", None, "Uline").value == "7781K22"


def test_part_number_pattern_order():
    text = "Item # XYZ123\nP/N 99887"
    assert detect_part_number(text, None, "").value == "99887"


def test_part_number_rejects_year():
    assert detect_part_number("Item #: 2026", None, "").value is None


def test_part_number_rejects_po_digits():
    assert detect_part_number("Item # 4500777", "4500777", "").value is None


def test_part_number_requires_label():
    result = detect_part_number("Department 12345\n91251A540", None, "")
    assert result.value is None
    assert result.confidence == Confidence.LOW


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-q"]))
