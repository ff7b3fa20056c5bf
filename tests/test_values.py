from __future__ import annotations

import pytest

from proposal_tables.values import (
    coerce_float,
    coerce_order_no,
    format_money,
    format_money_with_months,
    format_quantity,
    humanize_key,
    is_blank,
    is_truthy_amount,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1200, "$1200.00"),
        (12.5, "$12.50"),
        ("1,250.5", "$1250.50"),
        ("$7", "$7.00"),
        (0, "$0.00"),
        (-5, "$-5.00"),
        ("-12.5", "$-12.50"),
        ("call for price", "call for price"),
        (None, ""),
    ],
)
def test_format_money(value: object, expected: str) -> None:
    assert format_money(value) == expected


def test_coerce_float_rejects_booleans_and_non_finite() -> None:
    assert coerce_float(True) is None
    assert coerce_float(float("nan")) is None
    assert coerce_float("-$3.25") == pytest.approx(-3.25)
    assert coerce_float("  ") is None
    assert coerce_float([1]) is None


def test_format_quantity_drops_trailing_zero() -> None:
    assert format_quantity(3.0) == "3"
    assert format_quantity(2.5) == "2.5"
    assert format_quantity(" 4 ") == "4"
    assert format_quantity(None) == ""


def test_format_money_with_months() -> None:
    assert format_money_with_months(1200, 12) == "$1200.00 (12 months)"
    assert format_money_with_months(100, 1) == "$100.00 (1 month)"
    assert format_money_with_months(100, None) == "$100.00"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, False), ("0", False), ("", False), (None, False), (False, False), (5, True), ("yes", True)],
)
def test_is_truthy_amount(value: object, expected: bool) -> None:
    assert is_truthy_amount(value) is expected


def test_blank_and_order_helpers() -> None:
    assert is_blank("   ")
    assert not is_blank(0)
    assert coerce_order_no("") is None
    assert coerce_order_no("2") == pytest.approx(2.0)


@pytest.mark.parametrize(
    ("key", "expected"),
    [("foamingDrain", "Foaming Drain"), ("grease_trap", "Grease Trap"), ("fixtureCount", "Fixture Count")],
)
def test_humanize_key(key: str, expected: str) -> None:
    assert humanize_key(key) == expected
