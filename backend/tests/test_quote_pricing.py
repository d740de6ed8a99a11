from decimal import Decimal
from types import SimpleNamespace

import pytest

from itad_portal.services.quote_pricing import compute_totals, line_total, normalize_discount, to_money


def _item(quantity: int, unit_price: str):
    return SimpleNamespace(quantity=quantity, unit_price=Decimal(unit_price))


def test_totals_sum_line_items() -> None:
    totals = compute_totals([_item(2, "100.00"), _item(3, "12.50")])

    assert totals.subtotal == Decimal("237.50")
    assert totals.discount == Decimal("0.00")
    assert totals.total == Decimal("237.50")


def test_amount_discount_is_subtracted() -> None:
    totals = compute_totals([_item(2, "100.00")], discount="25", discount_type="amount")

    assert totals.discount == Decimal("25.00")
    assert totals.total == Decimal("175.00")


def test_percentage_discount_is_normalized_to_an_amount() -> None:
    totals = compute_totals([_item(3, "33.33")], discount="10", discount_type="percentage")

    assert totals.subtotal == Decimal("99.99")
    assert totals.discount == Decimal("10.00")
    assert totals.total == Decimal("89.99")


def test_rounding_is_half_up_to_cents() -> None:
    assert to_money("0.005") == Decimal("0.01")
    assert line_total(3, "0.335") == Decimal("1.01")


def test_empty_quote_totals_are_zero() -> None:
    totals = compute_totals([])
    assert totals.total == Decimal("0.00")


@pytest.mark.parametrize(
    ("discount", "discount_type", "message"),
    [
        ("-1", "amount", "cannot be negative"),
        ("101", "percentage", "cannot exceed 100"),
        ("250", "amount", "cannot exceed the quote subtotal"),
        ("5", "coupon", "Unknown discount type"),
    ],
)
def test_invalid_discounts_are_rejected(discount: str, discount_type: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        normalize_discount(subtotal=Decimal("200.00"), discount=discount, discount_type=discount_type)


def test_full_discount_gives_zero_total() -> None:
    totals = compute_totals([_item(1, "80.00")], discount="100", discount_type="percentage")
    assert totals.total == Decimal("0.00")
