"""Quote money math. All amounts are Decimal, rounded half-up to cents."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol


CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class PricedLine(Protocol):
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: Decimal
    discount: Decimal
    total: Decimal


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Decimal | int | float | str) -> Decimal:
    return to_money(Decimal(quantity) * Decimal(str(unit_price)))


def normalize_discount(
    *,
    subtotal: Decimal,
    discount: Decimal | int | float | str | None,
    discount_type: str,
) -> Decimal:
    """Turn an entered discount into an amount.

    ``percentage`` discounts are applied to the subtotal; ``amount``
    discounts are taken as-is. Raises ValueError for negative values,
    percentages above 100 and amounts above the subtotal.
    """
    raw = Decimal(str(discount or 0))
    if raw < 0:
        raise ValueError("Discount cannot be negative")

    if discount_type == "percentage":
        if raw > HUNDRED:
            raise ValueError("Percentage discount cannot exceed 100")
        amount = to_money(subtotal * raw / HUNDRED)
    elif discount_type == "amount":
        amount = to_money(raw)
    else:
        raise ValueError(f"Unknown discount type: {discount_type!r}")

    if amount > subtotal:
        raise ValueError("Discount cannot exceed the quote subtotal")
    return amount


def compute_totals(
    line_items: Iterable[PricedLine],
    *,
    discount: Decimal | int | float | str | None = None,
    discount_type: str = "amount",
) -> QuoteTotals:
    subtotal = to_money(sum((line_total(item.quantity, item.unit_price) for item in line_items), Decimal("0")))
    amount = normalize_discount(subtotal=subtotal, discount=discount, discount_type=discount_type)
    return QuoteTotals(subtotal=subtotal, discount=amount, total=subtotal - amount)
