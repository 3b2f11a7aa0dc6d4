"""Cashback points arithmetic.

One point is worth one currency unit when redeemed, and one point is earned
for every 50 currency units of the final (discounted) order total.
"""
from decimal import Decimal, ROUND_HALF_UP

POINT_VALUE = Decimal('1.00')
SPEND_PER_POINT = Decimal('50')
CENTS = Decimal('0.01')


def money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def points_to_currency(points: int) -> Decimal:
    return money(points * POINT_VALUE)


def max_discount(points: int, purchase_total: Decimal) -> Decimal:
    """Discount a redemption of ``points`` can give; never above the purchase."""
    return min(points_to_currency(points), money(purchase_total))


def points_earned(total: Decimal) -> int:
    if total <= 0:
        return 0
    return int(money(total) // SPEND_PER_POINT)
