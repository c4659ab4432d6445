from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(int(cents)) * CENT).quantize(CENT)


def decimal_to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def within_tolerance(left: Decimal, right: Decimal, tolerance: Decimal) -> bool:
    return abs(Decimal(left) - Decimal(right)) <= tolerance
