from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Sequence

from portal.domain.errors import EmptyCart, InsufficientStock, PriceMismatch, ProductNotFound, TotalMismatch
from portal.domain.inventory.aggregates import ProductSnapshot
from portal.domain.money import cents_to_decimal, within_tolerance
from portal.domain.orders.aggregates import OrderLine
from portal.domain.orders.commands import CartLineInput

DEFAULT_TOLERANCE = Decimal("0.01")

SnapshotReader = Callable[[Iterable[str]], Mapping[str, ProductSnapshot]]


@dataclass(frozen=True)
class ValidatedCart:
    lines: tuple[OrderLine, ...]
    total_cents: int

    @property
    def total(self) -> Decimal:
        return cents_to_decimal(self.total_cents)


def validate_cart(
    items: Sequence[CartLineInput],
    claimed_total: Decimal,
    read_snapshot: SnapshotReader,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> ValidatedCart:
    """Check a client cart against live prices and stock without mutating anything.

    Passing validation says nothing about stock still being there at commit
    time; ``InventoryLedger.reserve`` re-checks the floor.
    """
    if not items:
        raise EmptyCart("cart is empty")

    inventory = read_snapshot(item.product_id for item in items)
    demanded: dict[str, int] = defaultdict(int)
    lines: list[OrderLine] = []
    total_cents = 0

    for item in items:
        product = inventory.get(item.product_id)
        if product is None:
            raise ProductNotFound(
                f'product "{item.name or item.product_id}" not found',
                product_id=item.product_id,
            )

        if not within_tolerance(item.price, product.price, tolerance):
            raise PriceMismatch(
                f'price of "{product.name}" has changed; refresh the cart',
                product_id=product.product_id,
                claimed=str(item.price),
                live=str(product.price),
            )

        demanded[product.product_id] += item.quantity
        if product.stock < demanded[product.product_id]:
            raise InsufficientStock(
                f'insufficient stock for "{product.name}", available: {product.stock}',
                product_id=product.product_id,
                requested=demanded[product.product_id],
                available=product.stock,
            )

        lines.append(
            OrderLine(
                product_id=product.product_id,
                name=product.name,
                price_cents=product.price_cents,
                quantity=item.quantity,
                image=item.image or product.image,
            )
        )
        total_cents += product.price_cents * item.quantity

    authoritative = cents_to_decimal(total_cents)
    if not within_tolerance(claimed_total, authoritative, tolerance):
        raise TotalMismatch(
            "cart total does not match the products",
            claimed=str(claimed_total),
            computed=str(authoritative),
        )

    return ValidatedCart(lines=tuple(lines), total_cents=total_cents)
