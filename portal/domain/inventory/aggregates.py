from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from portal.domain.money import cents_to_decimal


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: str
    name: str
    price_cents: int
    stock: int
    image: str = ""

    @property
    def price(self) -> Decimal:
        return cents_to_decimal(self.price_cents)
