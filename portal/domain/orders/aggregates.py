from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from portal.domain.money import cents_to_decimal
from portal.persistence.models import OrderModel

OrderStatus = Literal["pending", "completed", "cancelled"]
PaymentMethod = Literal["cash", "card", "transfer"]

PENDING = "pending"
COMPLETED = "completed"
CANCELLED = "cancelled"

ORDER_STATUSES: tuple[str, ...] = (PENDING, COMPLETED, CANCELLED)
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

# target status -> statuses it may be reached from
TRANSITIONS: dict[str, frozenset[str]] = {
    COMPLETED: frozenset({PENDING}),
    CANCELLED: frozenset({PENDING}),
}


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    name: str
    price_cents: int
    quantity: int
    image: str = ""

    @property
    def price(self) -> Decimal:
        return cents_to_decimal(self.price_cents)

    @property
    def subtotal_cents(self) -> int:
        return self.price_cents * self.quantity

    def to_record(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_record(cls, record: dict) -> "OrderLine":
        return cls(
            product_id=str(record["product_id"]),
            name=str(record["name"]),
            price_cents=int(record["price_cents"]),
            quantity=int(record["quantity"]),
            image=str(record.get("image") or ""),
        )


@dataclass(frozen=True)
class ShippingAddress:
    address: str
    city: str
    postal_code: str
    country: str

    def to_record(self) -> dict:
        return {
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
        }


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Order:
    order_id: str
    user_id: str
    status: str
    total_cents: int
    shipping_address: ShippingAddress
    created_at: datetime
    updated_at: datetime
    items: list[OrderLine] = field(default_factory=list)
    payment_method: str = "cash"
    notes: str = ""

    @property
    def total(self) -> Decimal:
        return cents_to_decimal(self.total_cents)

    @property
    def order_number(self) -> str:
        return f"ORD-{self.created_at:%y%m}-{self.order_id[-6:].upper()}"

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def summary(self) -> dict:
        return {
            "id": self.order_id,
            "order_number": self.order_number,
            "item_count": self.item_count,
            "total": self.total,
            "status": self.status,
            "created_at": self.created_at,
        }

    @classmethod
    def from_model(cls, row: OrderModel) -> "Order":
        address = row.shipping_address or {}
        return cls(
            order_id=row.order_id,
            user_id=row.user_id,
            status=row.status,
            total_cents=int(row.total_cents),
            shipping_address=ShippingAddress(
                address=address.get("address", ""),
                city=address.get("city", ""),
                postal_code=address.get("postal_code", ""),
                country=address.get("country", ""),
            ),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            items=[OrderLine.from_record(item) for item in row.line_items or []],
            payment_method=row.payment_method,
            notes=row.notes or "",
        )
