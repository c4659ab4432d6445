from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from portal.domain.money import cents_to_decimal, decimal_to_cents, within_tolerance
from portal.domain.orders.aggregates import Order, OrderLine, ShippingAddress


def _order(**overrides) -> Order:
    values = dict(
        order_id="6f1c2d3e-0000-4000-8000-00000abc12ef",
        user_id="user-1",
        status="pending",
        total_cents=2350,
        shipping_address=ShippingAddress("Main St 1", "Lima", "15001", "PE"),
        created_at=datetime(2024, 11, 5, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 11, 5, 12, 0, tzinfo=timezone.utc),
        items=[
            OrderLine("p1", "Pen", 150, 3),
            OrderLine("p2", "Book", 1900, 1, image="book.png"),
        ],
    )
    values.update(overrides)
    return Order(**values)


def test_derived_fields():
    order = _order()

    assert order.order_number == "ORD-2411-BC12EF"
    assert order.item_count == 4
    assert order.total == Decimal("23.50")
    assert not order.is_terminal
    assert _order(status="cancelled").is_terminal
    assert order.summary() == {
        "id": order.order_id,
        "order_number": "ORD-2411-BC12EF",
        "item_count": 4,
        "total": Decimal("23.50"),
        "status": "pending",
        "created_at": order.created_at,
    }


def test_line_record_roundtrip_keeps_frozen_copy():
    line = OrderLine("p9", "Lamp", 1999, 2, image="lamp.jpg")
    assert OrderLine.from_record(line.to_record()) == line
    assert line.subtotal_cents == 3998


def test_money_helpers():
    assert cents_to_decimal(5) == Decimal("0.05")
    assert decimal_to_cents(Decimal("19.995")) == 2000
    assert decimal_to_cents(Decimal("0.01")) == 1
    assert within_tolerance(Decimal("10.00"), Decimal("10.01"), Decimal("0.01"))
    assert not within_tolerance(Decimal("10.00"), Decimal("10.011"), Decimal("0.01"))
