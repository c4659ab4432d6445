from __future__ import annotations

from decimal import Decimal

import pytest

from portal.domain.errors import EmptyCart, InsufficientStock, PriceMismatch, ProductNotFound, TotalMismatch
from portal.domain.inventory.aggregates import ProductSnapshot
from portal.domain.orders.commands import CartLineInput
from portal.domain.orders.validation import validate_cart


INVENTORY = {
    "p1": ProductSnapshot(product_id="p1", name="Coffee", price_cents=1250, stock=5, image="coffee.png"),
    "p2": ProductSnapshot(product_id="p2", name="Tea", price_cents=399, stock=1),
}


def _reader(calls: list | None = None):
    def read(ids):
        ids = list(ids)
        if calls is not None:
            calls.append(ids)
        return {pid: INVENTORY[pid] for pid in ids if pid in INVENTORY}

    return read


def _line(product_id: str, price: str, quantity: int, **kw) -> CartLineInput:
    return CartLineInput(product_id=product_id, price=Decimal(price), quantity=quantity, **kw)


def test_empty_cart_fails_before_lookup():
    calls: list = []
    with pytest.raises(EmptyCart):
        validate_cart([], Decimal("0"), _reader(calls))
    assert calls == []


def test_valid_cart_recomputes_total_from_live_prices():
    cart = validate_cart(
        [_line("p1", "12.50", 2), _line("p2", "3.99", 1)],
        Decimal("28.99"),
        _reader(),
    )

    assert cart.total_cents == 2 * 1250 + 399
    assert cart.total == Decimal("28.99")
    assert [line.price_cents for line in cart.lines] == [1250, 399]
    assert cart.lines[0].name == "Coffee"
    assert cart.lines[0].image == "coffee.png"


def test_unknown_product():
    with pytest.raises(ProductNotFound) as excinfo:
        validate_cart([_line("ghost", "1.00", 1)], Decimal("1.00"), _reader())
    assert excinfo.value.context["product_id"] == "ghost"


@pytest.mark.parametrize("claimed", ["12.49", "12.51", "12.50"])
def test_price_within_tolerance_passes(claimed):
    cart = validate_cart([_line("p1", claimed, 1)], Decimal("12.50"), _reader())
    assert cart.total_cents == 1250


@pytest.mark.parametrize("claimed", ["12.48", "12.52", "0"])
def test_price_beyond_tolerance_fails(claimed):
    with pytest.raises(PriceMismatch):
        validate_cart([_line("p1", claimed, 1)], Decimal(claimed), _reader())


def test_insufficient_stock():
    with pytest.raises(InsufficientStock) as excinfo:
        validate_cart([_line("p2", "3.99", 2)], Decimal("7.98"), _reader())
    assert excinfo.value.context["available"] == 1


def test_repeated_lines_check_cumulative_quantity():
    with pytest.raises(InsufficientStock):
        validate_cart(
            [_line("p1", "12.50", 3), _line("p1", "12.50", 3)],
            Decimal("75.00"),
            _reader(),
        )


def test_total_mismatch():
    with pytest.raises(TotalMismatch) as excinfo:
        validate_cart([_line("p1", "12.50", 2)], Decimal("24.98"), _reader())
    assert excinfo.value.context["computed"] == "25.00"


def test_total_within_tolerance_passes():
    cart = validate_cart([_line("p1", "12.50", 2)], Decimal("24.99"), _reader())
    assert cart.total == Decimal("25.00")


def test_client_image_kept_when_given():
    cart = validate_cart([_line("p1", "12.50", 1, image="mine.jpg")], Decimal("12.50"), _reader())
    assert cart.lines[0].image == "mine.jpg"
