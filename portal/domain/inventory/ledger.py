from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from portal.domain.errors import InsufficientStock, ProductNotFound
from portal.domain.inventory.aggregates import ProductSnapshot
from portal.persistence.models import ProductModel

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Per-product stock counters.

    Every mutation is a single conditional UPDATE, so the floor check and the
    decrement happen atomically inside the database. Two concurrent
    reservations for the last unit serialize on the row and only one of them
    matches the ``stock >= qty`` predicate.
    """

    def __init__(self, session: Session):
        self.session = session

    def _current_stock(self, product_id: str) -> int | None:
        return self.session.scalar(select(ProductModel.stock).where(ProductModel.product_id == product_id))

    def _apply(self, product_id: str, delta: int, floor: int | None) -> int:
        stmt = (
            update(ProductModel)
            .where(ProductModel.product_id == product_id)
            .values(stock=ProductModel.stock + delta)
            .execution_options(synchronize_session=False)
        )
        if floor is not None:
            stmt = stmt.where(ProductModel.stock >= floor)
        result = self.session.execute(stmt)
        if result.rowcount == 1:
            return int(self._current_stock(product_id))

        available = self._current_stock(product_id)
        if available is None:
            raise ProductNotFound(f"product {product_id} not found", product_id=product_id)
        raise InsufficientStock(
            f"insufficient stock for product {product_id}: requested {-delta}, available {available}",
            product_id=product_id,
            requested=-delta,
            available=int(available),
        )

    def reserve(self, product_id: str, qty: int) -> int:
        if qty <= 0:
            raise ValueError(f"reservation qty must be positive, got {qty}")
        return self._apply(product_id, -qty, floor=qty)

    def restore(self, product_id: str, qty: int) -> int:
        if qty <= 0:
            raise ValueError(f"restore qty must be positive, got {qty}")
        return self._apply(product_id, qty, floor=None)

    def set_stock(self, product_id: str, stock: int) -> int:
        if stock < 0:
            raise ValueError("stock cannot be negative")
        result = self.session.execute(
            update(ProductModel)
            .where(ProductModel.product_id == product_id)
            .values(stock=stock)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ProductNotFound(f"product {product_id} not found", product_id=product_id)
        logger.info("stock set: product_id=%s stock=%s", product_id, stock)
        return stock

    def snapshot(self, product_ids: Iterable[str]) -> dict[str, ProductSnapshot]:
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        rows = self.session.execute(
            select(
                ProductModel.product_id,
                ProductModel.name,
                ProductModel.price_cents,
                ProductModel.stock,
                ProductModel.image,
            ).where(ProductModel.product_id.in_(ids))
        ).all()
        return {
            row.product_id: ProductSnapshot(
                product_id=row.product_id,
                name=row.name,
                price_cents=int(row.price_cents),
                stock=int(row.stock),
                image=row.image or "",
            )
            for row in rows
        }

    def get(self, product_id: str) -> ProductSnapshot:
        found = self.snapshot([product_id]).get(product_id)
        if found is None:
            raise ProductNotFound(f"product {product_id} not found", product_id=product_id)
        return found
