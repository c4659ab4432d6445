from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Select, desc, func, select

from portal.context import PortalContext
from portal.core.security import Principal
from portal.domain.errors import Forbidden, NotFound
from portal.domain.money import cents_to_decimal
from portal.domain.orders.aggregates import CANCELLED, COMPLETED, ORDER_STATUSES, PENDING, Order
from portal.persistence.models import OrderModel


class OrderQueryService:
    def __init__(self, ctx: PortalContext):
        self.session = ctx.session

    def get_order(self, order_id: str, principal: Principal) -> Order:
        row = self.session.get(OrderModel, order_id)
        if row is None:
            raise NotFound(f"order {order_id} not found", order_id=order_id)
        if not principal.is_admin and row.user_id != principal.id:
            raise Forbidden("not allowed to view this order", order_id=order_id)
        return Order.from_model(row)

    def list_orders(
        self,
        principal: Principal,
        status: str | None = None,
        owner_id: str | None = None,
    ) -> list[Order]:
        if not principal.is_admin:
            if owner_id is not None and owner_id != principal.id:
                raise Forbidden("not allowed to list orders of another user")
            owner_id = principal.id

        stmt: Select[tuple[OrderModel]] = select(OrderModel).order_by(
            desc(OrderModel.created_at), desc(OrderModel.order_id)
        )
        if owner_id is not None:
            stmt = stmt.where(OrderModel.user_id == owner_id)
        if status is not None:
            stmt = stmt.where(OrderModel.status == status)
        return [Order.from_model(row) for row in self.session.scalars(stmt).all()]

    def my_orders(self, principal: Principal) -> list[Order]:
        return self.list_orders(principal, owner_id=principal.id)

    def get_stats(self, principal: Principal) -> dict:
        if not principal.is_admin:
            raise Forbidden("order stats require the admin role")

        counts = {status: 0 for status in ORDER_STATUSES}
        revenue_cents = 0
        rows = self.session.execute(
            select(OrderModel.status, func.count(), func.coalesce(func.sum(OrderModel.total_cents), 0))
            .group_by(OrderModel.status)
        ).all()
        for status, count, total_cents in rows:
            counts[status] = int(count)
            if status == COMPLETED:
                revenue_cents = int(total_cents)

        total_revenue: Decimal = cents_to_decimal(revenue_cents)
        return {
            "total": sum(counts.values()),
            "pending": counts[PENDING],
            "completed": counts[COMPLETED],
            "cancelled": counts[CANCELLED],
            "total_revenue": total_revenue,
        }
