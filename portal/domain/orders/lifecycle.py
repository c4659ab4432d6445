from __future__ import annotations

import logging
import uuid
from typing import Iterable

from sqlalchemy import update

from portal.context import PortalContext
from portal.core.security import Principal
from portal.domain.errors import Forbidden, InvalidTransition, NotFound, OrderError, ProductNotFound
from portal.domain.orders.aggregates import CANCELLED, COMPLETED, PENDING, TRANSITIONS, Order, OrderLine
from portal.domain.orders.commands import CreateOrderInput
from portal.domain.orders.validation import validate_cart
from portal.persistence.models import OrderModel

logger = logging.getLogger(__name__)


class OrderLifecycleManager:
    """Creates orders from validated carts and drives pending -> completed / cancelled.

    Stock is committed when the order is created; completion touches no
    inventory and cancellation restores every line.
    """

    def __init__(self, ctx: PortalContext):
        self.ctx = ctx
        self.session = ctx.session
        self.ledger = ctx.ledger

    def _reserve_all(self, lines: Iterable[OrderLine]) -> None:
        applied: list[OrderLine] = []
        try:
            for line in lines:
                self.ledger.reserve(line.product_id, line.quantity)
                applied.append(line)
        except OrderError:
            for line in reversed(applied):
                self.ledger.restore(line.product_id, line.quantity)
            if applied:
                logger.warning(
                    "reservation failed mid-cart, rolled back %d line(s): %s",
                    len(applied),
                    ", ".join(f"{line.product_id}x{line.quantity}" for line in applied),
                )
            raise

    def create_order(self, principal: Principal, request: CreateOrderInput) -> Order:
        cart = validate_cart(
            request.items,
            request.total,
            self.ledger.snapshot,
            tolerance=self.ctx.settings.price_tolerance,
        )
        self._reserve_all(cart.lines)

        now = self.ctx.clock()
        row = OrderModel(
            order_id=str(uuid.uuid4()),
            user_id=principal.id,
            line_items=[line.to_record() for line in cart.lines],
            total_cents=cart.total_cents,
            status=PENDING,
            shipping_address=request.shipping_address.model_dump(),
            payment_method=request.payment_method or self.ctx.settings.default_payment_method,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        self.session.flush()

        order = Order.from_model(row)
        self.ctx.feed.record("order.created", order)
        logger.info(
            "order created: order_id=%s user_id=%s total=%s items=%d",
            order.order_id,
            order.user_id,
            order.total,
            order.item_count,
        )
        return order

    def transition(self, order_id: str, requested_status: str, principal: Principal) -> Order:
        row = self.session.get(OrderModel, order_id)
        if row is None:
            raise NotFound(f"order {order_id} not found", order_id=order_id)

        is_owner_cancel = requested_status == CANCELLED and row.user_id == principal.id
        if not (principal.is_admin or is_owner_cancel):
            raise Forbidden("not allowed to change this order", order_id=order_id)

        allowed_from = TRANSITIONS.get(requested_status)
        if allowed_from is None:
            raise InvalidTransition(
                f"unsupported target status: {requested_status}",
                order_id=order_id,
                requested=requested_status,
            )
        if row.status not in allowed_from:
            raise InvalidTransition(
                f"only pending orders can change status, order is {row.status}",
                order_id=order_id,
                current=row.status,
                requested=requested_status,
            )

        # Only one concurrent transition may claim a pending row.
        now = self.ctx.clock()
        claimed = self.session.execute(
            update(OrderModel)
            .where(OrderModel.order_id == order_id)
            .where(OrderModel.status == row.status)
            .values(status=requested_status, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            raise InvalidTransition(
                "order status changed concurrently",
                order_id=order_id,
                requested=requested_status,
            )

        if requested_status == CANCELLED:
            for line in row.line_items or []:
                restored = OrderLine.from_record(line)
                try:
                    self.ledger.restore(restored.product_id, restored.quantity)
                except ProductNotFound:
                    # The order outlives its products; there is no counter left to credit.
                    logger.warning(
                        "cancel %s: product %s no longer exists, %d unit(s) not restored",
                        order_id,
                        restored.product_id,
                        restored.quantity,
                    )

        self.session.refresh(row)
        order = Order.from_model(row)
        self.ctx.feed.record(f"order.{requested_status}", order)
        logger.info(
            "order transitioned: order_id=%s status=%s by=%s/%s",
            order_id,
            requested_status,
            principal.role,
            principal.id,
        )
        return order

    def cancel_order(self, order_id: str, principal: Principal) -> Order:
        return self.transition(order_id, CANCELLED, principal)

    def complete_order(self, order_id: str, principal: Principal) -> Order:
        return self.transition(order_id, COMPLETED, principal)
