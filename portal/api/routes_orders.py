from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from portal.api.utils import money, order_response, order_summary_to_dict, order_to_dict
from portal.context import PortalContext, get_context
from portal.core.security import Principal, get_principal
from portal.domain.orders.aggregates import OrderStatus
from portal.domain.orders.commands import CreateOrderInput, TransitionInput
from portal.domain.orders.lifecycle import OrderLifecycleManager
from portal.domain.orders.queries import OrderQueryService

router = APIRouter(tags=["orders"])


_STATUS_MESSAGES = {
    "completed": "order marked as completed",
    "cancelled": "order cancelled",
}


@router.post("/orders")
def create_order(
    request: CreateOrderInput,
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    order = OrderLifecycleManager(ctx).create_order(principal, request)
    return order_response(order, "order created")


@router.get("/orders")
def list_orders(
    status: OrderStatus | None = Query(default=None),
    owner_id: str | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    orders = OrderQueryService(ctx).list_orders(principal, status=status, owner_id=owner_id)
    return {"count": len(orders), "orders": [order_to_dict(order) for order in orders]}


@router.get("/orders/mine")
def my_orders(
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    orders = OrderQueryService(ctx).my_orders(principal)
    return {"count": len(orders), "orders": [order_summary_to_dict(order) for order in orders]}


@router.get("/orders/stats")
def order_stats(
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    stats = OrderQueryService(ctx).get_stats(principal)
    return {**stats, "total_revenue": money(stats["total_revenue"])}


@router.get("/orders/{order_id}")
def get_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    order = OrderQueryService(ctx).get_order(order_id, principal)
    return {"order": order_to_dict(order)}


@router.post("/orders/{order_id}/status")
def update_order_status(
    order_id: str,
    request: TransitionInput,
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    order = OrderLifecycleManager(ctx).transition(order_id, request.status, principal)
    return order_response(order, _STATUS_MESSAGES[order.status])


@router.post("/orders/{order_id}/cancel")
def cancel_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    order = OrderLifecycleManager(ctx).cancel_order(order_id, principal)
    return order_response(order, _STATUS_MESSAGES[order.status])
