from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from portal.domain.inventory.aggregates import ProductSnapshot
from portal.domain.orders.aggregates import Order, as_utc
from portal.persistence.models import OrderActivityModel


def iso_z(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def money(value: Decimal) -> float:
    return float(value)


def order_to_dict(order: Order) -> dict:
    return {
        "id": order.order_id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "items": [
            {
                "product_id": item.product_id,
                "name": item.name,
                "price": money(item.price),
                "quantity": item.quantity,
                "image": item.image,
            }
            for item in order.items
        ],
        "item_count": order.item_count,
        "total": money(order.total),
        "status": order.status,
        "shipping_address": order.shipping_address.to_record(),
        "payment_method": order.payment_method,
        "notes": order.notes,
        "created_at": iso_z(order.created_at),
        "updated_at": iso_z(order.updated_at),
    }


def order_response(order: Order, message: str) -> dict:
    return {"success": True, "message": message, "order": order_to_dict(order)}


def product_to_dict(product: ProductSnapshot) -> dict:
    return {
        "id": product.product_id,
        "name": product.name,
        "price": money(product.price),
        "stock": product.stock,
        "image": product.image,
    }


def activity_to_dict(row: OrderActivityModel) -> dict:
    return {
        "seq_id": row.seq_id,
        "kind": row.kind,
        "order_id": row.order_id,
        "user_id": row.user_id,
        "payload": row.payload,
        "occurred_at": iso_z(as_utc(row.occurred_at)),
    }


def order_summary_to_dict(order: Order) -> dict:
    summary = order.summary()
    return {
        **summary,
        "total": money(summary["total"]),
        "created_at": iso_z(summary["created_at"]),
    }
