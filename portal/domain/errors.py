from __future__ import annotations

from typing import Any


class OrderError(Exception):
    """Business-rule failure reported to the caller; never retried by the core."""

    code = "order_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, "context": self.context}


class EmptyCart(OrderError):
    code = "empty_cart"


class ProductNotFound(OrderError):
    code = "product_not_found"


class PriceMismatch(OrderError):
    code = "price_mismatch"


class TotalMismatch(OrderError):
    code = "total_mismatch"


class InsufficientStock(OrderError):
    code = "insufficient_stock"


class NotFound(OrderError):
    code = "not_found"


class Forbidden(OrderError):
    code = "forbidden"


class InvalidTransition(OrderError):
    code = "invalid_transition"
