from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from portal.api.utils import product_to_dict
from portal.context import PortalContext, get_context
from portal.core.security import Principal, get_principal
from portal.domain.orders.commands import StockUpdateInput

router = APIRouter(tags=["catalog"])


@router.get("/products/{product_id}")
def get_product(product_id: str, ctx: PortalContext = Depends(get_context)):
    return {"product": product_to_dict(ctx.ledger.get(product_id))}


@router.put("/products/{product_id}/stock")
def update_product_stock(
    product_id: str,
    request: StockUpdateInput,
    principal: Principal = Depends(get_principal),
    ctx: PortalContext = Depends(get_context),
):
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="stock updates require the admin role")
    ctx.ledger.set_stock(product_id, request.stock)
    product = ctx.ledger.get(product_id)
    return {
        "success": True,
        "message": f"stock of {product.name} set to {product.stock}",
        "product": product_to_dict(product),
    }
