from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from portal.api.routes_activity import router as activity_router
from portal.api.routes_catalog import router as catalog_router
from portal.api.routes_orders import router as orders_router
from portal.core.config import get_settings
from portal.core.logging import configure_logging
from portal.domain.errors import (
    EmptyCart,
    Forbidden,
    InsufficientStock,
    InvalidTransition,
    NotFound,
    OrderError,
    PriceMismatch,
    ProductNotFound,
    TotalMismatch,
)
from portal.persistence.pg import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

ERROR_STATUS: dict[type[OrderError], int] = {
    EmptyCart: 422,
    PriceMismatch: 422,
    TotalMismatch: 422,
    ProductNotFound: 404,
    NotFound: 404,
    InsufficientStock: 409,
    InvalidTransition: 409,
    Forbidden: 403,
}

app = FastAPI(title=settings.app_name)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("order portal ready: env=%s", settings.env)


@app.exception_handler(OrderError)
async def order_error_handler(_: Request, exc: OrderError):
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), 400),
        content={"success": False, **exc.to_dict()},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(_: Request, exc: SQLAlchemyError):
    logger.error("storage failure: %s", exc)
    return JSONResponse(
        status_code=503,
        content={
            "success": False,
            "error": "storage_unavailable",
            "detail": "order storage is unavailable, retry later",
        },
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(orders_router)
app.include_router(catalog_router)
app.include_router(activity_router)
