from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.domain.orders.aggregates import PaymentMethod

MAX_LINE_QUANTITY = 100
NOTES_MAX_LENGTH = 500


class CartLineInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(min_length=1)
    name: str = ""
    price: Decimal = Field(ge=0, description="claimed unit price")
    quantity: int = Field(ge=1, le=MAX_LINE_QUANTITY)
    image: str = ""


class ShippingAddressInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


class CreateOrderInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    items: list[CartLineInput] = Field(default_factory=list)
    total: Decimal = Field(ge=0, description="claimed cart total")
    shipping_address: ShippingAddressInput
    notes: str = Field(default="", max_length=NOTES_MAX_LENGTH)
    payment_method: PaymentMethod | None = None

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, value):
        return "" if value is None else value


class TransitionInput(BaseModel):
    status: str = Field(min_length=1)


class StockUpdateInput(BaseModel):
    stock: int = Field(ge=0)
