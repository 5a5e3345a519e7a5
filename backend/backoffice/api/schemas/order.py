"""Pydantic models describing Order payloads."""

from decimal import Decimal

from pydantic import Field

from backoffice.api.schemas.common import CamelModel, Money, Timestamp


class OrderItemCreate(CamelModel):
    product_code: str
    quantity: int
    selling_price: Decimal | None = Field(
        None, description="Informational only; the catalog price is charged"
    )


class OrderCreate(CamelModel):
    customer_name: str
    customer_phone: str
    order_items: list[OrderItemCreate]


class OrderUpdate(OrderCreate):
    """Whole-record replacement of customer info and items."""

    order_code: str | None = None


class OrderItemRead(CamelModel):
    product_code: str
    quantity: int
    selling_price: Money
    line_total: Money

    model_config = {"from_attributes": True}


class OrderRead(CamelModel):
    order_code: str
    customer_name: str
    customer_phone: str
    order_items: list[OrderItemRead]
    total_amount: Money
    created_at: Timestamp = None
    updated_at: Timestamp = None

    model_config = {"from_attributes": True}
