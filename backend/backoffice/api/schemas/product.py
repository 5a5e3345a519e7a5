"""Pydantic models describing Product payloads."""

from decimal import Decimal
from typing import Literal

from pydantic import Field

from backoffice.api.schemas.common import CamelModel, Money, Timestamp


class ProductCreate(CamelModel):
    """Schema for products created from the admin console."""

    product_code: str | None = Field(
        None, description="Only honoured when client-assigned codes are enabled"
    )
    name: str
    unit: str
    import_price: Decimal
    selling_price: Decimal
    tax_rate: Decimal = Field(..., description="Percentage, 0 to 100")
    is_active: bool = True


class ProductUpdate(CamelModel):
    """Full or partial edit; omitted fields keep their stored value."""

    product_code: str | None = None
    name: str | None = None
    unit: str | None = None
    import_price: Decimal | None = None
    selling_price: Decimal | None = None
    tax_rate: Decimal | None = None
    is_active: bool | None = None


class ProductStatusUpdate(CamelModel):
    is_active: bool


class ProductRead(CamelModel):
    product_code: str
    name: str
    unit: str
    import_price: Money
    selling_price: Money
    tax_rate: Money
    is_active: bool
    created_at: Timestamp = None
    updated_at: Timestamp = None

    model_config = {"from_attributes": True}


class ProductListResponse(CamelModel):
    items: list[ProductRead]
    total: int
    page: int
    page_size: int
    total_pages: int


ProductStatus = Literal["active", "inactive", "all"]
