"""Field-level checks run before any store write.

Each validator returns every problem it finds instead of stopping at the
first one, so the console can highlight all offending fields at once.
Field names are reported the way the client spells them (camelCase).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from backoffice.api.schemas.order import OrderItemCreate
from backoffice.core.exceptions import FieldError

CENT = Decimal("0.01")
# Numeric(12, 2) columns hold up to ten integral digits
MAX_AMOUNT = Decimal("9999999999.99")
MAX_TAX_RATE = Decimal("100")

PRODUCT_TEXT_FIELDS = {"name": 255, "unit": 32}
CUSTOMER_TEXT_FIELDS = {"customerName": 255, "customerPhone": 32}


def to_decimal(value: Any) -> Decimal | None:
    """The exact value as a Decimal; None for anything not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def to_money(value: Any) -> Decimal | None:
    """Round to cents; None for anything that is not a finite number."""
    amount = to_decimal(value)
    if amount is None:
        return None
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _has_sub_cent_digits(amount: Decimal) -> bool:
    return amount.normalize().as_tuple().exponent < -2


def _check_text(field: str, value: Any, max_length: int) -> list[FieldError]:
    if not isinstance(value, str) or not value.strip():
        return [FieldError(field, "is required")]
    if len(value.strip()) > max_length:
        return [FieldError(field, f"must be at most {max_length} characters")]
    return []


def _check_amount(
    field: str, amount: Decimal | None, upper: Decimal, upper_message: str
) -> list[FieldError]:
    # Bounds apply to the value as given, before any rounding
    if amount is None:
        return [FieldError(field, "must be a number")]
    if amount < 0:
        return [FieldError(field, "must not be negative")]
    if amount > upper:
        return [FieldError(field, upper_message)]
    if _has_sub_cent_digits(amount):
        return [FieldError(field, "must have at most 2 decimal places")]
    return []


def validate_product(values: Mapping[str, Any]) -> list[FieldError]:
    """Check a complete product record (snake_case keys).

    Enforces required text fields, non-negative prices with at most two
    decimals, the ``selling_price > import_price`` ordering and tax rate
    bounds. Amounts are checked exactly as supplied.
    """
    errors: list[FieldError] = []
    errors += _check_text("name", values.get("name"), PRODUCT_TEXT_FIELDS["name"])
    errors += _check_text("unit", values.get("unit"), PRODUCT_TEXT_FIELDS["unit"])

    import_price = to_decimal(values.get("import_price"))
    selling_price = to_decimal(values.get("selling_price"))
    tax_rate = to_decimal(values.get("tax_rate"))

    import_errors = _check_amount(
        "importPrice", import_price, MAX_AMOUNT, "is too large"
    )
    selling_errors = _check_amount(
        "sellingPrice", selling_price, MAX_AMOUNT, "is too large"
    )
    errors += import_errors + selling_errors
    if not import_errors and not selling_errors and selling_price <= import_price:
        errors.append(
            FieldError("sellingPrice", "must be greater than import price")
        )

    tax_errors = _check_amount(
        "taxRate", tax_rate, MAX_TAX_RATE, "must be between 0 and 100"
    )
    if tax_errors and tax_errors[0].message == "must not be negative":
        tax_errors = [FieldError("taxRate", "must be between 0 and 100")]
    errors += tax_errors

    if not isinstance(values.get("is_active", True), bool):
        errors.append(FieldError("isActive", "must be true or false"))

    return errors


def validate_customer(customer_name: Any, customer_phone: Any) -> list[FieldError]:
    errors = _check_text(
        "customerName", customer_name, CUSTOMER_TEXT_FIELDS["customerName"]
    )
    errors += _check_text(
        "customerPhone", customer_phone, CUSTOMER_TEXT_FIELDS["customerPhone"]
    )
    return errors


def validate_order_items(items: Sequence[OrderItemCreate] | None) -> list[FieldError]:
    """Shape checks on a cart; catalog lookups happen later, in the service."""
    if not items:
        return [FieldError("orderItems", "must contain at least one item")]

    errors: list[FieldError] = []
    for index, item in enumerate(items):
        prefix = f"orderItems[{index}]"
        if not item.product_code or not item.product_code.strip():
            errors.append(FieldError(f"{prefix}.productCode", "is required"))
        if item.quantity < 1:
            errors.append(FieldError(f"{prefix}.quantity", "must be at least 1"))
        if item.selling_price is not None and to_money(item.selling_price) is None:
            errors.append(FieldError(f"{prefix}.sellingPrice", "must be a number"))
    return errors
