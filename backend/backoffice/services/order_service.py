"""Order entry: cart validation against the catalog, pricing and persistence.

This is the only place that coordinates both stores. Every referenced
product is resolved (and share-locked) inside the same transaction that
writes the order, so a product cannot vanish or change price between
validation and commit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from backoffice.api.schemas.order import OrderCreate, OrderItemCreate, OrderUpdate
from backoffice.core.config import Settings, get_settings
from backoffice.core.exceptions import (
    FieldError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from backoffice.db.models.order import Order, OrderItem
from backoffice.db.session import transaction
from backoffice.services.catalog_service import CatalogService
from backoffice.services.validation import (
    to_money,
    validate_customer,
    validate_order_items,
)
from backoffice.stores.code_sequence import format_code, next_value
from backoffice.stores.order_store import OrderStore

logger = logging.getLogger(__name__)

ORDER_SEQUENCE = "order"


class OrderService:

    def __init__(
        self,
        store: OrderStore,
        catalog: CatalogService,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._settings = settings or get_settings()

    def create_order(self, payload: OrderCreate) -> Order:
        """Create an order from a cart, charging current catalog prices.

        Steps:
        1. Check customer fields and the cart shape.
        2. Resolve every product code (unknown or inactive -> ValidationError).
        3. Snapshot each product's selling price onto its line.
        4. Persist order and items in one transaction.
        """
        self._check_request(payload)

        with transaction(self._store.session, "create order"):
            items = self._price_items(payload.order_items)
            order = Order(
                order_code=self._allocate_code(),
                customer_name=payload.customer_name.strip(),
                customer_phone=payload.customer_phone.strip(),
                order_items=items,
            )
            self._store.add(order)

        logger.info(
            f"Created order {order.order_code} with {len(items)} item(s) "
            f"for {order.customer_name}"
        )
        return order

    def update_order(self, order_code: str, payload: OrderUpdate) -> Order:
        """Replace customer info and the whole item list of an order.

        The new items go through the same pipeline as a new cart, so they
        are re-priced from the catalog.
        """
        if payload.order_code is not None and payload.order_code != order_code:
            raise ValidationError(FieldError("orderCode", "cannot be changed"))
        self._check_request(payload)

        with transaction(self._store.session, f"update order {order_code}"):
            order = self._store.get(order_code, for_update=True)
            if order is None:
                raise NotFoundError("Order", order_code)
            items = self._price_items(payload.order_items)
            order.customer_name = payload.customer_name.strip()
            order.customer_phone = payload.customer_phone.strip()
            order.order_items = items
            order.updated_at = datetime.now(timezone.utc)
            self._store.session.flush()

        logger.info(f"Updated order {order_code}")
        return order

    def get_order(self, order_code: str) -> Order:
        order = self._read("load order", self._store.get, order_code)
        if order is None:
            raise NotFoundError("Order", order_code)
        return order

    def list_orders(
        self, page: int | None = None, page_size: int | None = None
    ) -> list[Order]:
        """All orders, newest first; ``page``/``page_size`` slice the list."""
        if page is None and page_size is None:
            return self._read("list orders", self._store.list_all)

        page = 1 if page is None else page
        page_size = self._settings.default_page_size if page_size is None else page_size
        errors: list[FieldError] = []
        if page < 1:
            errors.append(FieldError("page", "must be a positive integer"))
        if page_size < 1 or page_size > self._settings.max_page_size:
            errors.append(
                FieldError(
                    "pageSize",
                    f"must be between 1 and {self._settings.max_page_size}",
                )
            )
        if errors:
            raise ValidationError(errors)
        return self._read(
            "list orders", self._store.list_all, (page - 1) * page_size, page_size
        )

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _check_request(payload: OrderCreate) -> None:
        errors = validate_customer(payload.customer_name, payload.customer_phone)
        errors += validate_order_items(payload.order_items)
        if errors:
            raise ValidationError(errors)

    def _price_items(self, specs: list[OrderItemCreate]) -> list[OrderItem]:
        """Turn cart lines into order items priced from the catalog.

        Lines are kept as given: two lines for the same product stay two
        lines. Any unresolvable line fails the whole cart.
        """
        codes = [spec.product_code.strip() for spec in specs]
        products = self._catalog.resolve_for_order(codes)

        errors: list[FieldError] = []
        items: list[OrderItem] = []
        for position, (code, spec) in enumerate(zip(codes, specs)):
            field = f"orderItems[{position}].productCode"
            product = products.get(code)
            if product is None:
                errors.append(FieldError(field, f"unknown product code {code}"))
                continue
            if not product.is_active:
                errors.append(FieldError(field, f"product {code} is inactive"))
                continue

            requested = to_money(spec.selling_price)
            if requested is not None and requested != product.selling_price:
                logger.warning(
                    f"Ignoring client price {requested} for {code}; "
                    f"catalog price is {product.selling_price}"
                )
            items.append(
                OrderItem(
                    position=position,
                    product_code=code,
                    quantity=spec.quantity,
                    selling_price=product.selling_price,
                )
            )

        if errors:
            logger.warning(f"Rejected cart: {'; '.join(e.message for e in errors)}")
            raise ValidationError(errors)
        return items

    def _allocate_code(self) -> str:
        return format_code(
            self._settings.order_code_prefix,
            next_value(self._store.session, ORDER_SEQUENCE),
            self._settings.code_width,
        )

    def _read(self, action: str, fn, *args):
        try:
            return fn(*args)
        except SQLAlchemyError as e:
            self._store.session.rollback()
            logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
            raise StoreError(f"Failed to {action}") from e
