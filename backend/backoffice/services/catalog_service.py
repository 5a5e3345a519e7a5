"""Business rules for the product catalog."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from backoffice.api.schemas.product import ProductCreate, ProductUpdate
from backoffice.core.config import Settings, get_settings
from backoffice.core.exceptions import (
    ConflictError,
    FieldError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from backoffice.db.models.product import Product
from backoffice.db.session import transaction
from backoffice.services.validation import to_money, validate_product
from backoffice.stores.catalog_store import CatalogStore, ProductFilters
from backoffice.stores.code_sequence import format_code, next_value

logger = logging.getLogger(__name__)

PRODUCT_SEQUENCE = "product"
EDITABLE_FIELDS = (
    "name",
    "unit",
    "import_price",
    "selling_price",
    "tax_rate",
    "is_active",
)


@dataclass
class ProductPage:
    items: list[Product]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


@dataclass
class BulkDeleteResult:
    deleted: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _trimmed(values: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(values)
    for key in ("name", "unit"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    return cleaned


def _as_stored(values: dict[str, Any]) -> dict[str, Any]:
    """Amounts at the column scale; only called on validated records."""
    stored = dict(values)
    for key in ("import_price", "selling_price", "tax_rate"):
        if key in stored:
            stored[key] = to_money(stored[key])
    return stored


class CatalogService:

    def __init__(self, store: CatalogStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    # --- Commands -------------------------------------------------------------

    def create_product(self, payload: ProductCreate) -> Product:
        """Validate and persist a new product under a fresh code."""
        values = _trimmed(payload.model_dump(include=set(EDITABLE_FIELDS)))
        errors = validate_product(values)
        requested_code = self._requested_code(payload.product_code, errors)
        if errors:
            raise ValidationError(errors)
        values = _as_stored(values)

        with transaction(self._store.session, "create product"):
            if requested_code is not None:
                if self._store.code_exists(requested_code):
                    raise ConflictError(
                        f"Product code '{requested_code}' is already in use"
                    )
                code = requested_code
            else:
                code = self._allocate_code()
            product = self._store.add(Product(product_code=code, **values))

        logger.info(f"Created product {product.product_code} ({product.name})")
        return product

    def update_product(self, product_code: str, payload: ProductUpdate) -> Product:
        """Merge the given fields onto the stored record and save it whole.

        The merged record is validated before anything is written, so an
        invalid edit leaves the stored product untouched.
        """
        if payload.product_code is not None and payload.product_code != product_code:
            raise ValidationError(FieldError("productCode", "cannot be changed"))

        changes = payload.model_dump(
            include=set(EDITABLE_FIELDS), exclude_unset=True, exclude_none=True
        )
        with transaction(self._store.session, f"update product {product_code}"):
            current = self._store.get(product_code, for_update=True)
            if current is None:
                raise NotFoundError("Product", product_code)

            merged = {name: getattr(current, name) for name in EDITABLE_FIELDS}
            merged.update(changes)
            merged = _trimmed(merged)
            errors = validate_product(merged)
            if errors:
                raise ValidationError(errors)
            merged = _as_stored(merged)

            if not self._store.update_fields(product_code, merged):
                # Deleted between the read and the write
                raise NotFoundError("Product", product_code)
            product = self._store.get(product_code)

        logger.info(f"Updated product {product_code}")
        return product

    def update_product_status(self, product_code: str, is_active: bool) -> bool:
        """Toggle only ``is_active``; prices are not touched, so not re-checked."""
        with transaction(self._store.session, f"update status of {product_code}"):
            if not self._store.update_fields(product_code, {"is_active": is_active}):
                raise NotFoundError("Product", product_code)

        logger.info(
            f"Product {product_code} marked {'active' if is_active else 'inactive'}"
        )
        return True

    def delete_product(self, product_code: str) -> None:
        with transaction(self._store.session, f"delete product {product_code}"):
            if not self._store.soft_delete(product_code):
                raise NotFoundError("Product", product_code)
        logger.info(f"Deleted product {product_code}")

    def delete_products(self, product_codes: Iterable[str]) -> BulkDeleteResult:
        """Best-effort delete: each code commits on its own, missing ones are skipped."""
        result = BulkDeleteResult()
        for code in dict.fromkeys(product_codes):
            if not isinstance(code, str) or not code.strip():
                result.missing.append(code)
                continue
            try:
                with transaction(self._store.session, f"delete product {code}"):
                    removed = self._store.soft_delete(code)
            except StoreError:
                result.failed.append(code)
                continue
            (result.deleted if removed else result.missing).append(code)

        logger.info(
            f"Bulk delete: {len(result.deleted)} deleted, "
            f"{len(result.missing)} missing, {len(result.failed)} failed"
        )
        return result

    # --- Queries --------------------------------------------------------------

    def get_product(self, product_code: str) -> Product:
        """Exact-code lookup; inactive products are returned, deleted are not."""
        product = self._read("load product", self._store.get, product_code)
        if product is None:
            raise NotFoundError("Product", product_code)
        return product

    def list_products(
        self,
        page: int = 1,
        page_size: int | None = None,
        filters: ProductFilters | None = None,
    ) -> ProductPage:
        """One page of products, active ones only unless filters say otherwise."""
        page_size = self._settings.default_page_size if page_size is None else page_size
        errors: list[FieldError] = []
        if not isinstance(page, int) or page < 1:
            errors.append(FieldError("page", "must be a positive integer"))
        if not isinstance(page_size, int) or page_size < 1:
            errors.append(FieldError("pageSize", "must be a positive integer"))
        elif page_size > self._settings.max_page_size:
            errors.append(
                FieldError(
                    "pageSize", f"must be at most {self._settings.max_page_size}"
                )
            )
        if errors:
            raise ValidationError(errors)

        items, total = self._read(
            "list products",
            self._store.page,
            filters or ProductFilters(),
            (page - 1) * page_size,
            page_size,
        )
        return ProductPage(items=items, total=total, page=page, page_size=page_size)

    def search_products(
        self, term: str | None, *, include_inactive: bool = False
    ) -> list[Product]:
        """Substring search over name and code, ordered by name.

        A blank term matches every product.
        """
        return self._read(
            "search products",
            self._store.search,
            (term or "").strip(),
            include_inactive=include_inactive,
        )

    def resolve_for_order(self, product_codes: Iterable[str]) -> dict[str, Product]:
        """Look up cart products, share-locking them for the caller's transaction."""
        return self._store.get_many(product_codes, lock=True)

    # --- Helpers --------------------------------------------------------------

    def _requested_code(
        self, product_code: str | None, errors: list[FieldError]
    ) -> str | None:
        if product_code is None:
            return None
        if not self._settings.allow_client_product_codes:
            errors.append(FieldError("productCode", "is assigned by the server"))
            return None
        if not product_code.strip():
            errors.append(FieldError("productCode", "must not be blank"))
            return None
        return product_code.strip()

    def _allocate_code(self) -> str:
        # Skip numbers already taken by client-assigned codes
        while True:
            code = format_code(
                self._settings.product_code_prefix,
                next_value(self._store.session, PRODUCT_SEQUENCE),
                self._settings.code_width,
            )
            if not self._store.code_exists(code):
                return code

    def _read(self, action: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            self._store.session.rollback()
            logger.error(f"Database error while trying to {action}: {e}", exc_info=True)
            raise StoreError(f"Failed to {action}") from e
