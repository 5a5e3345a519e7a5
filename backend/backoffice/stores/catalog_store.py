"""Keyed storage of Product rows on top of a SQLAlchemy session.

The store never commits; transaction boundaries belong to the services.
Soft-deleted rows are invisible to every read except ``code_exists``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.orm import Session

from backoffice.db.models.product import Product

StatusFilter = Literal["active", "inactive", "all"]


@dataclass(frozen=True)
class ProductFilters:
    name: str | None = None
    status: StatusFilter = "active"


def _apply_status(query: Select, status: StatusFilter) -> Select:
    if status == "active":
        return query.where(Product.is_active)
    if status == "inactive":
        return query.where(~Product.is_active)
    return query


class CatalogStore:

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    # --- Reads ----------------------------------------------------------------

    def get(self, product_code: str, *, for_update: bool = False) -> Product | None:
        """Return the live product with this exact code, active or not."""
        query = select(Product).where(
            Product.product_code == product_code, ~Product.is_deleted
        )
        if for_update:
            query = query.with_for_update()
        return self._session.scalars(
            query.execution_options(populate_existing=True)
        ).first()

    def get_many(
        self, product_codes: Iterable[str], *, lock: bool = False
    ) -> dict[str, Product]:
        """Resolve several codes at once; missing codes are simply absent.

        With ``lock`` the rows are share-locked until the surrounding
        transaction ends, so they cannot be changed or deleted meanwhile.
        """
        codes = sorted(set(product_codes))
        if not codes:
            return {}
        query = (
            select(Product)
            .where(Product.product_code.in_(codes), ~Product.is_deleted)
            .order_by(Product.id)
        )
        if lock:
            query = query.with_for_update(read=True)
        rows = self._session.scalars(
            query.execution_options(populate_existing=True)
        ).all()
        return {p.product_code: p for p in rows}

    def code_exists(self, product_code: str) -> bool:
        """True if the code was ever used, deleted rows included."""
        found = self._session.scalar(
            select(func.count(Product.id)).where(Product.product_code == product_code)
        )
        return bool(found)

    def page(
        self, filters: ProductFilters, offset: int, limit: int
    ) -> tuple[list[Product], int]:
        """Return one slice of matching products and the total match count."""
        query = _apply_status(select(Product).where(~Product.is_deleted), filters.status)
        count_query = _apply_status(
            select(func.count(Product.id)).where(~Product.is_deleted), filters.status
        )
        if filters.name:
            matches_name = Product.name.icontains(filters.name, autoescape=True)
            query = query.where(matches_name)
            count_query = count_query.where(matches_name)

        total = self._session.scalar(count_query) or 0
        items = self._session.scalars(
            query.order_by(Product.created_at.desc(), Product.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        return list(items), total

    def search(self, term: str, *, include_inactive: bool = False) -> list[Product]:
        """Case-insensitive substring match over name and code, by name."""
        query = select(Product).where(~Product.is_deleted)
        if not include_inactive:
            query = query.where(Product.is_active)
        if term:
            # % and _ in the term match literally
            query = query.where(
                or_(
                    Product.name.icontains(term, autoescape=True),
                    Product.product_code.icontains(term, autoescape=True),
                )
            )
        query = query.order_by(func.lower(Product.name), Product.product_code)
        return list(self._session.scalars(query).all())

    # --- Writes ---------------------------------------------------------------

    def add(self, product: Product) -> Product:
        self._session.add(product)
        self._session.flush()
        return product

    def update_fields(self, product_code: str, values: dict[str, Any]) -> bool:
        """Overwrite columns of a live product in one statement.

        Returns False when the product is absent or was deleted, including
        a delete that committed after the caller last read the row.
        """
        result = self._session.execute(
            update(Product)
            .where(Product.product_code == product_code, ~Product.is_deleted)
            .values(**values, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def soft_delete(self, product_code: str) -> bool:
        """Mark a live product deleted; False if there was nothing to delete."""
        return self.update_fields(product_code, {"is_deleted": True})
