"""Keyed storage of Order rows and their embedded items."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.db.models.order import Order


class OrderStore:

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def get(self, order_code: str, *, for_update: bool = False) -> Order | None:
        """Load an order; ``for_update`` locks its row until the transaction ends."""
        query = select(Order).where(Order.order_code == order_code)
        if for_update:
            query = query.with_for_update()
        return self._session.scalars(
            query.execution_options(populate_existing=True)
        ).first()

    def list_all(
        self, offset: int | None = None, limit: int | None = None
    ) -> list[Order]:
        """Orders newest first, optionally sliced."""
        query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return list(self._session.scalars(query).all())

    def add(self, order: Order) -> Order:
        self._session.add(order)
        self._session.flush()
        return order
