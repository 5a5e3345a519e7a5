"""Explicit wiring of stores into services for each request."""

from fastapi import Depends
from sqlalchemy.orm import Session

from backoffice.api.dependencies.db import get_session
from backoffice.core.config import Settings, get_settings
from backoffice.services.catalog_service import CatalogService
from backoffice.services.order_service import OrderService
from backoffice.stores.catalog_store import CatalogStore
from backoffice.stores.order_store import OrderStore


def get_catalog_service(
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(CatalogStore(db), settings)


def get_order_service(
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    # Both stores share the request session, hence one transaction
    catalog = CatalogService(CatalogStore(db), settings)
    return OrderService(OrderStore(db), catalog, settings)
