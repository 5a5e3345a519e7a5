"""Shared fixtures: a throwaway in-memory SQLite database per test."""

import os

# Must be set before backoffice.db.session builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from backoffice.core.config import Settings, get_settings
from backoffice.db import models  # noqa: F401
from backoffice.db.base import Base
from backoffice.db.session import SessionLocal, engine
from backoffice.main import create_app
from backoffice.services.catalog_service import CatalogService
from backoffice.services.order_service import OrderService
from backoffice.stores.catalog_store import CatalogStore
from backoffice.stores.order_store import OrderStore


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def db_session(database):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def catalog(db_session, settings) -> CatalogService:
    return CatalogService(CatalogStore(db_session), settings)


@pytest.fixture
def orders(db_session, catalog, settings) -> OrderService:
    return OrderService(OrderStore(db_session), catalog, settings)


@pytest.fixture
def client(database):
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
