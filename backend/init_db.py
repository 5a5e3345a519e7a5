#!/usr/bin/env python3
"""Create the database tables and optionally seed a demo catalog."""

import argparse
from decimal import Decimal
import logging

from backoffice.api.schemas.product import ProductCreate
from backoffice.core.config import get_settings
from backoffice.db import models  # noqa: F401  (registers tables)
from backoffice.db.base import Base
from backoffice.db.session import SessionLocal, engine
from backoffice.main import configure_logging
from backoffice.services.catalog_service import CatalogService
from backoffice.stores.catalog_store import CatalogStore

logger = logging.getLogger("init_db")

DEMO_PRODUCTS = [
    ("Arabica Coffee Beans", "kg", "8.50", "14.90", "10"),
    ("Green Tea Leaves", "box", "3.20", "5.50", "10"),
    ("Whole Milk", "litre", "0.70", "1.20", "5"),
    ("Cane Sugar", "kg", "1.10", "1.95", "5"),
    ("Paper Cups", "pack", "2.00", "3.75", "20"),
]


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="Insert demo products")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)
    Base.metadata.create_all(engine)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    if not args.seed:
        return

    db = SessionLocal()
    try:
        catalog = CatalogService(CatalogStore(db))
        for name, unit, import_price, selling_price, tax_rate in DEMO_PRODUCTS:
            product = catalog.create_product(
                ProductCreate(
                    name=name,
                    unit=unit,
                    import_price=Decimal(import_price),
                    selling_price=Decimal(selling_price),
                    tax_rate=Decimal(tax_rate),
                )
            )
            print(f"✓ {product.product_code} {product.name}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
