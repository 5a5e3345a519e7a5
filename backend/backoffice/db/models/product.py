"""SQLAlchemy model for catalog products."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.types import DateTime

from backoffice.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    product_code = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(32), nullable=False)
    import_price = Column(Numeric(12, 2), nullable=False)
    selling_price = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    # Deleted rows keep their code so it is never handed out again
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("import_price >= 0", name="ck_products_import_price"),
        CheckConstraint(
            "selling_price > import_price", name="ck_products_selling_price"
        ),
        CheckConstraint(
            "tax_rate >= 0 AND tax_rate <= 100", name="ck_products_tax_rate"
        ),
    )
