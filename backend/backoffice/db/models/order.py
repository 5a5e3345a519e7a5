"""SQLAlchemy models for orders and their line items."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from backoffice.db.base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_code = Column(String(32), nullable=False, unique=True, index=True)
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    order_items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )

    @property
    def total_amount(self) -> Decimal:
        """Sum of quantity * snapshot price over all items."""
        return sum((item.line_total for item in self.order_items), Decimal("0"))


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)
    # Plain value, not a foreign key: orders outlive catalog deletions
    product_code = Column(String(32), nullable=False)
    quantity = Column(Integer, nullable=False)
    selling_price = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="order_items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity"),
        CheckConstraint("selling_price >= 0", name="ck_order_items_selling_price"),
    )

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.selling_price
