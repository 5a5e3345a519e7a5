"""Database models package."""
from backoffice.db.models.code_sequence import CodeSequence
from backoffice.db.models.order import Order, OrderItem
from backoffice.db.models.product import Product

__all__ = ["CodeSequence", "Order", "OrderItem", "Product"]
