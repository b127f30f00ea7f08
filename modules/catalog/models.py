"""
Catalog Module - Models
========================
Product with fixed-point price and the stock counter owned by the inventory ledger.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text, DateTime,
    CheckConstraint,
)
from sqlalchemy.sql import func
from config.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    # Only modules.inventory.service may write this column
    stock = Column(Integer, default=0, server_default="0", nullable=False)
    is_active = Column(Boolean, default=True, server_default="1", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.id} {self.name!r} stock={self.stock}>"

    def to_summary(self) -> dict:
        """Short form embedded in cart lines and order lines."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "stock": self.stock,
        }
