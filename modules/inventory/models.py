"""
Inventory Module - Models
===========================
Stock movement journal: one row per change to a product's stock counter.
"""

import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class MovementReason(str, enum.Enum):
    ORDER = "ORDER"        # decrement when an order is placed
    CANCEL = "CANCEL"      # restoration when an order is cancelled
    RESTOCK = "RESTOCK"    # administrative top-up


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    delta = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    product = relationship("Product")
    order = relationship("Order")
