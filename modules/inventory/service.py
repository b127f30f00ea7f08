"""
Inventory Module - Stock Ledger
=================================
The only writer of Product.stock.

reserve() is a single conditional UPDATE (`... WHERE stock >= :qty`), so the
check and the decrement are one statement: two transactions racing for the
last units cannot both succeed, and a failed reserve writes nothing.
Callers own the transaction (see config.database.atomic).
"""

import logging
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from common.exceptions import InsufficientStockError, NotFoundError, ValidationError
from modules.catalog.models import Product
from modules.inventory.models import StockMovement, MovementReason

logger = logging.getLogger("storefront.inventory")


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


class StockLedger:
    """Stock mutations and the movement journal."""

    # ==========================================
    # Query
    # ==========================================

    def available(self, db: Session, product_id: int) -> int:
        """Current persisted stock (column query, bypasses identity-map state)."""
        row = db.query(Product.stock).filter(Product.id == product_id).first()
        if row is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return row.stock

    def ensure_available(self, product: Product, requested: int):
        """Raise InsufficientStockError unless `requested` units fit in product.stock."""
        if requested > product.stock:
            raise InsufficientStockError(product.name, product.stock, requested)

    # ==========================================
    # Mutations
    # ==========================================

    def reserve(self, db: Session, product_id: int, quantity: int, order_id: Optional[int] = None):
        """
        Decrement stock by `quantity`, failing instead of going below zero.
        Raises InsufficientStockError(available, requested) or NotFoundError.
        """
        quantity = _check_quantity(quantity)

        updated = (
            db.query(Product)
            .filter(Product.id == product_id, Product.stock >= quantity)
            .update({Product.stock: Product.stock - quantity}, synchronize_session="fetch")
        )

        if updated == 0:
            row = db.query(Product.name, Product.stock).filter(Product.id == product_id).first()
            if row is None:
                raise NotFoundError(f"Product with ID {product_id} not found")
            logger.info(
                "Stock reserve rejected: product=%s available=%s requested=%s",
                product_id, row.stock, quantity,
            )
            raise InsufficientStockError(row.name, row.stock, quantity)

        db.add(StockMovement(
            product_id=product_id,
            delta=-quantity,
            reason=MovementReason.ORDER.value,
            order_id=order_id,
        ))
        db.flush()

    def release(
        self, db: Session, product_id: int, quantity: int,
        order_id: Optional[int] = None,
        reason: MovementReason = MovementReason.CANCEL,
    ):
        """Increment stock by `quantity`. Cannot violate the floor, so it only fails on a missing product."""
        quantity = _check_quantity(quantity)

        updated = (
            db.query(Product)
            .filter(Product.id == product_id)
            .update({Product.stock: Product.stock + quantity}, synchronize_session="fetch")
        )
        if updated == 0:
            raise NotFoundError(f"Product with ID {product_id} not found")

        db.add(StockMovement(
            product_id=product_id,
            delta=quantity,
            reason=reason.value,
            order_id=order_id,
        ))
        db.flush()

    def reserve_many(self, db: Session, lines: Iterable[Tuple[int, int]], order_id: Optional[int] = None):
        """Reserve (product_id, quantity) pairs in ascending product order to keep lock order stable."""
        for product_id, quantity in sorted(lines):
            self.reserve(db, product_id, quantity, order_id=order_id)

    def release_many(self, db: Session, lines: Iterable[Tuple[int, int]], order_id: Optional[int] = None):
        for product_id, quantity in sorted(lines):
            self.release(db, product_id, quantity, order_id=order_id)

    def restock(self, db: Session, product_id: int, quantity: int) -> int:
        """Administrative top-up. Returns the new stock level."""
        self.release(db, product_id, quantity, reason=MovementReason.RESTOCK)
        new_level = self.available(db, product_id)
        logger.info(f"Restocked product {product_id} by {quantity} (now {new_level})")
        return new_level

    def movements(self, db: Session, product_id: int, limit: int = 50):
        return (
            db.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.id.desc())
            .limit(limit)
            .all()
        )


# Singleton
stock_ledger = StockLedger()
