"""
Cart Module - Service Layer
==============================
Cart management: add (merging repeats), view with totals, update, remove, clear.

Stock is checked on every write but never reserved here; the order service
re-validates and decrements at checkout.
"""

import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from config.database import atomic
from common.exceptions import NotFoundError, TransactionConflictError, ValidationError
from common.helpers import format_money, round_money
from modules.cart.models import CartItem
from modules.catalog.service import catalog_service
from modules.inventory.service import stock_ledger

logger = logging.getLogger("storefront.cart")


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    return quantity


def serialize_cart_item(item: CartItem) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "quantity": item.quantity,
        "line_total": format_money(item.product.price * item.quantity),
        "product": item.product.to_summary(),
    }


class CartService:

    # ==========================================
    # Commands
    # ==========================================

    def add_item(self, db: Session, user_id: int, product_id: int, quantity: int) -> CartItem:
        """
        Add `quantity` of a product. A repeat add merges into the existing line;
        the stock check runs against the cumulative quantity.
        """
        quantity = _check_quantity(quantity)

        try:
            item, target = self._merge_line(db, user_id, product_id, quantity)
        except IntegrityError:
            # A concurrent first add created the line; merge into it instead
            logger.info(f"Cart add raced for user={user_id} product={product_id}, merging")
            try:
                item, target = self._merge_line(db, user_id, product_id, quantity)
            except IntegrityError:
                raise TransactionConflictError()

        db.refresh(item)
        logger.debug(f"Cart add: user={user_id} product={product_id} qty={target}")
        return item

    def update_item(self, db: Session, user_id: int, item_id: int, quantity: int) -> CartItem:
        """Set an owned line to an absolute quantity, re-validated against stock."""
        quantity = _check_quantity(quantity)

        with atomic(db):
            item = self._owned_item(db, user_id, item_id)
            stock_ledger.ensure_available(item.product, quantity)
            item.quantity = quantity
            db.flush()

        db.refresh(item)
        return item

    def remove_item(self, db: Session, user_id: int, item_id: int):
        with atomic(db):
            item = self._owned_item(db, user_id, item_id)
            db.delete(item)

    def clear_cart(self, db: Session, user_id: int) -> int:
        """Remove all items from user's cart. Returns how many lines were deleted."""
        with atomic(db):
            removed = (
                db.query(CartItem)
                .filter(CartItem.user_id == user_id)
                .delete(synchronize_session=False)
            )
        return removed

    # ==========================================
    # Query
    # ==========================================

    def get_item(self, db: Session, user_id: int, item_id: int) -> CartItem:
        return self._owned_item(db, user_id, item_id)

    def get_items(self, db: Session, user_id: int) -> List[CartItem]:
        return (
            db.query(CartItem)
            .options(joinedload(CartItem.product))
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id.desc())
            .all()
        )

    def get_cart(self, db: Session, user_id: int) -> dict:
        """Cart lines with product summaries plus item count and rounded total."""
        items = self.get_items(db, user_id)
        item_count, total = self.summarize(items)
        return {
            "items": [serialize_cart_item(it) for it in items],
            "summary": {
                "item_count": item_count,
                "total": format_money(total),
            },
        }

    @staticmethod
    def summarize(items: List[CartItem]) -> Tuple[int, Decimal]:
        """(Σ quantity, Σ price × quantity rounded to cents)."""
        item_count = sum(it.quantity for it in items)
        total = sum((it.product.price * it.quantity for it in items), Decimal("0"))
        return item_count, round_money(total)

    # ==========================================
    # Private helpers
    # ==========================================

    def _merge_line(self, db: Session, user_id: int, product_id: int, quantity: int) -> Tuple[CartItem, int]:
        """Upsert one cart line in its own transaction; the unique key rejects a duplicate insert."""
        with atomic(db):
            product = catalog_service.get_product(db, product_id, active_only=True)

            item = db.query(CartItem).filter(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            ).first()

            target = (item.quantity if item else 0) + quantity
            stock_ledger.ensure_available(product, target)

            if item:
                item.quantity = target
            else:
                item = CartItem(user_id=user_id, product_id=product_id, quantity=target)
                db.add(item)
            db.flush()
        return item, target

    def _owned_item(self, db: Session, user_id: int, item_id: int) -> CartItem:
        item = (
            db.query(CartItem)
            .options(joinedload(CartItem.product))
            .filter(CartItem.id == item_id, CartItem.user_id == user_id)
            .first()
        )
        if not item:
            raise NotFoundError("Cart item not found")
        return item


# Singleton
cart_service = CartService()
