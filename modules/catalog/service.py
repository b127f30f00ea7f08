"""
Catalog Module - Service Layer
================================
Product reads for the order core, plus the small set of admin edits the core
depends on (create, rename/reprice, restock, guarded delete).
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from config.database import atomic
from common.exceptions import ConflictError, NotFoundError, ValidationError
from common.helpers import round_money, to_decimal
from modules.catalog.models import Product
from modules.inventory.service import stock_ledger
from modules.order.models import OrderItem

logger = logging.getLogger("storefront.catalog")


def _parse_price(value) -> Decimal:
    """Prices carry at most two decimals; finer amounts are rejected, not rounded."""
    try:
        raw = to_decimal(value)
        price = round_money(raw)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid price: {value!r}")
    if price != raw:
        raise ValidationError(f"Price must have at most 2 decimal places: {value!r}")
    if price < 0:
        raise ValidationError("Price must not be negative")
    return price


class CatalogService:

    # ==========================================
    # Query
    # ==========================================

    def get_product(self, db: Session, product_id: int, active_only: bool = False) -> Product:
        q = db.query(Product).filter(Product.id == product_id)
        if active_only:
            q = q.filter(Product.is_active == True)  # noqa: E712
        product = q.first()
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    # ==========================================
    # Admin edits
    # ==========================================

    def create_product(
        self, db: Session, name: str, price, stock: int = 0,
        description: Optional[str] = None,
    ) -> Product:
        """Create a product. Opening stock is booked through the ledger as a restock."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name is required")
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            raise ValidationError("Stock must be a non-negative integer")

        with atomic(db):
            product = Product(name=name, description=description, price=_parse_price(price), stock=0)
            db.add(product)
            db.flush()
            if stock:
                stock_ledger.restock(db, product.id, stock)

        db.refresh(product)
        logger.info(f"Created product {product.id} ({product.name})")
        return product

    def update_product(
        self, db: Session, product_id: int,
        name: Optional[str] = None, price=None,
        description: Optional[str] = None, is_active: Optional[bool] = None,
    ) -> Product:
        """Edit catalog fields. Stock is not editable here; use restock()."""
        with atomic(db):
            product = self.get_product(db, product_id)
            if name is not None:
                if not name.strip():
                    raise ValidationError("Product name is required")
                product.name = name.strip()
            if price is not None:
                product.price = _parse_price(price)
            if description is not None:
                product.description = description
            if is_active is not None:
                product.is_active = is_active
            db.flush()

        db.refresh(product)
        return product

    def restock(self, db: Session, product_id: int, quantity: int) -> Product:
        with atomic(db):
            stock_ledger.restock(db, product_id, quantity)
        return self.get_product(db, product_id)

    def delete_product(self, db: Session, product_id: int):
        """
        Hard-delete a product that no order references.
        Products with order history must be deactivated instead (is_active=False).
        """
        with atomic(db):
            product = self.get_product(db, product_id)
            referenced = (
                db.query(OrderItem.id)
                .filter(OrderItem.product_id == product_id)
                .first()
            )
            if referenced:
                raise ConflictError(
                    f'Product "{product.name}" is referenced by existing orders; deactivate it instead.'
                )
            db.delete(product)

        logger.info(f"Deleted product {product_id}")


# Singleton
catalog_service = CatalogService()
