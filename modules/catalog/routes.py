"""
Catalog Routes
================
Single-product read used by cart/checkout clients.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.catalog.service import catalog_service

router = APIRouter(prefix="/api/products", tags=["catalog"])


@router.get("/{product_id}")
async def product_detail(product_id: int, db: Session = Depends(get_db)):
    product = catalog_service.get_product(db, product_id, active_only=True)
    return product.to_summary()
