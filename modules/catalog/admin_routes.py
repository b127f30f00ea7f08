"""
Catalog Module - Admin Routes
===============================
Product create / edit / restock / delete, and the stock movement journal.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.catalog.service import catalog_service
from modules.inventory.service import stock_ledger
from modules.user.models import User

router = APIRouter(prefix="/api/admin/products", tags=["catalog-admin"])


# ==========================================
# Schemas
# ==========================================

class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    description: Optional[str] = None


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class RestockRequest(BaseModel):
    quantity: int = Field(..., ge=1)


# ==========================================
# Routes
# ==========================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = catalog_service.create_product(
        db, name=body.name, price=body.price, stock=body.stock, description=body.description,
    )
    return product.to_summary()


@router.patch("/{product_id}")
async def update_product(
    product_id: int,
    body: ProductUpdateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = catalog_service.update_product(
        db, product_id,
        name=body.name, price=body.price,
        description=body.description, is_active=body.is_active,
    )
    return product.to_summary()


@router.post("/{product_id}/restock")
async def restock_product(
    product_id: int,
    body: RestockRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    product = catalog_service.restock(db, product_id, body.quantity)
    return product.to_summary()


@router.get("/{product_id}/movements")
async def product_movements(
    product_id: int,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    catalog_service.get_product(db, product_id)
    return {
        "product_id": product_id,
        "movements": [
            {
                "id": m.id,
                "delta": m.delta,
                "reason": m.reason,
                "order_id": m.order_id,
                "created_at": m.created_at.isoformat() if m.created_at else None,
            }
            for m in stock_ledger.movements(db, product_id, limit=limit)
        ],
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    catalog_service.delete_product(db, product_id)
    return {"message": f"Product with ID {product_id} has been deleted"}
