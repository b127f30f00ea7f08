"""
Cart Routes
=============
JSON API for the caller's own cart. Every route is scoped to the
authenticated user; another user's line id answers 404.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.cart.service import cart_service, serialize_cart_item
from modules.user.models import User

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddToCartRequest(BaseModel):
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1)


# ==========================================
# 🛒 View Cart
# ==========================================

@router.get("")
async def get_cart(
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    return cart_service.get_cart(db, me.id)


# ==========================================
# ➕ Add / ✏️ Update / ❌ Remove
# ==========================================

@router.post("/items", status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    body: AddToCartRequest,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    item = cart_service.add_item(db, me.id, body.product_id, body.quantity)
    return serialize_cart_item(item)


@router.get("/items/{item_id}")
async def get_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    return serialize_cart_item(cart_service.get_item(db, me.id, item_id))


@router.patch("/items/{item_id}")
async def update_cart_item(
    item_id: int,
    body: UpdateCartItemRequest,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    item = cart_service.update_item(db, me.id, item_id, body.quantity)
    return serialize_cart_item(item)


@router.delete("/items/{item_id}")
async def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    cart_service.remove_item(db, me.id, item_id)
    return {"message": "Item removed from cart successfully"}


@router.delete("")
async def clear_cart(
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    removed = cart_service.clear_cart(db, me.id)
    return {"message": "Cart cleared successfully", "removed": removed}
