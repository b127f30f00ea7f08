"""
Order Routes
==============
Checkout from cart, my orders (paginated), order detail.
Lookups are owner-scoped: someone else's order answers 404.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from modules.auth.deps import require_login
from modules.order.models import OrderStatus
from modules.order.service import order_service, serialize_order
from modules.user.models import User

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CreateOrderRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


# ==========================================
# ✅ Checkout
# ==========================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    body: Optional[CreateOrderRequest] = None,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    notes = body.notes if body else None
    order = order_service.create_order(db, me.id, notes=notes)
    return serialize_order(order)


# ==========================================
# 📋 My Orders
# ==========================================

@router.get("")
async def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    return order_service.list_orders(
        db, page=page, limit=limit,
        status=status_filter.value if status_filter else None,
        user_id=me.id,
    )


# ==========================================
# 🧾 Order Detail
# ==========================================

@router.get("/{order_id}")
async def order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_login),
):
    order = order_service.get_order(db, order_id, user_id=me.id)
    return serialize_order(order)
