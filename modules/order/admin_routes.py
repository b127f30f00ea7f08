"""
Order Module - Admin Routes
==============================
Order management for admin: list all, stats, detail, status change.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from modules.auth.deps import require_admin
from modules.order.models import OrderStatus
from modules.order.service import order_service, serialize_order
from modules.user.models import User

router = APIRouter(prefix="/api/admin/orders", tags=["order-admin"])


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)


@router.get("")
async def admin_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return order_service.list_orders(
        db, page=page, limit=limit,
        status=status_filter.value if status_filter else None,
    )


# Declared before /{order_id} so "stats" is not parsed as an id
@router.get("/stats")
async def admin_order_stats(
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return order_service.get_stats(db)


@router.get("/{order_id}")
async def admin_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    order = order_service.get_order(db, order_id)
    return serialize_order(order, include_user=True, include_history=True)


@router.patch("/{order_id}/status")
async def admin_update_order_status(
    order_id: int,
    body: UpdateOrderStatusRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    order = order_service.update_status(
        db, order_id, body.status, changed_by=admin.id, notes=body.notes,
    )
    return serialize_order(order, include_user=True, include_history=True)
