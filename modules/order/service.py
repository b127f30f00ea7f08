"""
Order Module - Service Layer
===============================
Order placement from the cart, status transitions with stock restoration,
owner-scoped and admin queries, and aggregate stats.

create_order() applies all of its effects in one transaction: order row,
item snapshots, stock decrements, cart deletion, status log. If any step
fails (e.g. a concurrent buyer took the last unit) nothing is committed.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy import desc, func

from config.database import atomic
from common.exceptions import (
    EmptyCartError, InvalidTransitionError, NotFoundError, ValidationError,
)
from common.helpers import build_pagination, format_money, now_utc, round_money
from modules.cart.models import CartItem
from modules.inventory.service import stock_ledger
from modules.order.models import (
    Order, OrderItem, OrderStatus, OrderStatusLog, ALLOWED_TRANSITIONS,
)

logger = logging.getLogger("storefront.order")


def serialize_order(order: Order, include_user: bool = False, include_history: bool = False) -> dict:
    """Order with snapshot lines; line totals come from the stored unit price."""
    data = {
        "id": order.id,
        "user_id": order.user_id,
        "total": format_money(order.total),
        "status": order.status,
        "notes": order.notes,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
        "cancelled_at": order.cancelled_at.isoformat() if order.cancelled_at else None,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": format_money(item.unit_price),
                "line_total": format_money(item.line_total),
                "product": {"id": item.product_id, "name": item.product_name},
            }
            for item in order.items
        ],
    }
    if include_user and order.user is not None:
        data["user"] = order.user.to_summary()
    if include_history:
        data["history"] = [
            {
                "old_status": log.old_status,
                "new_status": log.new_status,
                "changed_by": log.changed_by,
                "note": log.note,
                "created_at": log.created_at.isoformat() if log.created_at else None,
            }
            for log in order.status_logs
        ]
    return data


def _coerce_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status {value!r} (expected one of: {allowed})")


class OrderService:

    # ==========================================
    # Checkout
    # ==========================================

    def create_order(self, db: Session, user_id: int, notes: Optional[str] = None) -> Order:
        """
        Create an order from the user's cart:
        1. Load cart lines (EmptyCartError if none)
        2. Re-validate every line: the product must still be active and in stock
        3. Total = Σ price × quantity, rounded to cents
        4. Insert order + item snapshots, reserve stock, clear cart (one transaction)
        5. Return the materialized order
        """
        with atomic(db):
            cart_items = (
                db.query(CartItem)
                .options(joinedload(CartItem.product))
                .filter(CartItem.user_id == user_id)
                .order_by(CartItem.id)
                .all()
            )
            if not cart_items:
                raise EmptyCartError()

            for item in cart_items:
                if not item.product.is_active:
                    raise NotFoundError(f'Product "{item.product.name}" is no longer available')
                stock_ledger.ensure_available(item.product, item.quantity)

            total = round_money(sum(
                (item.product.price * item.quantity for item in cart_items),
                Decimal("0"),
            ))

            order = Order(
                user_id=user_id,
                total=total,
                status=OrderStatus.PENDING.value,
                notes=notes or None,
            )
            db.add(order)
            db.flush()  # get order.id

            for item in cart_items:
                db.add(OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.product.price,      # price snapshot
                    product_name=item.product.name,
                ))

            # Conditional decrements: the authoritative check under concurrency
            stock_ledger.reserve_many(
                db, [(item.product_id, item.quantity) for item in cart_items], order_id=order.id,
            )

            db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)

            db.add(OrderStatusLog(
                order_id=order.id,
                old_status=None,
                new_status=OrderStatus.PENDING.value,
                changed_by=user_id,
                note=notes or None,
            ))
            db.flush()
            order_id = order.id

        logger.info(
            f"Order #{order_id} created for user {user_id}: "
            f"{len(cart_items)} line(s), total {total}"
        )
        return self._load(db, order_id)

    # ==========================================
    # Status transitions
    # ==========================================

    def update_status(
        self, db: Session, order_id: int, new_status,
        changed_by: Optional[int] = None, notes: Optional[str] = None,
    ) -> Order:
        """
        Administrative status change.
        Moving into CANCELLED restores stock for every line, exactly once:
        the order row is locked and re-read, and restoration only happens when
        it is not already CANCELLED. Every other change is a plain status write.
        """
        new_status = _coerce_status(new_status)

        with atomic(db):
            order = (
                db.query(Order)
                .filter(Order.id == order_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if not order:
                raise NotFoundError("Order not found")

            current = OrderStatus(order.status)
            if new_status != current and new_status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidTransitionError(
                    f"Order #{order_id} cannot move from {current.value} to {new_status.value}"
                )

            restored = False
            if new_status == OrderStatus.CANCELLED and not order.is_cancelled:
                stock_ledger.release_many(
                    db, [(item.product_id, item.quantity) for item in order.items], order_id=order.id,
                )
                order.cancelled_at = now_utc()
                restored = True

            order.status = new_status.value
            db.add(OrderStatusLog(
                order_id=order.id,
                old_status=current.value,
                new_status=new_status.value,
                changed_by=changed_by,
                note=notes or None,
            ))
            db.flush()

        if restored:
            logger.info(f"Order #{order_id} cancelled; stock restored for {len(order.items)} line(s)")
        else:
            logger.info(f"Order #{order_id} status {current.value} -> {new_status.value}")
        return self._load(db, order_id)

    # ==========================================
    # Query
    # ==========================================

    def get_order(self, db: Session, order_id: int, user_id: Optional[int] = None) -> Order:
        """
        Fetch an order. With `user_id` the lookup is owner-scoped and a foreign
        order is reported exactly like a missing one.
        """
        q = self._with_lines(db.query(Order)).filter(Order.id == order_id)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        order = q.first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_orders(
        self, db: Session, page: int = 1, limit: int = 10,
        status: Optional[str] = None, user_id: Optional[int] = None,
    ) -> dict:
        """
        Paginated listing, newest first.
        user_id=None is the unrestricted (admin) view.
        """
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be >= 1")

        q = db.query(Order)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        if status:
            q = q.filter(Order.status == _coerce_status(status).value)

        total = q.count()
        orders = (
            self._with_lines(q)
            .options(joinedload(Order.user))
            .order_by(desc(Order.id))
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "orders": [serialize_order(o, include_user=user_id is None) for o in orders],
            "pagination": build_pagination(page, limit, total),
        }

    def get_stats(self, db: Session) -> dict:
        """Counts per status and revenue from COMPLETED orders (read-only)."""
        counts = dict(
            db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        )
        revenue = (
            db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(Order.status == OrderStatus.COMPLETED.value)
            .scalar()
        )
        return {
            "total_orders": sum(counts.values()),
            "pending_orders": counts.get(OrderStatus.PENDING.value, 0),
            "completed_orders": counts.get(OrderStatus.COMPLETED.value, 0),
            "cancelled_orders": counts.get(OrderStatus.CANCELLED.value, 0),
            "total_revenue": format_money(revenue),
        }

    # ==========================================
    # Private Helpers
    # ==========================================

    @staticmethod
    def _with_lines(q):
        return q.options(selectinload(Order.items))

    def _load(self, db: Session, order_id: int) -> Order:
        return self.get_order(db, order_id)


# Singleton
order_service = OrderService()
