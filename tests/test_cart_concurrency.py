"""Two simultaneous first adds of the same product end up as one merged line."""

import threading
import time

from common.exceptions import TransactionConflictError
from modules.cart.models import CartItem
from modules.inventory.service import stock_ledger
from modules.cart.service import cart_service

MAX_ATTEMPTS = 20


def _add(session_factory, user_id, product_id, outcomes):
    session = session_factory()
    try:
        for _ in range(MAX_ATTEMPTS):
            try:
                cart_service.add_item(session, user_id, product_id, 1)
                outcomes.append("ok")
                return
            except TransactionConflictError:
                time.sleep(0.05)
        outcomes.append("gave-up")
    except Exception as exc:  # noqa: BLE001 - surfaced through the assertion
        outcomes.append(type(exc).__name__)
    finally:
        session.close()


def test_double_submitted_add_merges(db, session_factory, customer, make_product, monkeypatch):
    product = make_product(stock=5)
    barrier = threading.Barrier(2)
    waited = threading.local()
    real_ensure_available = stock_ledger.ensure_available

    def ensure_then_wait(prod, requested):
        real_ensure_available(prod, requested)
        # Hold both first attempts after their "no line yet" read
        if not getattr(waited, "done", False):
            waited.done = True
            barrier.wait(timeout=10)

    monkeypatch.setattr(stock_ledger, "ensure_available", ensure_then_wait)

    outcomes = []
    threads = [
        threading.Thread(target=_add, args=(session_factory, customer.id, product.id, outcomes))
        for _ in range(2)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert outcomes == ["ok", "ok"]
    lines = db.query(CartItem).filter(CartItem.user_id == customer.id).all()
    assert len(lines) == 1
    assert lines[0].quantity == 2
