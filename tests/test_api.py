"""HTTP surface: auth, error envelope, cart and order flows end to end."""

import pytest

from modules.inventory.service import stock_ledger
from tests.helpers import auth_headers


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


class TestAuth:

    def test_anonymous_is_rejected(self, client):
        resp = client.get("/api/cart")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    def test_garbage_token(self, client):
        resp = client.get("/api/cart", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_cookie_token_is_accepted(self, client, customer):
        token = auth_headers(customer)["Authorization"].split(" ", 1)[1]
        assert client.get("/api/cart", cookies={"auth_token": token}).status_code == 200

    def test_deactivated_user_is_rejected(self, client, customer, admin):
        headers = auth_headers(customer)
        client.delete(f"/api/admin/users/{customer.id}", headers=auth_headers(admin))
        assert client.get("/api/cart", headers=headers).status_code == 401

    def test_customer_cannot_use_admin_routes(self, client, customer):
        resp = client.get("/api/admin/orders", headers=auth_headers(customer))
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"


class TestCartApi:

    def test_add_view_update_remove(self, client, customer, make_product):
        product = make_product(name="Mug", price="4.50", stock=6)
        headers = auth_headers(customer)

        resp = client.post("/api/cart/items", json={"product_id": product.id, "quantity": 2}, headers=headers)
        assert resp.status_code == 201
        item_id = resp.json()["id"]

        resp = client.patch(f"/api/cart/items/{item_id}", json={"quantity": 3}, headers=headers)
        assert resp.json()["quantity"] == 3
        assert resp.json()["line_total"] == "13.50"

        cart = client.get("/api/cart", headers=headers).json()
        assert cart["summary"] == {"item_count": 3, "total": "13.50"}
        assert cart["items"][0]["product"]["name"] == "Mug"

        assert client.delete(f"/api/cart/items/{item_id}", headers=headers).status_code == 200
        assert client.get(f"/api/cart/items/{item_id}", headers=headers).status_code == 404

    def test_insufficient_stock_envelope(self, client, customer, make_product):
        product = make_product(name="Rare", stock=1)
        resp = client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 2},
            headers=auth_headers(customer),
        )
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "INSUFFICIENT_STOCK"
        assert error["product"] == "Rare"
        assert (error["available"], error["requested"]) == (1, 2)
        assert error["retryable"] is False

    @pytest.mark.parametrize("body", [
        {"product_id": 1, "quantity": 0},
        {"product_id": 1},
        {"product_id": "x", "quantity": 1},
    ])
    def test_malformed_body(self, client, customer, body):
        resp = client.post("/api/cart/items", json=body, headers=auth_headers(customer))
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "VALIDATION_FAILED"
        assert resp.json()["error"]["fields"]

    def test_foreign_line_is_404(self, client, customer, make_user, make_product):
        other = make_user("Oscar")
        product = make_product(stock=5)
        item_id = client.post(
            "/api/cart/items", json={"product_id": product.id, "quantity": 1},
            headers=auth_headers(customer),
        ).json()["id"]

        resp = client.patch(f"/api/cart/items/{item_id}", json={"quantity": 2}, headers=auth_headers(other))
        assert resp.status_code == 404

    def test_clear(self, client, customer, make_product, fill_cart):
        fill_cart(customer, (make_product(name="A"), 1), (make_product(name="B"), 1))
        resp = client.delete("/api/cart", headers=auth_headers(customer))
        assert resp.json()["removed"] == 2


class TestOrderApi:

    def test_checkout_and_admin_cancel(self, client, db, customer, admin, make_product, fill_cart):
        product = make_product(name="A", price="10.00", stock=5)
        fill_cart(customer, (product, 3))

        resp = client.post("/api/orders", json={"notes": "ring twice"}, headers=auth_headers(customer))
        assert resp.status_code == 201
        order = resp.json()
        assert order["total"] == "30.00"
        assert order["status"] == "PENDING"
        assert order["items"][0]["unit_price"] == "10.00"
        assert stock_ledger.available(db, product.id) == 2

        resp = client.patch(
            f"/api/admin/orders/{order['id']}/status",
            json={"status": "CANCELLED", "notes": "customer called"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "CANCELLED"
        assert resp.json()["history"][-1]["changed_by"] == admin.id
        assert stock_ledger.available(db, product.id) == 5

        resp = client.patch(
            f"/api/admin/orders/{order['id']}/status", json={"status": "PENDING"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_checkout_without_body(self, client, customer, make_product, fill_cart):
        fill_cart(customer, (make_product(stock=2), 1))
        resp = client.post("/api/orders", headers=auth_headers(customer))
        assert resp.status_code == 201
        assert resp.json()["notes"] is None

    def test_empty_cart(self, client, customer):
        resp = client.post("/api/orders", headers=auth_headers(customer))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "EMPTY_CART"

    def test_orders_are_owner_scoped(self, client, customer, make_user, make_product, fill_cart):
        other = make_user("Nosy")
        fill_cart(customer, (make_product(stock=2), 1))
        order_id = client.post("/api/orders", headers=auth_headers(customer)).json()["id"]

        assert client.get(f"/api/orders/{order_id}", headers=auth_headers(customer)).status_code == 200
        resp = client.get(f"/api/orders/{order_id}", headers=auth_headers(other))
        assert resp.status_code == 404
        assert client.get("/api/orders", headers=auth_headers(other)).json()["pagination"]["total"] == 0

    def test_list_with_status_filter(self, client, customer, make_product, fill_cart):
        product = make_product(stock=5)
        fill_cart(customer, (product, 1))
        client.post("/api/orders", headers=auth_headers(customer))

        headers = auth_headers(customer)
        assert client.get("/api/orders?status=PENDING", headers=headers).json()["pagination"]["total"] == 1
        assert client.get("/api/orders?status=COMPLETED", headers=headers).json()["pagination"]["total"] == 0
        assert client.get("/api/orders?status=LOST", headers=headers).status_code == 422

    def test_admin_listing_stats_and_detail(self, client, customer, admin, make_product, fill_cart):
        fill_cart(customer, (make_product(price="7.25", stock=5), 2))
        order_id = client.post("/api/orders", headers=auth_headers(customer)).json()["id"]
        client.patch(
            f"/api/admin/orders/{order_id}/status", json={"status": "COMPLETED"},
            headers=auth_headers(admin),
        )

        listing = client.get("/api/admin/orders", headers=auth_headers(admin)).json()
        assert listing["orders"][0]["user"]["name"] == "Alice"

        stats = client.get("/api/admin/orders/stats", headers=auth_headers(admin)).json()
        assert stats["completed_orders"] == 1
        assert stats["total_revenue"] == "14.50"

        detail = client.get(f"/api/admin/orders/{order_id}", headers=auth_headers(admin)).json()
        assert [h["new_status"] for h in detail["history"]] == ["PENDING", "COMPLETED"]


class TestAdminCatalogAndUsers:

    def test_product_lifecycle(self, client, admin):
        headers = auth_headers(admin)
        resp = client.post(
            "/api/admin/products", json={"name": "Desk", "price": "120.00", "stock": 2},
            headers=headers,
        )
        assert resp.status_code == 201
        product_id = resp.json()["id"]

        resp = client.post(f"/api/admin/products/{product_id}/restock", json={"quantity": 3}, headers=headers)
        assert resp.json()["stock"] == 5

        movements = client.get(f"/api/admin/products/{product_id}/movements", headers=headers).json()
        assert [m["delta"] for m in movements["movements"]] == [3, 2]

        resp = client.patch(f"/api/admin/products/{product_id}", json={"is_active": False}, headers=headers)
        assert resp.status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404

        assert client.delete(f"/api/admin/products/{product_id}", headers=headers).status_code == 200

    def test_delete_ordered_product_conflicts(self, client, customer, admin, make_product, fill_cart):
        product = make_product(stock=5)
        fill_cart(customer, (product, 1))
        client.post("/api/orders", headers=auth_headers(customer))

        resp = client.delete(f"/api/admin/products/{product.id}", headers=auth_headers(admin))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT"

    def test_last_admin_cannot_demote_self(self, client, admin):
        resp = client.patch(
            f"/api/admin/users/{admin.id}/role", json={"is_admin": False},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 409

    def test_promote_then_demote(self, client, admin, customer):
        headers = auth_headers(admin)
        resp = client.patch(f"/api/admin/users/{customer.id}/role", json={"is_admin": True}, headers=headers)
        assert resp.json()["is_admin"] is True
        resp = client.patch(f"/api/admin/users/{admin.id}/role", json={"is_admin": False}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["is_admin"] is False
