"""
HTTP API tests for orders, catalog, dashboard and ledger routes.
"""

import pytest

from restopos.extensions import db
from restopos.models import Product, InventoryTransaction, Order
from restopos.services import order_service

from conftest import order_payload


# =============================================================================
# ORDERS
# =============================================================================


class TestOrdersApi:
    def test_create_order(self, client, staff_headers, staff_user, burger, fries):
        resp = client.post(
            "/api/orders",
            json=order_payload((burger, 3), (fries, 1), tax_cents=200, table_number="7"),
            headers=staff_headers,
        )
        assert resp.status_code == 201, resp.json

        order = resp.json["order"]
        assert order["order_number"].startswith("ORD-")
        assert order["status"] == "pending"
        assert order["table_number"] == "7"
        assert order["created_by_user_id"] == staff_user.id
        assert [i["product_id"] for i in order["items"]] == [burger.id, fries.id]
        assert order["items"][0]["product"]["name"] == "Burger"

        db.session.expire_all()
        assert db.session.get(Product, burger.id).stock_quantity == 7
        entry = db.session.query(InventoryTransaction).filter_by(product_id=burger.id).one()
        assert entry.reference == f"Order #{order['order_number']}"

    def test_inconsistent_totals_rejected(self, client, staff_headers, burger):
        body = order_payload((burger, 1))
        body["order"]["total_cents"] += 1

        resp = client.post("/api/orders", json=body, headers=staff_headers)
        assert resp.status_code == 400
        assert "total_cents" in resp.json["error"]
        assert db.session.query(Order).count() == 0

    def test_unknown_product_rejected(self, client, staff_headers, burger):
        body = order_payload((burger, 1))
        body["items"][0]["product_id"] = 999999

        resp = client.post("/api/orders", json=body, headers=staff_headers)
        assert resp.status_code == 400
        assert "999999" in resp.json["error"]

    def test_oversized_product_id_rejected(self, client, staff_headers, burger):
        body = order_payload((burger, 1))
        body["items"][0]["product_id"] = 10**20

        resp = client.post("/api/orders", json=body, headers=staff_headers)
        assert resp.status_code == 400
        assert "product_id" in resp.json["error"]
        assert db.session.query(Order).count() == 0

    def test_oversized_quantity_rejected(self, client, staff_headers, burger):
        body = {
            "order": {"type": "takeout", "subtotal_cents": 0, "total_cents": 0},
            "items": [{"product_id": burger.id, "quantity": 10**19, "unit_price_cents": 0}],
        }

        resp = client.post("/api/orders", json=body, headers=staff_headers)
        assert resp.status_code == 400
        assert "quantity" in resp.json["error"]

        db.session.expire_all()
        assert db.session.query(Order).count() == 0
        assert db.session.get(Product, burger.id).stock_quantity == 10

    def test_empty_items_rejected(self, client, staff_headers):
        body = {"order": {"type": "takeout", "subtotal_cents": 0, "total_cents": 0}, "items": []}
        resp = client.post("/api/orders", json=body, headers=staff_headers)
        assert resp.status_code == 400

    def test_status_update(self, client, staff_headers, burger):
        created = client.post("/api/orders", json=order_payload((burger, 1)), headers=staff_headers).json["order"]

        resp = client.put(f"/api/orders/{created['id']}/status", json={"status": "preparing"}, headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "preparing"

        resp = client.put(f"/api/orders/{created['id']}/status", json={"status": "eaten"}, headers=staff_headers)
        assert resp.status_code == 400

    def test_status_update_missing_order(self, client, staff_headers):
        resp = client.put("/api/orders/424242/status", json={"status": "ready"}, headers=staff_headers)
        assert resp.status_code == 404

    def test_payment_status_update(self, client, staff_headers, burger):
        created = client.post("/api/orders", json=order_payload((burger, 1)), headers=staff_headers).json["order"]

        resp = client.put(
            f"/api/orders/{created['id']}/payment-status",
            json={"payment_status": "paid"},
            headers=staff_headers,
        )
        assert resp.status_code == 200
        assert resp.json["order"]["payment_status"] == "paid"

    def test_get_and_list(self, client, staff_headers, burger):
        created = client.post("/api/orders", json=order_payload((burger, 2)), headers=staff_headers).json["order"]

        resp = client.get(f"/api/orders/{created['id']}", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["items"][0]["quantity"] == 2

        resp = client.get("/api/orders?status=pending&limit=10", headers=staff_headers)
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json["items"]] == [created["id"]]

        assert client.get("/api/orders/424242", headers=staff_headers).status_code == 404

    def test_get_order_unexpected_failure(self, client, staff_headers, monkeypatch):
        def broken(order_id):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(order_service, "get_order", broken)

        resp = client.get("/api/orders/1", headers=staff_headers)
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}

    def test_list_rejects_bad_dates(self, client, staff_headers):
        resp = client.get("/api/orders?start=yesterday", headers=staff_headers)
        assert resp.status_code == 400

    def test_admin_deletes_order(self, client, admin_headers, burger):
        created = client.post("/api/orders", json=order_payload((burger, 1)), headers=admin_headers).json["order"]

        resp = client.delete(f"/api/orders/{created['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/orders/{created['id']}", headers=admin_headers).status_code == 404


# =============================================================================
# PRODUCTS AND CATEGORIES
# =============================================================================


class TestCatalogApi:
    def test_product_crud(self, client, admin_headers, category):
        resp = client.post(
            "/api/products",
            json={"name": "Soup", "price_cents": 650, "category_id": category.id, "sku": "SOUP", "low_stock_threshold": 3},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.json
        product_id = resp.json["product"]["id"]

        resp = client.put(f"/api/products/{product_id}", json={"price_cents": 700}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["product"]["price_cents"] == 700

        resp = client.delete(f"/api/products/{product_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/products", headers=admin_headers).json["count"] == 0

    def test_duplicate_sku_conflict(self, client, admin_headers, burger):
        resp = client.post("/api/products", json={"name": "Other", "price_cents": 100, "sku": "BURGER"}, headers=admin_headers)
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Soup", "price_cents": -1},
            {"name": "Soup", "price_cents": "6.50"},
            {"name": "Soup"},
            {"name": "Soup", "price_cents": 100, "low_stock_threshold": -1},
            {"name": "Soup", "price_cents": 100, "unexpected": True},
        ],
    )
    def test_invalid_product(self, client, admin_headers, payload):
        resp = client.post("/api/products", json=payload, headers=admin_headers)
        assert resp.status_code == 400

    def test_missing_product(self, client, admin_headers):
        assert client.get("/api/products/424242", headers=admin_headers).status_code == 404
        assert client.put("/api/products/424242", json={"name": "X"}, headers=admin_headers).status_code == 404

    def test_low_stock_endpoint(self, client, admin_headers, burger, fries, coffee):
        burger.stock_quantity = 2
        db.session.commit()

        resp = client.get("/api/products/low-stock", headers=admin_headers)
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json["items"]] == [burger.id]

    def test_category_crud(self, client, admin_headers):
        resp = client.post("/api/categories", json={"name": "Drinks"}, headers=admin_headers)
        assert resp.status_code == 201
        category_id = resp.json["category"]["id"]

        assert client.post("/api/categories", json={"name": "Drinks"}, headers=admin_headers).status_code == 409

        resp = client.put(f"/api/categories/{category_id}", json={"description": "Cold"}, headers=admin_headers)
        assert resp.json["category"]["description"] == "Cold"

        assert client.delete(f"/api/categories/{category_id}", headers=admin_headers).status_code == 200
        assert client.get("/api/categories", headers=admin_headers).json["count"] == 0


class TestRestaurantApi:
    def test_first_save_requires_name(self, client, admin_headers):
        assert client.get("/api/restaurant", headers=admin_headers).status_code == 404
        assert client.put("/api/restaurant", json={"currency": "eur"}, headers=admin_headers).status_code == 400

        resp = client.put(
            "/api/restaurant",
            json={"name": "Chez Test", "currency": "eur", "tax_rate_bps": 700, "timezone": "Europe/Paris"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["restaurant"]["currency"] == "EUR"

    @pytest.mark.parametrize(
        "payload",
        [
            {"tax_rate_bps": 20000},
            {"currency": "EURO"},
            {"timezone": "Mars/Olympus"},
        ],
    )
    def test_invalid_settings(self, client, admin_headers, restaurant, payload):
        assert client.put("/api/restaurant", json=payload, headers=admin_headers).status_code == 400


# =============================================================================
# DASHBOARD
# =============================================================================


class TestDashboardApi:
    def test_stats_shape(self, client, staff_headers, burger):
        client.post("/api/orders", json=order_payload((burger, 6), payment_status="paid"), headers=staff_headers)

        resp = client.get("/api/dashboard/stats", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["total_orders"] == 1
        assert resp.json["total_revenue_cents"] == 6 * burger.price_cents
        assert resp.json["average_order_value_cents"] == 6 * burger.price_cents
        assert resp.json["low_stock_count"] == 1

    def test_stats_bad_date(self, client, staff_headers):
        assert client.get("/api/dashboard/stats?date=15/01/2026", headers=staff_headers).status_code == 400

    def test_top_products(self, client, staff_headers, burger, fries):
        client.post("/api/orders", json=order_payload((burger, 5)), headers=staff_headers)
        client.post("/api/orders", json=order_payload((fries, 8)), headers=staff_headers)

        resp = client.get("/api/dashboard/top-products?limit=1", headers=staff_headers)
        assert resp.status_code == 200
        assert [(r["product"]["id"], r["sold_quantity"]) for r in resp.json["items"]] == [(fries.id, 8)]

        assert client.get("/api/dashboard/top-products?limit=0", headers=staff_headers).status_code == 400

    def test_recent_orders(self, client, staff_headers, burger):
        for _ in range(3):
            client.post("/api/orders", json=order_payload((burger, 1)), headers=staff_headers)

        resp = client.get("/api/dashboard/recent-orders?limit=2", headers=staff_headers)
        assert resp.status_code == 200
        assert len(resp.json["items"]) == 2

    def test_recent_orders_unexpected_failure(self, client, staff_headers, monkeypatch):
        def broken(limit):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(order_service, "list_recent_orders", broken)

        resp = client.get("/api/dashboard/recent-orders", headers=staff_headers)
        assert resp.status_code == 500
        assert resp.json == {"error": "Internal server error"}


# =============================================================================
# INVENTORY LEDGER
# =============================================================================


class TestInventoryApi:
    def test_record_purchase(self, client, admin_headers, burger):
        resp = client.post(
            "/api/inventory/transactions",
            json={"product_id": burger.id, "type": "purchase", "quantity_delta": 12, "unit_cost_cents": 400},
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.json
        assert resp.json["transaction"]["total_cost_cents"] == 4800

        db.session.expire_all()
        assert db.session.get(Product, burger.id).stock_quantity == 22

        resp = client.get(f"/api/inventory/transactions?product_id={burger.id}", headers=admin_headers)
        assert resp.json["count"] == 1

    def test_sale_type_rejected(self, client, admin_headers, burger):
        resp = client.post(
            "/api/inventory/transactions",
            json={"product_id": burger.id, "type": "sale", "quantity_delta": -1},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_missing_product(self, client, admin_headers):
        resp = client.post(
            "/api/inventory/transactions",
            json={"product_id": 424242, "type": "purchase", "quantity_delta": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_oversized_delta_rejected(self, client, admin_headers, burger):
        resp = client.post(
            "/api/inventory/transactions",
            json={"product_id": burger.id, "type": "purchase", "quantity_delta": 10**19},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "quantity_delta" in resp.json["error"]

    def test_oversized_product_filter_rejected(self, client, admin_headers):
        resp = client.get(f"/api/inventory/transactions?product_id={10**20}", headers=admin_headers)
        assert resp.status_code == 400


# =============================================================================
# NOTIFICATIONS
# =============================================================================


class TestNotificationsApi:
    def test_broadcast_and_mark_read(self, client, admin_headers, staff_headers, staff_user):
        resp = client.post("/api/notifications", json={"title": "Fryer serviced"}, headers=admin_headers)
        assert resp.status_code == 201
        notification_id = resp.json["notification"]["id"]

        resp = client.get("/api/notifications", headers=staff_headers)
        assert resp.json["unread"] == 1

        resp = client.post(f"/api/notifications/{notification_id}/read", headers=staff_headers)
        assert resp.status_code == 200

        resp = client.get("/api/notifications", headers=staff_headers)
        assert resp.json["unread"] == 0

    def test_private_notification_hidden_from_others(self, client, admin_headers, admin_user, staff_headers):
        client.post(
            "/api/notifications",
            json={"title": "For admin", "user_id": admin_user.id},
            headers=admin_headers,
        )
        assert client.get("/api/notifications", headers=staff_headers).json["items"] == []
        assert len(client.get("/api/notifications", headers=admin_headers).json["items"]) == 1

    def test_mark_missing(self, client, staff_headers):
        assert client.post("/api/notifications/424242/read", headers=staff_headers).status_code == 404
