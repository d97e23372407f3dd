"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Staff role denied catalog and ledger writes (403)
- Admin role can perform privileged operations
- Login, logout and current-user round trip
"""

import pytest

from conftest import get_auth_token, auth_headers


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("PUT", "/api/orders/1/status"),
            ("PUT", "/api/orders/1/payment-status"),
            ("DELETE", "/api/orders/1"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/low-stock"),
            ("GET", "/api/categories"),
            ("GET", "/api/restaurant"),
            ("PUT", "/api/restaurant"),
            ("GET", "/api/dashboard/stats"),
            ("GET", "/api/dashboard/top-products"),
            ("GET", "/api/dashboard/recent-orders"),
            ("GET", "/api/inventory/transactions"),
            ("POST", "/api/inventory/transactions"),
            ("GET", "/api/notifications"),
            ("GET", "/api/auth/user"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token(self, client, db_session):
        resp = client.get("/api/orders", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"


# =============================================================================
# STAFF DENIED PRIVILEGED OPERATIONS: 403
# =============================================================================


class TestStaffDeniedPrivileged:
    def test_cannot_create_product(self, client, staff_headers):
        resp = client.post("/api/products", json={"name": "Soup", "price_cents": 500}, headers=staff_headers)
        assert resp.status_code == 403

    def test_cannot_record_inventory(self, client, staff_headers, burger):
        resp = client.post(
            "/api/inventory/transactions",
            json={"product_id": burger.id, "type": "purchase", "quantity_delta": 5},
            headers=staff_headers,
        )
        assert resp.status_code == 403

    def test_cannot_delete_order(self, client, staff_headers):
        resp = client.delete("/api/orders/1", headers=staff_headers)
        assert resp.status_code == 403

    def test_cannot_edit_restaurant(self, client, staff_headers):
        resp = client.put("/api/restaurant", json={"name": "Mine"}, headers=staff_headers)
        assert resp.status_code == 403

    def test_can_read_products(self, client, staff_headers, burger):
        resp = client.get("/api/products", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLoginFlow:
    def test_login_and_current_user(self, client, admin_user):
        token = get_auth_token(client, admin_user.email)
        assert token

        resp = client.get("/api/auth/user", headers=auth_headers(token))
        assert resp.status_code == 200
        assert resp.json["user"]["email"] == admin_user.email
        assert "password_hash" not in resp.json["user"]

    def test_bad_password(self, client, admin_user):
        resp = client.post("/api/auth/login", json={"email": admin_user.email, "password": "Nope123!x"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"email": "a@b.c"})
        assert resp.status_code == 400

    def test_logout_revokes_token(self, client, admin_user):
        token = get_auth_token(client, admin_user.email)

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        resp = client.get("/api/auth/user", headers=auth_headers(token))
        assert resp.status_code == 401
