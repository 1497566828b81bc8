"""Integration tests for the HTTP surfaces.

Run with: pytest tests/test_api.py -v
"""

from fastapi.testclient import TestClient

from partybar.main import create_app
from partybar.store import MemoryStore


class TestLogin:
    """Tests for login, logout and /api/me."""

    def test_guest_login_without_event(self, api_client):
        response = api_client.post("/api/login/guest", json={"name": "Ana"})
        assert response.status_code == 400
        assert response.json()["code"] == "NO_ACTIVE_EVENT"

    def test_staff_login_creates_event(self, api_client):
        response = api_client.post(
            "/api/login/staff", json={"name": "Admin", "event_name": "Launch", "theme": "sunset"}
        )
        assert response.status_code == 201
        assert response.json()["redirect"] == "/admin"

        event = api_client.get("/api/event").json()
        assert event["name"] == "Launch"
        assert event["theme"] == "sunset"
        assert event["duration_hours"] == 5

    def test_kitchen_login(self, api_client):
        response = api_client.post("/api/login/staff", json={"name": "cozinha"})
        assert response.json()["user"]["role"] == "kitchen"
        assert response.json()["redirect"] == "/kitchen"

    def test_guest_me_shows_balance_and_time_left(self, api_client, guest_headers):
        body = api_client.get("/api/me", headers=guest_headers).json()
        assert body["user"]["coins"] == 3
        assert body["user"]["role"] == "guest"
        assert body["time_left_ms"] == 5 * 3_600_000

    def test_blank_name_rejected(self, api_client, admin_headers):
        assert api_client.post("/api/login/guest", json={"name": "  "}).status_code == 422

    def test_missing_session_key(self, api_client):
        response = api_client.get("/api/me")
        assert response.status_code == 401
        assert response.json() == {"code": "NOT_AUTHENTICATED", "detail": "Please log in", "redirect": "/"}

    def test_logout(self, api_client, guest_headers):
        assert api_client.post("/api/logout", headers=guest_headers).status_code == 204
        assert api_client.get("/api/me", headers=guest_headers).status_code == 401

    def test_terminals_have_independent_sessions(self, api_client, admin_headers, guest_headers):
        assert api_client.get("/api/me", headers=admin_headers).json()["user"]["role"] == "admin"
        assert api_client.get("/api/me", headers=guest_headers).json()["user"]["role"] == "guest"

    def test_guest_session_expires_with_event(self, api_client, guest_headers, clock):
        clock.advance(hours=5, ms=1)

        response = api_client.get("/api/orders", headers=guest_headers)
        assert response.status_code == 401
        assert response.json()["code"] == "SESSION_EXPIRED"
        assert response.json()["redirect"] == "/"

        again = api_client.get("/api/orders", headers=guest_headers)
        assert again.json()["code"] == "NOT_AUTHENTICATED"


class TestRoleGating:
    """Each role is redirected to its own surface."""

    def test_guest_on_kitchen_surface(self, api_client, guest_headers):
        response = api_client.get("/api/kitchen/orders", headers=guest_headers)
        assert response.status_code == 403
        assert response.json()["redirect"] == "/app"

    def test_kitchen_on_admin_surface(self, api_client, kitchen_headers):
        response = api_client.get("/api/admin/coin-codes", headers=kitchen_headers)
        assert response.status_code == 403
        assert response.json()["redirect"] == "/kitchen"

    def test_admin_on_guest_surface(self, api_client, admin_headers):
        response = api_client.post("/api/orders", json={"drink_id": "1"}, headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["redirect"] == "/admin"


class TestCoinFlow:
    """Tests for issuing and redeeming codes over HTTP."""

    def test_issue_and_redeem(self, api_client, admin_headers, guest_headers):
        issued = api_client.post(
            "/api/admin/coin-codes", json={"amount": 5, "code": "ab12cd"}, headers=admin_headers
        )
        assert issued.status_code == 201
        assert issued.json() == {"code": "AB12CD", "amount": 5, "redeemed_by": [], "redemptions": 0}

        redeemed = api_client.post("/api/coins/redeem", json={"code": "ab12cd"}, headers=guest_headers)
        assert redeemed.status_code == 200
        assert redeemed.json()["amount"] == 5
        assert redeemed.json()["coins"] == 8

        again = api_client.post("/api/coins/redeem", json={"code": "AB12CD"}, headers=guest_headers)
        assert again.status_code == 409
        assert again.json()["code"] == "ALREADY_REDEEMED"
        assert api_client.get("/api/me", headers=guest_headers).json()["user"]["coins"] == 8

        codes = api_client.get("/api/admin/coin-codes", headers=admin_headers).json()
        assert codes[0]["redemptions"] == 1

    def test_invalid_code(self, api_client, guest_headers):
        response = api_client.post("/api/coins/redeem", json={"code": "ZZZZZZ"}, headers=guest_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "COIN_CODE_NOT_FOUND"

    def test_non_positive_amount(self, api_client, admin_headers):
        response = api_client.post("/api/admin/coin-codes", json={"amount": 0}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_AMOUNT"

    def test_generated_code(self, api_client, admin_headers):
        body = api_client.post("/api/admin/coin-codes", json={"amount": 2}, headers=admin_headers).json()
        assert len(body["code"]) == 6
        assert body["code"] == body["code"].upper()

    def test_qr_png(self, api_client, admin_headers):
        api_client.post("/api/admin/coin-codes", json={"amount": 2, "code": "QR1234"}, headers=admin_headers)
        response = api_client.get("/api/admin/coin-codes/qr1234/qr", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")

    def test_qr_unknown_code(self, api_client, admin_headers):
        assert api_client.get("/api/admin/coin-codes/NOPE00/qr", headers=admin_headers).status_code == 404


class TestOrderFlow:
    """Guest orders travel through the kitchen pipeline."""

    def create_drink(self, api_client, admin_headers, cost=1):
        response = api_client.post(
            "/api/admin/drinks",
            json={"name": "Neon Sunset", "ingredients": ["Vodka"], "cost": cost},
            headers=admin_headers,
        )
        assert response.status_code == 201
        return response.json()

    def test_order_lifecycle(self, api_client, admin_headers, kitchen_headers, guest_headers):
        drink = self.create_drink(api_client, admin_headers)

        placed = api_client.post("/api/orders", json={"drink_id": drink["id"]}, headers=guest_headers)
        assert placed.status_code == 201
        order = placed.json()
        assert order["status"] == "pending"
        assert api_client.get("/api/me", headers=guest_headers).json()["user"]["coins"] == 2

        queue = api_client.get("/api/kitchen/orders", headers=kitchen_headers).json()
        assert [o["id"] for o in queue] == [order["id"]]

        statuses = [
            api_client.post(f"/api/kitchen/orders/{order['id']}/advance", headers=kitchen_headers).json()["status"]
            for _ in range(4)
        ]
        assert statuses == ["preparing", "ready", "delivered", "delivered"]

        assert api_client.get("/api/kitchen/orders", headers=kitchen_headers).json() == []
        mine = api_client.get("/api/orders", headers=guest_headers).json()
        assert mine[0]["status"] == "delivered"

    def test_insufficient_coins(self, api_client, admin_headers, guest_headers):
        drink = self.create_drink(api_client, admin_headers, cost=4)

        response = api_client.post("/api/orders", json={"drink_id": drink["id"]}, headers=guest_headers)
        assert response.status_code == 402
        assert response.json()["code"] == "INSUFFICIENT_COINS"
        assert api_client.get("/api/orders", headers=guest_headers).json() == []
        assert api_client.get("/api/me", headers=guest_headers).json()["user"]["coins"] == 3

    def test_unknown_drink(self, api_client, guest_headers):
        response = api_client.post("/api/orders", json={"drink_id": "nope"}, headers=guest_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "DRINK_NOT_FOUND"

    def test_advance_unknown_order(self, api_client, kitchen_headers):
        response = api_client.post("/api/kitchen/orders/nope/advance", headers=kitchen_headers)
        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"


class TestAdmin:
    """Tests for catalog and event management."""

    def test_drink_crud(self, api_client, admin_headers):
        created = api_client.post("/api/admin/drinks", json={"name": "Mojito"}, headers=admin_headers).json()

        updated = api_client.put(
            f"/api/admin/drinks/{created['id']}", json={"cost": 2}, headers=admin_headers
        )
        assert updated.json()["cost"] == 2
        assert [d["name"] for d in api_client.get("/api/drinks").json()] == ["Mojito"]

        assert api_client.delete(f"/api/admin/drinks/{created['id']}", headers=admin_headers).status_code == 204
        assert api_client.get("/api/drinks").json() == []

    def test_zero_cost_rejected(self, api_client, admin_headers):
        response = api_client.post("/api/admin/drinks", json={"name": "Free", "cost": 0}, headers=admin_headers)
        assert response.status_code == 422

    def test_describe_falls_back_without_key(self, api_client, admin_headers):
        response = api_client.post(
            "/api/admin/drinks/describe",
            json={"name": "Electric Blue", "ingredients": ["Gin", "Soda"]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert "Gin, Soda" in response.json()["description"]

    def test_update_event_theme(self, api_client, admin_headers):
        response = api_client.put("/api/admin/event", json={"theme": "black"}, headers=admin_headers)
        assert response.status_code == 200
        assert api_client.get("/api/event").json()["theme"] == "black"


class TestLifespan:
    """Startup seeds the catalog and runs the event poller."""

    def test_startup_seeds_and_serves_polled_event(self, clock):
        app = create_app(store=MemoryStore(), clock=clock, seed_drinks=True)

        with TestClient(app) as client:
            assert len(client.get("/api/drinks").json()) == 3
            assert app.state.event_poller.running
            assert client.get("/api/event").json() is None

            headers = {"X-Session-Key": client.post("/api/login/staff", json={"name": "Admin"}).json()["session_key"]}
            client.put("/api/admin/event", json={"theme": "clean"}, headers=headers)
            assert client.get("/api/event").json()["theme"] == "clean"

        assert not app.state.event_poller.running
