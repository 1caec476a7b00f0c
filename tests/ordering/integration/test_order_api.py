"""Integration tests for the ordering FastAPI endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import admin_router, merchant_router, order_router, register_exception_handlers
from ordering.order.order import Order
from protean import current_domain

CUSTOMER = {"X-Customer-Id": "cust-001"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(order_router)
    app.include_router(merchant_router)
    app.include_router(admin_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def created(client, address, catalogue, cart_store, notifier):
    """An order placed through the API: two merchant-x items and one merchant-y item."""
    cart_store.add_item("cust-001", "prod-x1", 1)
    cart_store.add_item("cust-001", "prod-x2", 2)
    cart_store.add_item("cust-001", "prod-y1", 1)
    response = client.post(
        "/orders",
        json={"shipping_address": address, "payment_method": "credit_card"},
        headers=CUSTOMER,
    )
    assert response.status_code == 201
    return response.json()


def _status_url(order, index, merchant_id=None):
    sub_order_id = order["sub_orders"][index]["sub_order_id"]
    if merchant_id is None:
        return f"/admin/orders/{order['id']}/sub-orders/{sub_order_id}/status"
    return f"/merchants/{merchant_id}/orders/{order['id']}/sub-orders/{sub_order_id}/status"


class TestCreateOrderEndpoint:
    def test_create_order(self, created):
        assert created["customer_id"] == "cust-001"
        assert created["overall_status"] == "pending"
        assert created["grand_total"] == 109.63
        assert [s["merchant_id"] for s in created["sub_orders"]] == ["merchant-x", "merchant-y"]

        stored = current_domain.repository_for(Order).get(created["id"])
        assert stored.order_number == created["order_number"]

    def test_empty_cart(self, client, address, catalogue, cart_store, notifier):
        response = client.post(
            "/orders",
            json={"shipping_address": address, "payment_method": "credit_card"},
            headers=CUSTOMER,
        )
        assert response.status_code == 400
        assert "error" in response.json()

    def test_blank_address_field(self, client, address, catalogue, cart_store, notifier):
        cart_store.add_item("cust-001", "prod-x1", 1)
        response = client.post(
            "/orders",
            json={"shipping_address": {**address, "city": "  "}, "payment_method": "credit_card"},
            headers=CUSTOMER,
        )
        assert response.status_code == 400
        assert "shipping_address" in response.json()["error"]

    def test_missing_customer_header(self, client, address):
        response = client.post("/orders", json={"shipping_address": address, "payment_method": "credit_card"})
        assert response.status_code == 422

    def test_unknown_payment_method(self, client, address, catalogue, cart_store, notifier):
        cart_store.add_item("cust-001", "prod-x1", 1)
        response = client.post(
            "/orders",
            json={"shipping_address": address, "payment_method": "barter"},
            headers=CUSTOMER,
        )
        assert response.status_code == 422


class TestCustomerEndpoints:
    def test_list_orders(self, client, created):
        response = client.get("/orders", headers=CUSTOMER)
        assert response.status_code == 200
        body = response.json()
        assert [o["id"] for o in body["orders"]] == [created["id"]]
        assert body["pagination"]["total_orders"] == 1

    def test_list_rejects_large_limit(self, client, created):
        response = client.get("/orders", params={"limit": 500}, headers=CUSTOMER)
        assert response.status_code == 422

    def test_get_order(self, client, created):
        response = client.get(f"/orders/{created['id']}", headers=CUSTOMER)
        assert response.status_code == 200
        assert response.json()["order_number"] == created["order_number"]

    def test_other_customers_order_is_not_found(self, client, created):
        response = client.get(f"/orders/{created['id']}", headers={"X-Customer-Id": "cust-002"})
        assert response.status_code == 404
        assert "error" in response.json()

    def test_track_order(self, client, created):
        response = client.get(f"/orders/track/{created['order_number']}", headers=CUSTOMER)
        assert response.status_code == 200
        body = response.json()
        assert len(body["sub_order_tracking"]) == 2
        assert "grand_total" not in body

    def test_cancel_sub_order(self, client, created):
        sub_order_id = created["sub_orders"][1]["sub_order_id"]
        response = client.put(
            f"/orders/{created['id']}/sub-orders/{sub_order_id}/cancel",
            json={"reason": "Changed my mind"},
            headers=CUSTOMER,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["overall_status"] == "cancelled"
        assert body["version"] == 1

    def test_cancel_someone_elses_sub_order(self, client, created):
        sub_order_id = created["sub_orders"][0]["sub_order_id"]
        response = client.put(
            f"/orders/{created['id']}/sub-orders/{sub_order_id}/cancel",
            json={},
            headers={"X-Customer-Id": "cust-002"},
        )
        assert response.status_code == 403

    def test_return_before_delivery_is_rejected(self, client, created):
        sub_order_id = created["sub_orders"][0]["sub_order_id"]
        response = client.put(
            f"/orders/{created['id']}/sub-orders/{sub_order_id}/return",
            json={"reason": "Too small"},
            headers=CUSTOMER,
        )
        assert response.status_code == 400


class TestMerchantEndpoints:
    def test_update_status(self, client, created):
        response = client.put(
            _status_url(created, 0, "merchant-x"),
            json={"status": "confirmed", "notes": "On it"},
            headers={"X-User-Id": "user-x"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["overall_status"] == "partially_confirmed"

    def test_foreign_merchant_is_forbidden(self, client, created):
        response = client.put(_status_url(created, 0, "merchant-y"), json={"status": "confirmed"})
        assert response.status_code == 403

    def test_invalid_transition(self, client, created):
        response = client.put(_status_url(created, 0, "merchant-x"), json={"status": "delivered"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_unknown_status_value(self, client, created):
        response = client.put(_status_url(created, 0, "merchant-x"), json={"status": "teleported"})
        assert response.status_code == 422

    def test_unknown_sub_order(self, client, created):
        response = client.put(
            f"/merchants/merchant-x/orders/{created['id']}/sub-orders/SUB-000000-000000/status",
            json={"status": "confirmed"},
        )
        assert response.status_code == 404

    def test_add_tracking(self, client, created):
        for status in ("confirmed", "processing", "ready_to_ship"):
            client.put(_status_url(created, 0, "merchant-x"), json={"status": status})

        sub_order_id = created["sub_orders"][0]["sub_order_id"]
        response = client.put(
            f"/merchants/merchant-x/orders/{created['id']}/sub-orders/{sub_order_id}/tracking",
            json={"tracking_number": "1Z999", "shipping_carrier": "UPS", "shipping_method": "express"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "shipped"

        stored = current_domain.repository_for(Order).get(created["id"]).get_sub_order(sub_order_id)
        assert stored.tracking_number == "1Z999"
        assert stored.shipping_method == "express"

    def test_list_merchant_orders(self, client, created):
        response = client.get("/merchants/merchant-y/orders")
        assert response.status_code == 200
        rows = response.json()["orders"]
        assert len(rows) == 1
        assert rows[0]["order_number"] == created["order_number"]
        assert rows[0]["customer"]["full_name"] == "Jane Doe"

    def test_merchant_stats(self, client, created):
        response = client.get("/merchants/merchant-x/orders/stats", params={"time_range": "7d"})
        assert response.status_code == 200
        stats = response.json()
        assert stats["total_orders"] == 1
        assert stats["total_revenue"] == 60.24

    def test_merchant_dashboard(self, client, created):
        response = client.get("/merchants/merchant-x/orders/dashboard")
        assert response.status_code == 200
        body = response.json()
        assert body["merchant_id"] == "merchant-x"
        assert [row["order_number"] for row in body["recent_orders"]] == [created["order_number"]]
        assert [row["status"] for row in body["pending_orders"]] == ["pending"]
        assert body["today_stats"] == {"today_orders": 1, "today_revenue": 60.24}
        assert body["alerts"] == {"pending_order_count": 1, "low_stock_items": [], "shipping_delays": []}

    def test_merchant_dashboard_without_orders(self, client):
        response = client.get("/merchants/merchant-none/orders/dashboard")
        assert response.status_code == 200
        assert response.json()["recent_orders"] == []

    def test_merchant_stats_unknown_range(self, client, created):
        response = client.get("/merchants/merchant-x/orders/stats", params={"time_range": "1y"})
        assert response.status_code == 422


class TestAdminEndpoints:
    def test_list_all_orders(self, client, created):
        response = client.get("/admin/orders", params={"merchant_id": "merchant-y"})
        assert response.status_code == 200
        assert [o["id"] for o in response.json()["orders"]] == [created["id"]]

    def test_analytics(self, client, created):
        response = client.get("/admin/orders/analytics")
        assert response.status_code == 200
        body = response.json()
        assert body["order_stats"]["total_orders"] == 1
        assert body["order_stats"]["multi_merchant_orders"] == 1
        assert body["time_range"] == "30d"

    def test_update_admin_fields(self, client, created):
        response = client.put(
            f"/admin/orders/{created['id']}",
            json={"admin_notes": "Call first", "priority": "high", "tags": ["vip"]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["priority"] == "high"
        assert body["tags"] == ["vip"]
        assert body["version"] == 1

    def test_admin_can_move_any_sub_order(self, client, created):
        response = client.put(
            _status_url(created, 1),
            json={"status": "cancelled", "notes": "Out of stock"},
            headers={"X-Admin-Id": "admin-001"},
        )
        assert response.status_code == 200
        assert response.json()["overall_status"] == "cancelled"

    def test_unknown_order(self, client):
        response = client.put("/admin/orders/no-such-order", json={"admin_notes": "x"})
        assert response.status_code == 404
