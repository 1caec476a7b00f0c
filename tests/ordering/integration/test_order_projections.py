"""Integration tests for the customer, merchant and admin read models."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.exceptions import OrderNotFoundError, ValidationError
from ordering.order.fulfillment import add_tracking_info, update_sub_order_status
from ordering.order.order import Actor, Order
from ordering.order.status import SubOrderStatus
from ordering.projections.customer_orders import get_customer_orders, get_order_details
from ordering.projections.merchant_orders import get_merchant_dashboard, get_merchant_order_stats, get_merchant_orders
from ordering.projections.order_analytics import get_all_orders, get_order_analytics
from ordering.projections.order_tracking import track_order
from protean import current_domain

ADMIN = Actor.admin()


def _ready_to_ship(order, sub_order_id):
    for status in (SubOrderStatus.CONFIRMED, SubOrderStatus.PROCESSING, SubOrderStatus.READY_TO_SHIP):
        update_sub_order_status(order.id, sub_order_id, status, ADMIN)


def _rewrite_stored(order_id, change):
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    change(order)
    repo.add(order)


@pytest.fixture()
def three_orders(place_order):
    """Three orders for cust-001, oldest first, and one for cust-002."""
    orders = [
        place_order([("prod-x1", 1)]),
        place_order([("prod-y1", 1)]),
        place_order([("prod-x2", 1), ("prod-y1", 2)]),
    ]
    place_order([("prod-z1", 1)], customer_id="cust-002")
    return orders


class TestCustomerOrders:
    def test_newest_first(self, three_orders):
        result = get_customer_orders("cust-001")
        assert [str(o.id) for o in result["orders"]] == [str(o.id) for o in reversed(three_orders)]

    def test_only_the_customers_orders(self, three_orders):
        result = get_customer_orders("cust-002")
        assert len(result["orders"]) == 1
        assert result["orders"][0].customer_id == "cust-002"

    def test_pagination(self, three_orders):
        first = get_customer_orders("cust-001", page=1, limit=2)
        second = get_customer_orders("cust-001", page=2, limit=2)

        assert len(first["orders"]) == 2
        assert first["pagination"] == {
            "current_page": 1,
            "total_pages": 2,
            "total_orders": 3,
            "has_next_page": True,
            "has_prev_page": False,
        }
        assert [o.id for o in second["orders"]] == [str(three_orders[0].id)]
        assert second["pagination"]["has_next_page"] is False
        assert second["pagination"]["has_prev_page"] is True

    def test_status_filter(self, three_orders):
        cancelled = three_orders[1]
        sub_order_id = cancelled.ordered_sub_orders()[0].sub_order_id
        update_sub_order_status(cancelled.id, sub_order_id, SubOrderStatus.CANCELLED, Actor.customer("cust-001"))

        result = get_customer_orders("cust-001", status="cancelled")
        assert [str(o.id) for o in result["orders"]] == [str(cancelled.id)]
        assert get_customer_orders("cust-001", status=SubOrderStatus.PENDING)["pagination"]["total_orders"] == 2

    def test_no_orders(self):
        result = get_customer_orders("cust-nobody")
        assert result["orders"] == []
        assert result["pagination"]["total_pages"] == 0
        assert result["pagination"]["has_next_page"] is False

    def test_invalid_page(self):
        with pytest.raises(ValidationError):
            get_customer_orders("cust-001", page=0)

    @pytest.mark.parametrize(
        "list_orders",
        [
            lambda **paging: get_customer_orders("cust-001", **paging),
            lambda **paging: get_merchant_orders("merchant-x", **paging),
            lambda **paging: get_all_orders(**paging),
        ],
    )
    def test_zero_limit_is_rejected(self, list_orders):
        with pytest.raises(ValidationError) as exc:
            list_orders(limit=0)
        assert "limit" in exc.value.messages

    def test_order_details(self, multi_merchant_order):
        order = get_order_details(multi_merchant_order.id, "cust-001")
        assert order.order_number == multi_merchant_order.order_number

    def test_order_details_of_another_customer(self, multi_merchant_order):
        with pytest.raises(OrderNotFoundError):
            get_order_details(multi_merchant_order.id, "cust-002")


class TestTrackOrder:
    def test_tracking_projection(self, multi_merchant_order):
        sub_order_id = multi_merchant_order.ordered_sub_orders()[0].sub_order_id
        for status in (SubOrderStatus.CONFIRMED, SubOrderStatus.PROCESSING, SubOrderStatus.READY_TO_SHIP):
            update_sub_order_status(multi_merchant_order.id, sub_order_id, status, ADMIN)
        add_tracking_info(
            multi_merchant_order.id, sub_order_id, {"tracking_number": "1Z999", "shipping_carrier": "UPS"}
        )

        tracking = track_order(multi_merchant_order.order_number, "cust-001")

        assert tracking["order_number"] == multi_merchant_order.order_number
        assert tracking["overall_status"] == "partially_shipped"
        shipped, waiting = tracking["sub_order_tracking"]
        assert shipped["sub_order_id"] == sub_order_id
        assert shipped["merchant_id"] == "merchant-x"
        assert shipped["status"] == "shipped"
        assert shipped["tracking_number"] == "1Z999"
        assert shipped["shipping_carrier"] == "UPS"
        assert [entry["status"] for entry in shipped["status_history"]] == [
            "pending",
            "confirmed",
            "processing",
            "ready_to_ship",
            "shipped",
        ]
        assert waiting["tracking_number"] is None
        assert waiting["items"][0]["name"] == "Desk Lamp"

    def test_tracking_leaves_out_money_and_addresses(self, multi_merchant_order):
        tracking = track_order(multi_merchant_order.order_number, "cust-001")
        assert "grand_total" not in tracking
        assert "shipping_address" not in tracking
        assert "unit_price" not in tracking["sub_order_tracking"][0]["items"][0]

    def test_expected_delivery_is_the_latest_estimate(self, multi_merchant_order):
        sub_order_x, sub_order_y = (s.sub_order_id for s in multi_merchant_order.ordered_sub_orders())
        for sub_order_id in (sub_order_x, sub_order_y):
            _ready_to_ship(multi_merchant_order, sub_order_id)
        add_tracking_info(
            multi_merchant_order.id,
            sub_order_x,
            {
                "tracking_number": "1Z1",
                "shipping_carrier": "UPS",
                "estimated_delivery": datetime(2030, 1, 4, 12, 0, tzinfo=UTC),
            },
        )
        add_tracking_info(multi_merchant_order.id, sub_order_y, {"tracking_number": "1Z2", "shipping_carrier": "DHL"})

        # Rows written before estimates were normalized still carry naive values
        def naive_estimate(order):
            order.get_sub_order(sub_order_y).estimated_delivery = datetime(2030, 1, 6, 8, 0)

        _rewrite_stored(multi_merchant_order.id, naive_estimate)

        tracking = track_order(multi_merchant_order.order_number, "cust-001")

        assert tracking["expected_delivery_date"] == "2030-01-06T08:00:00+00:00"
        assert tracking["sub_order_tracking"][0]["estimated_delivery"] == "2030-01-04T12:00:00+00:00"
        assert tracking["sub_order_tracking"][1]["estimated_delivery"] == "2030-01-06T08:00:00+00:00"

    def test_no_estimates_means_no_expected_delivery(self, multi_merchant_order):
        tracking = track_order(multi_merchant_order.order_number, "cust-001")
        assert tracking["expected_delivery_date"] is None

    def test_other_customers_cannot_track(self, multi_merchant_order):
        with pytest.raises(OrderNotFoundError):
            track_order(multi_merchant_order.order_number, "cust-002")

    def test_unknown_order_number(self):
        with pytest.raises(OrderNotFoundError):
            track_order("ORD-000000-XXXXXX", "cust-001")


class TestMerchantOrders:
    def test_one_row_per_sub_order(self, three_orders):
        result = get_merchant_orders("merchant-y")

        assert result["pagination"]["total_orders"] == 2
        assert [row["order_id"] for row in result["orders"]] == [str(three_orders[2].id), str(three_orders[1].id)]
        assert {row["sub_order_id"] for row in result["orders"]} == {
            three_orders[2].ordered_sub_orders()[1].sub_order_id,
            three_orders[1].ordered_sub_orders()[0].sub_order_id,
        }

    def test_rows_carry_only_the_merchants_items(self, three_orders):
        row = get_merchant_orders("merchant-y")["orders"][0]
        assert [item["product_id"] for item in row["items"]] == ["prod-y1"]
        assert row["total"] == three_orders[2].ordered_sub_orders()[1].total

    def test_customer_and_product_display_fields(self, multi_merchant_order):
        row = get_merchant_orders("merchant-y")["orders"][0]

        assert row["order_number"] == multi_merchant_order.order_number
        assert row["customer"] == {"customer_id": "cust-001", "full_name": "Jane Doe", "email": "jane@example.com"}
        assert row["products"] == [
            {"product_id": "prod-y1", "name": "Desk Lamp", "images": ["lamp-1.jpg", "lamp-2.jpg"]}
        ]
        assert row["shipping_address"]["city"] == "Springfield"

    def test_unknown_customer_display(self, place_order):
        place_order([("prod-x1", 1)], customer_id="cust-unlisted")
        row = get_merchant_orders("merchant-x")["orders"][0]
        assert row["customer"] == {"customer_id": "cust-unlisted", "full_name": None, "email": None}

    def test_status_filter(self, three_orders):
        order = three_orders[1]
        sub_order_id = order.ordered_sub_orders()[0].sub_order_id
        update_sub_order_status(order.id, sub_order_id, SubOrderStatus.CONFIRMED, Actor.merchant("merchant-y"))

        confirmed = get_merchant_orders("merchant-y", status="confirmed")
        assert [row["order_id"] for row in confirmed["orders"]] == [str(order.id)]
        assert confirmed["orders"][0]["status"] == "confirmed"

    def test_pagination(self, three_orders):
        result = get_merchant_orders("merchant-y", page=2, limit=1)
        assert [row["order_id"] for row in result["orders"]] == [str(three_orders[1].id)]
        assert result["pagination"]["total_pages"] == 2

    def test_merchant_without_orders(self, catalogue):
        assert get_merchant_orders("merchant-none")["orders"] == []


class TestMerchantStats:
    def test_stats(self, three_orders):
        stats = get_merchant_order_stats("merchant-y", "30d")
        totals = [three_orders[1].ordered_sub_orders()[0].total, three_orders[2].ordered_sub_orders()[1].total]

        assert stats["total_orders"] == 2
        assert stats["total_revenue"] == pytest.approx(sum(totals), abs=0.01)
        assert stats["average_order_value"] == pytest.approx(sum(totals) / 2, abs=0.01)
        assert stats["pending_orders"] == 2
        assert stats["shipped_orders"] == 0
        assert stats["delivered_orders"] == 0
        assert stats["time_range"] == "30d"

    def test_empty_stats(self):
        stats = get_merchant_order_stats("merchant-none", "7d")
        assert stats["total_orders"] == 0
        assert stats["total_revenue"] == 0
        assert stats["average_order_value"] == 0

    def test_unknown_time_range(self):
        with pytest.raises(ValidationError):
            get_merchant_order_stats("merchant-x", "1y")


class TestAdminViews:
    def test_all_orders(self, three_orders):
        result = get_all_orders()
        assert result["pagination"]["total_orders"] == 4

    def test_all_orders_by_merchant(self, three_orders):
        result = get_all_orders(merchant_id="merchant-x")
        assert {str(o.id) for o in result["orders"]} == {str(three_orders[0].id), str(three_orders[2].id)}

    def test_all_orders_by_status(self, three_orders):
        order = three_orders[0]
        sub_order_id = order.ordered_sub_orders()[0].sub_order_id
        update_sub_order_status(order.id, sub_order_id, SubOrderStatus.CONFIRMED, ADMIN)
        result = get_all_orders(status="confirmed")
        assert [str(o.id) for o in result["orders"]] == [str(order.id)]

    def test_analytics(self, three_orders):
        analytics = get_order_analytics("90d")
        stats = analytics["order_stats"]

        assert stats["total_orders"] == 4
        assert stats["multi_merchant_orders"] == 1
        assert stats["total_revenue"] > 0
        assert analytics["status_breakdown"] == [
            {"status": "pending", "count": 4, "revenue": stats["total_revenue"]}
        ]

    def test_merchant_breakdown_sorted_by_revenue(self, three_orders):
        breakdown = get_order_analytics("30d")["merchant_breakdown"]
        revenues = [entry["revenue"] for entry in breakdown]

        assert revenues == sorted(revenues, reverse=True)
        assert {entry["merchant_id"] for entry in breakdown} == {"merchant-x", "merchant-y", "merchant-z"}
        merchant_y = next(entry for entry in breakdown if entry["merchant_id"] == "merchant-y")
        assert merchant_y["order_count"] == 2


class TestMerchantDashboard:
    def test_recent_and_pending_orders(self, three_orders):
        dashboard = get_merchant_dashboard("merchant-y")

        assert dashboard["merchant_id"] == "merchant-y"
        assert [row["order_id"] for row in dashboard["recent_orders"]] == [
            str(three_orders[2].id),
            str(three_orders[1].id),
        ]
        assert {row["status"] for row in dashboard["pending_orders"]} == {"pending"}
        assert len(dashboard["pending_orders"]) == 2

    def test_recent_orders_are_capped(self, place_order):
        for _ in range(7):
            place_order([("prod-z1", 1)])

        dashboard = get_merchant_dashboard("merchant-z")

        assert len(dashboard["recent_orders"]) == 5
        assert len(dashboard["pending_orders"]) == 7
        assert dashboard["alerts"]["pending_order_count"] == 7

    def test_pending_orders_are_capped_but_counted(self, place_order):
        for _ in range(12):
            place_order([("prod-z1", 1)])

        dashboard = get_merchant_dashboard("merchant-z")

        assert len(dashboard["pending_orders"]) == 10
        assert dashboard["alerts"]["pending_order_count"] == 12

    def test_confirmed_orders_leave_the_pending_list(self, three_orders):
        order = three_orders[1]
        sub_order_id = order.ordered_sub_orders()[0].sub_order_id
        update_sub_order_status(order.id, sub_order_id, SubOrderStatus.CONFIRMED, Actor.merchant("merchant-y"))

        dashboard = get_merchant_dashboard("merchant-y")

        assert [row["sub_order_id"] for row in dashboard["pending_orders"]] == [
            three_orders[2].ordered_sub_orders()[1].sub_order_id
        ]
        assert dashboard["alerts"]["pending_order_count"] == 1
        assert len(dashboard["recent_orders"]) == 2

    def test_today_stats_count_only_todays_sub_orders(self, three_orders):
        older = three_orders[1]

        def placed_two_days_ago(order):
            order.ordered_sub_orders()[0].created_at = datetime.now(UTC) - timedelta(days=2)

        _rewrite_stored(older.id, placed_two_days_ago)

        dashboard = get_merchant_dashboard("merchant-y")

        todays_total = three_orders[2].ordered_sub_orders()[1].total
        assert dashboard["today_stats"] == {"today_orders": 1, "today_revenue": todays_total}

    def test_alerts(self, three_orders):
        alerts = get_merchant_dashboard("merchant-x")["alerts"]
        assert alerts == {"pending_order_count": 2, "low_stock_items": [], "shipping_delays": []}

    def test_merchant_without_orders(self, catalogue):
        dashboard = get_merchant_dashboard("merchant-none")

        assert dashboard["recent_orders"] == []
        assert dashboard["pending_orders"] == []
        assert dashboard["today_stats"] == {"today_orders": 0, "today_revenue": 0.0}
        assert dashboard["alerts"]["pending_order_count"] == 0
