"""Merchant views: one row per sub-order, summary stats and the dashboard."""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from ordering.catalogue import get_catalogue, get_customer_directory
from ordering.order.order import money
from ordering.order.status import SubOrderStatus
from ordering.projections.common import check_paging, orders, pagination, reporting_window, sub_orders


def _customer_view(customer_id) -> dict:
    profile = get_customer_directory().get_customer(customer_id)
    return {
        "customer_id": customer_id,
        "full_name": profile.full_name if profile else None,
        "email": profile.email if profile else None,
    }


def _product_views(items) -> list[dict]:
    catalogue = get_catalogue()
    views = []
    for item in items:
        product = catalogue.get_product(item["product_id"])
        views.append(
            {
                "product_id": item["product_id"],
                "name": product.name if product else item["name"],
                "images": list(product.images) if product else [],
            }
        )
    return views


def _merchant_row(order, sub_order) -> dict:
    sub = sub_order.to_dict()
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "sub_order_id": sub["sub_order_id"],
        "items": sub["items"],
        "subtotal": sub["subtotal"],
        "shipping_cost": sub["shipping_cost"],
        "tax": sub["tax"],
        "total": sub["total"],
        "status": sub["status"],
        "tracking_number": sub["tracking_number"],
        "shipping_carrier": sub["shipping_carrier"],
        "shipping_method": sub["shipping_method"],
        "estimated_delivery": sub["estimated_delivery"],
        "merchant_notes": sub["merchant_notes"],
        "customer_notes": sub["customer_notes"],
        "status_history": sub["status_history"],
        "customer": _customer_view(order.customer_id),
        "shipping_address": order.shipping_address.to_dict(),
        "created_at": order.created_at.isoformat(),
        "products": _product_views(sub["items"]),
    }


def _rows(page_of_sub_orders) -> list[dict]:
    order_ids = list(dict.fromkeys(sub.order_id for sub in page_of_sub_orders))
    if not order_ids:
        return []
    parents = {str(order.id): order for order in orders().filter(id__in=order_ids).limit(None).all().items}
    return [_merchant_row(parents[sub.order_id], sub) for sub in page_of_sub_orders if sub.order_id in parents]


def get_merchant_orders(merchant_id, status=None, page: int = 1, limit: int | None = None) -> dict:
    """Return one page of the merchant's sub-orders, newest first.

    Each row carries the sub-order, the parent order number and shipping
    address, and display fields for the customer and the products.
    """
    if limit is None:
        limit = int(current_domain.MERCHANT_PAGE_SIZE)
    check_paging(page, limit)

    query = sub_orders().filter(merchant_id=str(merchant_id))
    if status is not None:
        query = query.filter(status=getattr(status, "value", status))

    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": _rows(results.items),
        "pagination": pagination(page, limit, results.total),
    }


def get_merchant_order_stats(merchant_id, time_range: str = "30d") -> dict:
    start, end = reporting_window(time_range)
    shares = sub_orders().filter(merchant_id=str(merchant_id), created_at__gte=start).limit(None).all().items

    def count(status):
        return sum(1 for sub in shares if sub.status == status.value)

    total_revenue = sum(sub.total for sub in shares)
    return {
        "merchant_id": str(merchant_id),
        "total_orders": len(shares),
        "total_revenue": money(total_revenue),
        "pending_orders": count(SubOrderStatus.PENDING),
        "shipped_orders": count(SubOrderStatus.SHIPPED),
        "delivered_orders": count(SubOrderStatus.DELIVERED),
        "average_order_value": money(total_revenue / len(shares)) if shares else 0.0,
        "time_range": time_range,
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
    }


def get_merchant_dashboard(merchant_id) -> dict:
    """Landing-page summary for a merchant.

    Holds the latest sub-orders, the pending ones awaiting action, today's
    count and revenue (since midnight UTC) and the alert counters.
    """
    recent = get_merchant_orders(merchant_id, limit=int(current_domain.MERCHANT_DASHBOARD_RECENT))
    pending = get_merchant_orders(
        merchant_id,
        status=SubOrderStatus.PENDING,
        limit=int(current_domain.MERCHANT_DASHBOARD_PENDING),
    )

    midnight = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    today = sub_orders().filter(merchant_id=str(merchant_id), created_at__gte=midnight).limit(None).all().items

    return {
        "merchant_id": str(merchant_id),
        "recent_orders": recent["orders"],
        "pending_orders": pending["orders"],
        "today_stats": {
            "today_orders": len(today),
            "today_revenue": money(sum(sub.total for sub in today)),
        },
        "alerts": {
            "pending_order_count": pending["pagination"]["total_orders"],
            "low_stock_items": [],
            "shipping_delays": [],
        },
    }
