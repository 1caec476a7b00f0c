"""Admin views across every customer and merchant."""

from collections import defaultdict

from protean.utils.globals import current_domain

from ordering.order.order import money
from ordering.projections.common import check_paging, orders, pagination, reporting_window, sub_orders

TOP_MERCHANTS = 10


def get_all_orders(status=None, merchant_id=None, page: int = 1, limit: int | None = None) -> dict:
    """Return one page of all orders, newest first.

    ``status`` filters on the overall status; ``merchant_id`` keeps orders
    with at least one sub-order from that merchant.
    """
    if limit is None:
        limit = int(current_domain.MERCHANT_PAGE_SIZE)
    check_paging(page, limit)

    query = orders()
    if status is not None:
        query = query.filter(overall_status=getattr(status, "value", status))
    if merchant_id is not None:
        shares = sub_orders().filter(merchant_id=str(merchant_id)).limit(None).all().items
        order_ids = list(dict.fromkeys(sub.order_id for sub in shares))
        if not order_ids:
            return {"orders": [], "pagination": pagination(page, limit, 0)}
        query = query.filter(id__in=order_ids)

    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": list(results.items),
        "pagination": pagination(page, limit, results.total),
    }


def get_order_analytics(time_range: str = "30d") -> dict:
    """Order volume, revenue and the top merchants by revenue for a period."""
    start, end = reporting_window(time_range)
    placed = orders().filter(created_at__gte=start).limit(None).all().items
    shares = sub_orders().filter(created_at__gte=start).limit(None).all().items

    total_revenue = sum(order.grand_total for order in placed)

    by_status = defaultdict(lambda: {"count": 0, "revenue": 0.0})
    for order in placed:
        by_status[order.overall_status]["count"] += 1
        by_status[order.overall_status]["revenue"] += order.grand_total

    by_merchant = defaultdict(lambda: {"order_count": 0, "revenue": 0.0})
    for sub in shares:
        by_merchant[sub.merchant_id]["order_count"] += 1
        by_merchant[sub.merchant_id]["revenue"] += sub.total
    top_merchants = sorted(by_merchant.items(), key=lambda pair: (-pair[1]["revenue"], pair[0]))[:TOP_MERCHANTS]

    return {
        "order_stats": {
            "total_orders": len(placed),
            "total_revenue": money(total_revenue),
            "average_order_value": money(total_revenue / len(placed)) if placed else 0.0,
            "multi_merchant_orders": sum(1 for order in placed if order.is_multi_merchant),
        },
        "status_breakdown": [
            {"status": status, "count": row["count"], "revenue": money(row["revenue"])}
            for status, row in sorted(by_status.items())
        ],
        "merchant_breakdown": [
            {"merchant_id": merchant_id, "order_count": row["order_count"], "revenue": money(row["revenue"])}
            for merchant_id, row in top_merchants
        ],
        "time_range": time_range,
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
    }
