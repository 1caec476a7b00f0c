"""Paging, reporting-window and serialization helpers shared by the read models."""

import math
from datetime import UTC, datetime, timedelta

from protean.utils.globals import current_domain

from ordering.exceptions import ValidationError
from ordering.order.order import Order, SubOrder

TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90}


def check_paging(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError({"page": ["Page must be 1 or greater"]})
    if limit < 1 or limit > 100:
        raise ValidationError({"limit": ["Limit must be between 1 and 100"]})


def pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit)
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_orders": total,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def reporting_window(time_range: str) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` for a ``7d``/``30d``/``90d`` range ending now."""
    if time_range not in TIME_RANGES:
        raise ValidationError({"time_range": [f"time_range must be one of {', '.join(TIME_RANGES)}"]})
    end = datetime.now(UTC)
    return end - timedelta(days=TIME_RANGES[time_range]), end


def orders():
    return current_domain.repository_for(Order).query


def sub_orders():
    return current_domain.repository_for(SubOrder).query


def order_view(order: Order) -> dict:
    """The full order as plain data, sub-orders in cart order, with its version."""
    data = order.to_dict()
    data["sub_orders"] = [sub.to_dict() for sub in order.ordered_sub_orders()]
    data["version"] = order._version
    return data
