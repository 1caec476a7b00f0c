"""Customer-facing shipment tracking for one order."""

from protean.utils.globals import current_domain

from ordering.exceptions import OrderNotFoundError
from ordering.order.order import Order, as_utc

_TRACKED_ITEM_FIELDS = ("product_id", "name", "quantity", "size", "color")


def _iso(value):
    return as_utc(value).isoformat() if value is not None else None


def track_order(order_number, customer_id) -> dict:
    """Return carrier, tracking and status history for each sub-order.

    Money, addresses and admin fields are left out; only what a customer
    needs to follow their parcels is returned.
    """
    order = current_domain.repository_for(Order).get_by_number(order_number)
    if order.customer_id != str(customer_id):
        raise OrderNotFoundError({"order_number": [f"Order {order_number} not found"]})

    sub_orders = order.ordered_sub_orders()
    estimates = [as_utc(sub.estimated_delivery) for sub in sub_orders if sub.estimated_delivery is not None]
    return {
        "order_number": order.order_number,
        "overall_status": order.overall_status,
        "created_at": _iso(order.created_at),
        "expected_delivery_date": max(estimates).isoformat() if estimates else None,
        "sub_order_tracking": [
            {
                "sub_order_id": sub.sub_order_id,
                "merchant_id": sub.merchant_id,
                "status": sub.status,
                "tracking_number": sub.tracking_number,
                "shipping_carrier": sub.shipping_carrier,
                "shipping_method": sub.shipping_method,
                "estimated_delivery": _iso(sub.estimated_delivery),
                "shipped_at": _iso(sub.shipped_at),
                "delivered_at": _iso(sub.delivered_at),
                "status_history": [entry.to_dict() for entry in sub.status_history],
                "items": [
                    {name: getattr(item, name) for name in _TRACKED_ITEM_FIELDS} for item in sub.items
                ],
            }
            for sub in sub_orders
        ],
    }
