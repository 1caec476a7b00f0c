"""Customer order history and order detail."""

from protean.utils.globals import current_domain

from ordering.exceptions import OrderNotFoundError
from ordering.order.order import Order
from ordering.projections.common import check_paging, orders, pagination


def get_customer_orders(customer_id, status=None, page: int = 1, limit: int | None = None) -> dict:
    """Return one page of the customer's orders, newest first.

    ``status`` filters on the overall order status. The result holds the
    ``orders`` themselves and a ``pagination`` block.
    """
    if limit is None:
        limit = int(current_domain.DEFAULT_PAGE_SIZE)
    check_paging(page, limit)

    query = orders().filter(customer_id=str(customer_id))
    if status is not None:
        query = query.filter(overall_status=getattr(status, "value", status))

    results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "orders": list(results.items),
        "pagination": pagination(page, limit, results.total),
    }


def get_order_details(order_id, customer_id) -> Order:
    """Return the order if it belongs to ``customer_id``.

    Someone else's order is reported as not found, so order ids cannot be
    enumerated across customers.
    """
    order = current_domain.repository_for(Order).get_order(order_id)
    if order.customer_id != str(customer_id):
        raise OrderNotFoundError({"order_id": [f"Order {order_id} not found"]})
    return order
