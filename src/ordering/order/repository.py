"""Order repository: lookups by id and by customer-facing order number."""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.exceptions import OrderNotFoundError
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def get_order(self, order_id) -> Order:
        try:
            return self.get(str(order_id))
        except ObjectNotFoundError:
            raise OrderNotFoundError({"order_id": [f"Order {order_id} not found"]}) from None

    def get_by_number(self, order_number) -> Order:
        try:
            return self.find_by(order_number=order_number)
        except ObjectNotFoundError:
            raise OrderNotFoundError({"order_number": [f"Order {order_number} not found"]}) from None
