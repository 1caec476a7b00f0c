"""Domain events raised by the Order aggregate.

Events are versioned, immutable facts. They are dispatched to the event
handlers only after the unit of work that raised them has committed.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order with one sub-order per merchant."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    sub_orders = Text(required=True)  # JSON: [{sub_order_id, merchant_id, item_count, total}]
    grand_total = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class SubOrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    updated_by = String()
    updated_by_type = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OverallStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    affected_sub_orders = Text(required=True)  # JSON: list of sub-order ids
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class TrackingAdded:
    __version__ = 1

    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    tracking_number = String(required=True)
    shipping_carrier = String(required=True)
    shipped_at = DateTime()


@ordering.event(part_of="Order")
class SubOrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    merchant_id = Identifier(required=True)
    refund_amount = Float(required=True)
    refunded_at = DateTime(required=True)
