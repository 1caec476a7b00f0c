"""Sub-order lifecycle and overall order status.

Sub-order state machine (one per merchant):
    pending → confirmed → processing → ready_to_ship → shipped → delivered
    delivered → returned → refunded
    pending/confirmed/processing/ready_to_ship → cancelled

Once a sub-order ships it can no longer be cancelled; only the return flow
applies. ``cancelled`` and ``refunded`` are terminal.

The overall order status is never set directly. It is derived from the
multiset of sub-order statuses by ``reduce_overall_status``.
"""

from collections.abc import Iterable
from enum import Enum


class SubOrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class OverallStatus(Enum):
    PENDING = "pending"
    PARTIALLY_CONFIRMED = "partially_confirmed"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_TO_SHIP = "ready_to_ship"
    PARTIALLY_SHIPPED = "partially_shipped"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    # Never produced by the reducer: a mixed delivered/returned set is RETURNED
    PARTIALLY_RETURNED = "partially_returned"
    RETURNED = "returned"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    SubOrderStatus.PENDING: {SubOrderStatus.CONFIRMED, SubOrderStatus.CANCELLED},
    SubOrderStatus.CONFIRMED: {SubOrderStatus.PROCESSING, SubOrderStatus.CANCELLED},
    SubOrderStatus.PROCESSING: {SubOrderStatus.READY_TO_SHIP, SubOrderStatus.CANCELLED},
    SubOrderStatus.READY_TO_SHIP: {SubOrderStatus.SHIPPED, SubOrderStatus.CANCELLED},
    SubOrderStatus.SHIPPED: {SubOrderStatus.DELIVERED},
    SubOrderStatus.DELIVERED: {SubOrderStatus.RETURNED},
    SubOrderStatus.RETURNED: {SubOrderStatus.REFUNDED},
    SubOrderStatus.CANCELLED: set(),  # Terminal
    SubOrderStatus.REFUNDED: set(),  # Terminal
}

# Transitions a customer may trigger on their own sub-orders
_CUSTOMER_TRANSITIONS = {
    SubOrderStatus.PENDING: {SubOrderStatus.CANCELLED},
    SubOrderStatus.CONFIRMED: {SubOrderStatus.CANCELLED},
    SubOrderStatus.DELIVERED: {SubOrderStatus.RETURNED},
}

_RETURN_FLOW = {SubOrderStatus.DELIVERED, SubOrderStatus.RETURNED}


def can_transition(current, target) -> bool:
    """Return True if ``target`` is reachable from ``current`` in one step."""
    return SubOrderStatus(target) in _VALID_TRANSITIONS[SubOrderStatus(current)]


def customer_can_transition(current, target) -> bool:
    return SubOrderStatus(target) in _CUSTOMER_TRANSITIONS.get(SubOrderStatus(current), set())


def is_terminal(status) -> bool:
    return not _VALID_TRANSITIONS[SubOrderStatus(status)]


def reduce_overall_status(statuses: Iterable) -> OverallStatus:
    """Derive the overall order status from sub-order statuses.

    Rules are evaluated in order and the first match wins:

    1. every sub-order shares one status → that status
    2. any sub-order cancelled → cancelled
    3. every sub-order delivered or returned → returned
    4. any sub-order shipped → partially_shipped
    5. any sub-order confirmed → partially_confirmed
    6. otherwise → processing

    The result depends only on the multiset of statuses, never on their order.
    """
    members = {SubOrderStatus(s) for s in statuses}
    if not members:
        raise ValueError("An order must have at least one sub-order")

    if len(members) == 1:
        return OverallStatus(members.pop().value)
    if SubOrderStatus.CANCELLED in members:
        return OverallStatus.CANCELLED
    if members <= _RETURN_FLOW:
        # Pure delivered sets are caught by rule 1, so a returned one is present
        return OverallStatus.RETURNED
    if SubOrderStatus.SHIPPED in members:
        return OverallStatus.PARTIALLY_SHIPPED
    if SubOrderStatus.CONFIRMED in members:
        return OverallStatus.PARTIALLY_CONFIRMED
    return OverallStatus.PROCESSING
