"""Order aggregate: one customer order split into per-merchant sub-orders.

The Order is the consistency boundary. Sub-orders are child entities with
no life outside their parent, so every change to a sub-order is saved
together with the recomputed overall status in one versioned write.

Derived fields (``merchant_count``, ``is_multi_merchant``, the monetary
aggregates and ``overall_status``) are recomputed by the aggregate and never
accepted from callers.
"""

import json
import secrets
import string
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.exceptions import (
    EmptyCartError,
    InvalidRefundError,
    InvalidTransitionError,
    SubOrderNotFoundError,
    UnauthorizedOrderAccessError,
)
from ordering.exceptions import ValidationError as OrderValidationError
from ordering.order.events import (
    OrderPlaced,
    OverallStatusChanged,
    SubOrderRefunded,
    SubOrderStatusChanged,
    TrackingAdded,
)
from ordering.order.status import (
    OverallStatus,
    SubOrderStatus,
    can_transition,
    customer_can_transition,
    reduce_overall_status,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ActorType(Enum):
    CUSTOMER = "customer"
    MERCHANT = "merchant"
    ADMIN = "admin"
    SYSTEM = "system"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    PHONEPE = "phonepe"
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    PICKUP = "pickup"


class ReturnStatus(Enum):
    NONE = "none"
    REQUESTED = "requested"
    APPROVED = "approved"
    RECEIVED = "received"
    REFUNDED = "refunded"


class Priority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def money(amount: float) -> float:
    """Round an amount to cents."""
    return round(float(amount) + 0.0, 2)


def as_utc(value):
    """Normalize a datetime (or ISO string) to aware UTC. Naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _epoch_suffix() -> str:
    return str(int(time.time() * 1000))[-6:]


def generate_order_number() -> str:
    alphabet = string.ascii_uppercase + string.digits
    random_part = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"ORD-{_epoch_suffix()}-{random_part}"


def generate_sub_order_id() -> str:
    return f"SUB-{_epoch_suffix()}-{secrets.token_hex(3).upper()}"


def _choice(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        raise OrderValidationError({field_name: [f"Unknown value: {value!r}"]}) from None


def parse_sub_order_status(value) -> SubOrderStatus:
    if isinstance(value, SubOrderStatus):
        return value
    try:
        return SubOrderStatus(value)
    except ValueError:
        raise InvalidTransitionError({"status": [f"Unknown sub-order status: {value!r}"]}) from None


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Actor:
    """Whoever is driving a change: the customer, a merchant user, or an admin."""

    type: ActorType
    id: str | None = None
    merchant_id: str | None = None

    @classmethod
    def customer(cls, customer_id):
        return cls(type=ActorType.CUSTOMER, id=str(customer_id))

    @classmethod
    def merchant(cls, merchant_id, user_id=None):
        return cls(type=ActorType.MERCHANT, id=user_id, merchant_id=str(merchant_id))

    @classmethod
    def admin(cls, user_id=None):
        return cls(type=ActorType.ADMIN, id=user_id)

    @classmethod
    def from_command(cls, command):
        return cls(
            type=ActorType(command.actor_type),
            id=command.actor_id,
            merchant_id=command.actor_merchant_id,
        )

    def as_command_fields(self) -> dict:
        return {
            "actor_type": self.type.value,
            "actor_id": self.id,
            "actor_merchant_id": self.merchant_id,
        }


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout time.

    The address is copied onto the order, so later edits to the customer's
    address book never change where an order was shipped.
    """

    full_name = String(required=True, max_length=255)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone_number = String(max_length=30)

    @invariant.post
    def required_lines_are_not_blank(self):
        blank = [
            name
            for name in ("full_name", "street", "city", "state", "postal_code", "country")
            if not (getattr(self, name) or "").strip()
        ]
        if blank:
            raise ValidationError({name: ["is required"] for name in blank})


@ordering.value_object(part_of="Order")
class OrderItem:
    """A line on a sub-order. Price and name are snapshots taken at checkout."""

    product_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    size = String(max_length=50)
    color = String(max_length=50)
    line_total = Float(default=0.0, min_value=0.0)

    @classmethod
    def snapshot(cls, product_id, name, quantity, unit_price, size=None, color=None):
        return cls(
            product_id=str(product_id),
            name=name,
            quantity=quantity,
            unit_price=money(unit_price),
            size=size,
            color=color,
            line_total=money(quantity * unit_price),
        )


@ordering.value_object(part_of="Order")
class StatusHistoryEntry:
    status = String(required=True, max_length=30)
    timestamp = DateTime(required=True)
    updated_by = String(max_length=255)
    updated_by_type = String(choices=ActorType, default=ActorType.SYSTEM.value)
    notes = Text()
    affected_sub_orders = List(content_type=String)


def _history_entry(status, at, actor=None, notes=None, affected=None):
    return StatusHistoryEntry(
        status=status,
        timestamp=at,
        updated_by=actor.id if actor else None,
        updated_by_type=actor.type.value if actor else ActorType.SYSTEM.value,
        notes=notes,
        affected_sub_orders=list(affected or []),
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class SubOrder:
    """The part of an order fulfilled by one merchant.

    Each sub-order walks its own lifecycle. Its items and money are fixed at
    creation; only status, shipping and return fields change afterwards.
    """

    sub_order_id = Identifier(identifier=True, default=generate_sub_order_id)
    merchant_id = Identifier(required=True)
    position = Integer(default=0)
    items = List(content_type=ValueObject(OrderItem))
    subtotal = Float(default=0.0, min_value=0.0)
    shipping_cost = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    status = String(choices=SubOrderStatus, default=SubOrderStatus.PENDING.value)
    status_history = List(content_type=ValueObject(StatusHistoryEntry))

    tracking_number = String(max_length=100)
    shipping_carrier = String(max_length=100)
    shipping_method = String(choices=ShippingMethod)
    estimated_delivery = DateTime()
    actual_delivery = DateTime()

    merchant_notes = Text()
    customer_notes = Text()

    packed_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    return_status = String(choices=ReturnStatus, default=ReturnStatus.NONE.value)
    return_reason = Text()
    refund_amount = Float(default=0.0, min_value=0.0)
    created_at = DateTime()

    @classmethod
    def create(cls, merchant_id, items, shipping_cost=0.0, tax=0.0, discount=0.0, customer_notes=None, position=0):
        if not items:
            raise EmptyCartError({"items": ["A sub-order needs at least one item"]})
        subtotal = money(sum(item.line_total for item in items))
        shipping_cost = money(shipping_cost)
        tax = money(tax)
        discount = money(discount)
        now = datetime.now(UTC)
        return cls(
            merchant_id=str(merchant_id),
            position=position,
            items=list(items),
            subtotal=subtotal,
            shipping_cost=shipping_cost,
            tax=tax,
            discount=discount,
            total=money(subtotal + shipping_cost + tax - discount),
            customer_notes=customer_notes,
            status=SubOrderStatus.PENDING.value,
            status_history=[
                _history_entry(
                    SubOrderStatus.PENDING.value,
                    now,
                    Actor(type=ActorType.CUSTOMER),
                    "Order placed by customer",
                )
            ],
            created_at=now,
        )

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def _record(self, target, actor, notes, at):
        self.status = target.value
        self.status_history = [*self.status_history, _history_entry(target.value, at, actor, notes)]
        if target == SubOrderStatus.READY_TO_SHIP:
            self.packed_at = at
        elif target == SubOrderStatus.SHIPPED:
            self.shipped_at = at
        elif target == SubOrderStatus.DELIVERED:
            self.delivered_at = at
            self.actual_delivery = at
        elif target == SubOrderStatus.CANCELLED:
            self.cancelled_at = at


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=32, unique=True)
    customer_id = Identifier(required=True)
    sub_orders = HasMany(SubOrder)
    merchant_count = Integer(default=1)
    is_multi_merchant = Boolean(default=False)

    subtotal = Float(default=0.0)
    total_shipping = Float(default=0.0)
    total_tax = Float(default=0.0)
    total_discount = Float(default=0.0)
    grand_total = Float(default=0.0)

    overall_status = String(choices=OverallStatus, default=OverallStatus.PENDING.value)
    status_history = List(content_type=ValueObject(StatusHistoryEntry))

    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address, required=True)
    payment_method = String(choices=PaymentMethod, required=True)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_id = String(max_length=255)

    customer_notes = Text()
    special_instructions = Text()

    admin_notes = Text()
    tags = List(content_type=String)
    priority = String(choices=Priority, default=Priority.NORMAL.value)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        sub_orders,
        shipping_address,
        payment_method,
        billing_address=None,
        customer_notes=None,
        special_instructions=None,
    ):
        """Create a new order from already-priced sub-orders.

        Args:
            customer_id: The customer placing the order.
            sub_orders: One SubOrder per merchant, in a deterministic order.
            shipping_address: Address the order ships to.
            payment_method: A PaymentMethod (or its value).
            billing_address: Defaults to the shipping address.
        """
        if not sub_orders:
            raise EmptyCartError({"sub_orders": ["An order needs at least one sub-order"]})
        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            customer_id=str(customer_id),
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment_method=_choice(PaymentMethod, payment_method, "payment_method").value,
            customer_notes=customer_notes,
            special_instructions=special_instructions,
            created_at=now,
            updated_at=now,
            status_history=[
                _history_entry(
                    OverallStatus.PENDING.value,
                    now,
                    Actor.customer(customer_id),
                    "Order created from cart",
                )
            ],
        )
        for position, sub_order in enumerate(sub_orders):
            sub_order.position = position
        order.add_sub_orders(list(sub_orders))
        order.recalculate()
        order.overall_status = reduce_overall_status(SubOrderStatus(s.status) for s in order.sub_orders).value

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=order.customer_id,
                sub_orders=json.dumps(
                    [
                        {
                            "sub_order_id": sub.sub_order_id,
                            "merchant_id": sub.merchant_id,
                            "item_count": sub.item_count,
                            "total": sub.total,
                        }
                        for sub in order.ordered_sub_orders()
                    ]
                ),
                grand_total=order.grand_total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------
    def ordered_sub_orders(self) -> list:
        """Sub-orders in the order their merchants first appeared in the cart."""
        return sorted(self.sub_orders, key=lambda sub: sub.position)

    def recalculate(self):
        """Recompute merchant counters and money aggregates from sub-orders."""
        self.merchant_count = len(self.sub_orders)
        self.is_multi_merchant = self.merchant_count > 1
        self.subtotal = money(sum(sub.subtotal for sub in self.sub_orders))
        self.total_shipping = money(sum(sub.shipping_cost for sub in self.sub_orders))
        self.total_tax = money(sum(sub.tax for sub in self.sub_orders))
        self.total_discount = money(sum(sub.discount for sub in self.sub_orders))
        self.grand_total = money(self.subtotal + self.total_shipping + self.total_tax - self.total_discount)

    def _refresh_overall_status(self, affected_sub_order_id, actor, notes, at):
        previous = self.overall_status
        self.overall_status = reduce_overall_status(SubOrderStatus(s.status) for s in self.sub_orders).value
        if self.overall_status == previous:
            return

        self.status_history = [
            *self.status_history,
            _history_entry(self.overall_status, at, actor, notes, affected=[affected_sub_order_id]),
        ]
        self.raise_(
            OverallStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=self.overall_status,
                affected_sub_orders=json.dumps([affected_sub_order_id]),
                changed_at=at,
            )
        )

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def get_sub_order(self, sub_order_id) -> SubOrder:
        sub_order = next((s for s in self.sub_orders if s.sub_order_id == sub_order_id), None)
        if sub_order is None:
            raise SubOrderNotFoundError({"sub_order_id": [f"Sub-order {sub_order_id} not found in order {self.id}"]})
        return sub_order

    def _assert_can_act_on(self, sub_order, actor):
        if actor.type == ActorType.MERCHANT and sub_order.merchant_id != actor.merchant_id:
            raise UnauthorizedOrderAccessError({"merchant_id": ["Merchants can only update their own sub-orders"]})
        if actor.type == ActorType.CUSTOMER and actor.id != self.customer_id:
            raise UnauthorizedOrderAccessError({"customer_id": ["Customers can only update their own orders"]})

    def _assert_can_transition(self, sub_order, target, actor):
        current = SubOrderStatus(sub_order.status)
        if not can_transition(current, target):
            raise InvalidTransitionError(
                {"status": [f"Cannot transition sub-order from {current.value} to {target.value}"]}
            )
        if actor.type == ActorType.CUSTOMER and not customer_can_transition(current, target):
            raise UnauthorizedOrderAccessError(
                {"status": [f"Customers cannot move a sub-order from {current.value} to {target.value}"]}
            )

    # -------------------------------------------------------------------
    # Sub-order lifecycle
    # -------------------------------------------------------------------
    def update_sub_order_status(self, sub_order_id, new_status, actor, notes=None):
        """Move one sub-order to ``new_status`` and refresh the overall status.

        Raises SubOrderNotFoundError, UnauthorizedOrderAccessError or
        InvalidTransitionError before anything on the aggregate changes.
        """
        sub_order = self.get_sub_order(sub_order_id)
        target = parse_sub_order_status(new_status)
        self._assert_can_act_on(sub_order, actor)
        self._assert_can_transition(sub_order, target, actor)

        self._apply_transition(sub_order, target, actor, notes)

    def _apply_transition(self, sub_order, target, actor, notes):
        now = datetime.now(UTC)
        previous = SubOrderStatus(sub_order.status)
        sub_order._record(target, actor, notes, now)
        self.updated_at = now

        self.raise_(
            SubOrderStatusChanged(
                order_id=str(self.id),
                sub_order_id=sub_order.sub_order_id,
                merchant_id=sub_order.merchant_id,
                previous_status=previous.value,
                new_status=target.value,
                updated_by=actor.id,
                updated_by_type=actor.type.value,
                changed_at=now,
            )
        )
        self._refresh_overall_status(sub_order.sub_order_id, actor, notes, now)

    def add_tracking_info(
        self,
        sub_order_id,
        actor,
        tracking_number,
        shipping_carrier,
        shipping_method=None,
        estimated_delivery=None,
    ):
        """Attach carrier tracking and mark the sub-order shipped.

        From ``ready_to_ship`` this is the shipping transition. On a sub-order
        that has already shipped it only corrects the tracking fields. Only
        the owning merchant or an admin may do either.
        """
        if actor.type == ActorType.CUSTOMER:
            raise UnauthorizedOrderAccessError({"actor": ["Customers cannot add tracking information"]})

        sub_order = self.get_sub_order(sub_order_id)
        self._assert_can_act_on(sub_order, actor)
        already_shipped = SubOrderStatus(sub_order.status) == SubOrderStatus.SHIPPED
        if not already_shipped:
            self._assert_can_transition(sub_order, SubOrderStatus.SHIPPED, actor)

        sub_order.tracking_number = tracking_number
        sub_order.shipping_carrier = shipping_carrier
        if shipping_method is not None:
            sub_order.shipping_method = _choice(ShippingMethod, shipping_method, "shipping_method").value
        if estimated_delivery is not None:
            sub_order.estimated_delivery = as_utc(estimated_delivery)

        if already_shipped:
            self.updated_at = datetime.now(UTC)
        else:
            self._apply_transition(
                sub_order,
                SubOrderStatus.SHIPPED,
                actor,
                f"Shipped via {shipping_carrier}, tracking: {tracking_number}",
            )

        self.raise_(
            TrackingAdded(
                order_id=str(self.id),
                sub_order_id=sub_order.sub_order_id,
                merchant_id=sub_order.merchant_id,
                tracking_number=tracking_number,
                shipping_carrier=shipping_carrier,
                shipped_at=sub_order.shipped_at,
            )
        )

    # -------------------------------------------------------------------
    # Returns & refunds
    # -------------------------------------------------------------------
    def request_return(self, sub_order_id, actor, reason):
        """Customer asks to return a delivered sub-order."""
        sub_order = self.get_sub_order(sub_order_id)
        self._assert_can_act_on(sub_order, actor)
        self._assert_can_transition(sub_order, SubOrderStatus.RETURNED, actor)

        sub_order.return_status = ReturnStatus.REQUESTED.value
        sub_order.return_reason = reason
        self._apply_transition(sub_order, SubOrderStatus.RETURNED, actor, reason)

    def refund_sub_order(self, sub_order_id, actor, amount=None):
        """Refund a returned sub-order, by default for its full total."""
        sub_order = self.get_sub_order(sub_order_id)
        self._assert_can_act_on(sub_order, actor)
        self._assert_can_transition(sub_order, SubOrderStatus.REFUNDED, actor)

        refund_amount = sub_order.total if amount is None else money(amount)
        if refund_amount < 0 or refund_amount > sub_order.total:
            raise InvalidRefundError(
                {"refund_amount": [f"Refund must be between 0 and the sub-order total of {sub_order.total:.2f}"]}
            )

        sub_order.refund_amount = refund_amount
        sub_order.return_status = ReturnStatus.REFUNDED.value
        self._apply_transition(sub_order, SubOrderStatus.REFUNDED, actor, f"Refunded {refund_amount:.2f}")
        self._refresh_payment_status()

        self.raise_(
            SubOrderRefunded(
                order_id=str(self.id),
                sub_order_id=sub_order.sub_order_id,
                merchant_id=sub_order.merchant_id,
                refund_amount=refund_amount,
                refunded_at=self.updated_at,
            )
        )

    def _refresh_payment_status(self):
        billable = [s for s in self.sub_orders if SubOrderStatus(s.status) != SubOrderStatus.CANCELLED]
        refunded = [s for s in billable if SubOrderStatus(s.status) == SubOrderStatus.REFUNDED]
        if not refunded:
            return
        if len(refunded) == len(billable):
            self.payment_status = PaymentStatus.REFUNDED.value
        else:
            self.payment_status = PaymentStatus.PARTIALLY_REFUNDED.value

    # -------------------------------------------------------------------
    # Administrative edits
    # -------------------------------------------------------------------
    def update_admin_fields(self, admin_notes=None, priority=None, tags=None):
        """Edit back-office annotations. Statuses and money are untouched."""
        if admin_notes is not None:
            self.admin_notes = admin_notes
        if priority is not None:
            self.priority = _choice(Priority, priority, "priority").value
        if tags is not None:
            self.tags = list(dict.fromkeys(tags))
        self.updated_at = datetime.now(UTC)
