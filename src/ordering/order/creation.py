"""Order creation from a customer's cart: command, handler and cart cleanup."""

import json
from collections import OrderedDict

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.exceptions import ValidationError as FieldValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart import get_cart_store
from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.exceptions import (
    EmptyCartError,
    InvalidAddressError,
    PersistenceConflictError,
    ProductNotFoundError,
    ValidationError,
)
from ordering.order.events import OrderPlaced
from ordering.order.order import Address, Order, OrderItem, PaymentMethod, SubOrder
from ordering.order.pricing import get_shipping_policy, get_tax_policy

logger = structlog.get_logger(__name__)

_ADDRESS_FIELDS = ("full_name", "street", "city", "state", "postal_code", "country", "phone_number")


@ordering.command(part_of="Order")
class CreateOrderFromCart:
    customer_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, defaults to shipping
    payment_method = String(required=True, max_length=50)
    customer_notes = Text()
    special_instructions = Text()


def _address(data: dict, field_name) -> Address:
    values = {
        name: value.strip() if isinstance(value, str) else value
        for name, value in data.items()
        if name in _ADDRESS_FIELDS
    }
    try:
        return Address(**values)
    except FieldValidationError as exc:
        fields = sorted(exc.messages) if isinstance(exc.messages, dict) else []
        raise InvalidAddressError(
            {field_name: [f"Address is missing or has invalid fields: {', '.join(fields) or 'address'}"]}
        ) from exc


@ordering.command_handler(part_of=Order)
class OrderAssembler:
    @handle(CreateOrderFromCart)
    def create_order_from_cart(self, command):
        shipping_address = _address(json.loads(command.shipping_address), "shipping_address")
        billing_address = (
            _address(json.loads(command.billing_address), "billing_address") if command.billing_address else None
        )
        try:
            payment_method = PaymentMethod(command.payment_method)
        except ValueError:
            raise ValidationError(
                {"payment_method": [f"Unsupported payment method: {command.payment_method}"]}
            ) from None

        cart = get_cart_store().get_cart(command.customer_id)
        if cart.is_empty:
            raise EmptyCartError({"cart": ["Cart is empty"]})

        # Merchants keep the order in which they first appear in the cart
        groups: OrderedDict[str, list[OrderItem]] = OrderedDict()
        catalogue = get_catalogue()
        for line in cart.items:
            if line.quantity < 1:
                raise ValidationError({"quantity": [f"Quantity for product {line.product_id} must be at least 1"]})
            product = catalogue.get_product(line.product_id)
            if product is None:
                raise ProductNotFoundError({"product_id": [f"Product {line.product_id} not found"]})
            groups.setdefault(product.merchant_id, []).append(
                OrderItem.snapshot(
                    product_id=product.product_id,
                    name=product.name,
                    quantity=line.quantity,
                    unit_price=product.price,
                    size=line.size,
                    color=line.color,
                )
            )

        shipping_policy = get_shipping_policy()
        tax_policy = get_tax_policy()
        sub_orders = []
        for merchant_id, items in groups.items():
            subtotal = sum(item.line_total for item in items)
            sub_orders.append(
                SubOrder.create(
                    merchant_id=merchant_id,
                    items=items,
                    shipping_cost=shipping_policy.quote(items, shipping_address),
                    tax=tax_policy.compute(subtotal, shipping_address),
                    customer_notes=command.customer_notes,
                )
            )

        order = Order.create(
            customer_id=command.customer_id,
            sub_orders=sub_orders,
            shipping_address=shipping_address,
            billing_address=billing_address,
            payment_method=payment_method,
            customer_notes=command.customer_notes,
            special_instructions=command.special_instructions,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=order.customer_id,
            merchant_count=order.merchant_count,
            grand_total=order.grand_total,
        )
        return order


@ordering.event_handler(part_of=Order)
class CartCleanup:
    """Empties the customer's cart once their order has committed."""

    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        try:
            get_cart_store().clear_cart(event.customer_id)
        except Exception as exc:
            logger.error("Failed to clear cart", customer_id=event.customer_id, order_id=event.order_id, error=str(exc))


def create_order_from_cart(customer_id, order_input: dict) -> Order:
    """Turn the customer's cart into one order with a sub-order per merchant.

    ``order_input`` holds ``shipping_address`` and ``payment_method`` plus the
    optional ``billing_address``, ``customer_notes`` and ``special_instructions``.
    """
    shipping_address = order_input.get("shipping_address")
    if not isinstance(shipping_address, dict):
        raise InvalidAddressError({"shipping_address": ["A shipping address is required"]})
    billing_address = order_input.get("billing_address")
    if billing_address is not None and not isinstance(billing_address, dict):
        raise InvalidAddressError({"billing_address": ["Billing address must be an address object"]})
    payment_method = order_input.get("payment_method")
    if isinstance(payment_method, PaymentMethod):
        payment_method = payment_method.value
    if not payment_method:
        raise ValidationError({"payment_method": ["A payment method is required"]})

    command = CreateOrderFromCart(
        customer_id=str(customer_id),
        shipping_address=json.dumps(shipping_address),
        billing_address=json.dumps(billing_address) if billing_address is not None else None,
        payment_method=payment_method,
        customer_notes=order_input.get("customer_notes"),
        special_instructions=order_input.get("special_instructions"),
    )
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError as exc:
        raise PersistenceConflictError({"order": [str(exc)]}) from exc
