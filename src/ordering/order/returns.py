"""Sub-order returns and refunds: commands and handler."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Actor, ActorType, Order
from ordering.order.processing import process

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RequestReturn:
    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    actor_type = String(choices=ActorType, required=True)
    actor_id = String(max_length=255)
    actor_merchant_id = Identifier()
    reason = String(required=True, max_length=1000)


@ordering.command(part_of="Order")
class RefundSubOrder:
    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    actor_type = String(choices=ActorType, required=True)
    actor_id = String(max_length=255)
    actor_merchant_id = Identifier()
    amount = Float()  # Defaults to the sub-order total


@ordering.command_handler(part_of=Order)
class ReturnsHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.request_return(command.sub_order_id, Actor.from_command(command), command.reason)
        repo.add(order)

        logger.info("Return requested", order_id=command.order_id, sub_order_id=command.sub_order_id)
        return order

    @handle(RefundSubOrder)
    def refund_sub_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.refund_sub_order(command.sub_order_id, Actor.from_command(command), amount=command.amount)
        repo.add(order)

        logger.info(
            "Sub-order refunded",
            order_id=command.order_id,
            sub_order_id=command.sub_order_id,
            refund_amount=order.get_sub_order(command.sub_order_id).refund_amount,
            payment_status=order.payment_status,
        )
        return order


def request_return(order_id, sub_order_id, actor, reason) -> Order:
    return process(
        RequestReturn(order_id=str(order_id), sub_order_id=sub_order_id, reason=reason, **actor.as_command_fields())
    )


def refund_sub_order(order_id, sub_order_id, actor, amount=None) -> Order:
    return process(
        RefundSubOrder(order_id=str(order_id), sub_order_id=sub_order_id, amount=amount, **actor.as_command_fields())
    )
