"""Sub-order fulfilment: status transitions and carrier tracking.

A conflicting write by another merchant on the same order is caught at
commit, and the handler re-reads and re-applies the change instead of
losing either update.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Actor, ActorType, Order, as_utc, parse_sub_order_status
from ordering.order.processing import process

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateSubOrderStatus:
    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    new_status = String(required=True, max_length=30)
    actor_type = String(choices=ActorType, required=True)
    actor_id = String(max_length=255)
    actor_merchant_id = Identifier()
    notes = String(max_length=1000)


@ordering.command(part_of="Order")
class AddTrackingInfo:
    order_id = Identifier(required=True)
    sub_order_id = Identifier(required=True)
    actor_type = String(choices=ActorType, required=True)
    actor_id = String(max_length=255)
    actor_merchant_id = Identifier()
    tracking_number = String(required=True, max_length=100)
    shipping_carrier = String(required=True, max_length=100)
    shipping_method = String(max_length=20)
    estimated_delivery = DateTime()


@ordering.command_handler(part_of=Order)
class SubOrderFulfilmentHandler:
    @handle(UpdateSubOrderStatus)
    def update_sub_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.update_sub_order_status(
            command.sub_order_id,
            command.new_status,
            Actor.from_command(command),
            notes=command.notes,
        )
        repo.add(order)

        logger.info(
            "Sub-order status updated",
            order_id=command.order_id,
            sub_order_id=command.sub_order_id,
            new_status=command.new_status,
            overall_status=order.overall_status,
            updated_by_type=command.actor_type,
        )
        return order

    @handle(AddTrackingInfo)
    def add_tracking_info(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.add_tracking_info(
            command.sub_order_id,
            Actor.from_command(command),
            tracking_number=command.tracking_number,
            shipping_carrier=command.shipping_carrier,
            shipping_method=command.shipping_method,
            estimated_delivery=command.estimated_delivery,
        )
        repo.add(order)

        logger.info(
            "Tracking added",
            order_id=command.order_id,
            sub_order_id=command.sub_order_id,
            shipping_carrier=command.shipping_carrier,
            tracking_number=command.tracking_number,
        )
        return order


def update_sub_order_status(order_id, sub_order_id, new_status, actor, notes=None) -> Order:
    """Move one sub-order to ``new_status`` on behalf of ``actor``.

    An unknown status raises InvalidTransitionError before anything is loaded.
    """
    return process(
        UpdateSubOrderStatus(
            order_id=str(order_id),
            sub_order_id=sub_order_id,
            new_status=parse_sub_order_status(new_status).value,
            notes=notes,
            **actor.as_command_fields(),
        )
    )


def add_tracking_info(order_id, sub_order_id, tracking_data: dict, actor=None) -> Order:
    """Attach carrier tracking to a sub-order and mark it shipped.

    ``tracking_data`` holds ``tracking_number`` and ``shipping_carrier`` plus
    the optional ``shipping_method`` and ``estimated_delivery``. Without an
    ``actor`` the change is attributed to an admin.
    """
    actor = actor or Actor.admin()
    shipping_method = tracking_data.get("shipping_method")
    return process(
        AddTrackingInfo(
            order_id=str(order_id),
            sub_order_id=sub_order_id,
            tracking_number=tracking_data.get("tracking_number"),
            shipping_carrier=tracking_data.get("shipping_carrier"),
            shipping_method=getattr(shipping_method, "value", shipping_method),
            estimated_delivery=as_utc(tracking_data.get("estimated_delivery")),
            **actor.as_command_fields(),
        )
    )
