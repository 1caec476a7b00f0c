"""Back-office edits to an order's notes, priority and tags."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, List, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, Priority
from ordering.order.processing import process

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderAdminFields:
    order_id = Identifier(required=True)
    admin_notes = Text()
    priority = String(choices=Priority)
    tags = List(content_type=String)
    replace_tags = Boolean(default=False)  # True when ``tags`` was supplied, even empty


@ordering.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrderAdminFields)
    def update_order_admin_fields(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_order(command.order_id)
        order.update_admin_fields(
            admin_notes=command.admin_notes,
            priority=command.priority,
            tags=command.tags if command.replace_tags else None,
        )
        repo.add(order)

        logger.info(
            "Order admin fields updated",
            order_id=command.order_id,
            priority=order.priority,
            tags=order.tags,
        )
        return order


def update_order_admin_fields(order_id, admin_notes=None, priority=None, tags=None) -> Order:
    return process(
        UpdateOrderAdminFields(
            order_id=str(order_id),
            admin_notes=admin_notes,
            priority=getattr(priority, "value", priority),
            tags=list(tags or []),
            replace_tags=tags is not None,
        )
    )
