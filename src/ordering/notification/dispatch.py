"""Tells merchants about committed order changes.

Runs only after the order write has committed. A failed notification is
logged and dropped; it never undoes the order change behind it.
"""

import json

import structlog
from protean import handle

from ordering.domain import ordering
from ordering.notification import get_notifier
from ordering.order.events import OrderPlaced, OverallStatusChanged, SubOrderStatusChanged
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.event_handler(part_of=Order)
class MerchantNotifications:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        for share in json.loads(event.sub_orders):
            summary = {
                "order_id": event.order_id,
                "order_number": event.order_number,
                "sub_order_id": share["sub_order_id"],
                "item_count": share["item_count"],
                "total": share["total"],
                "placed_at": event.placed_at.isoformat(),
            }
            try:
                get_notifier().notify_merchant(share["merchant_id"], summary)
            except Exception as exc:
                logger.error(
                    "Merchant notification failed",
                    merchant_id=share["merchant_id"],
                    order_number=event.order_number,
                    error=str(exc),
                )
                continue

            logger.info(
                "Merchant notified",
                merchant_id=share["merchant_id"],
                order_number=event.order_number,
                sub_order_id=share["sub_order_id"],
            )

    @handle(SubOrderStatusChanged)
    def on_sub_order_status_changed(self, event: SubOrderStatusChanged) -> None:
        logger.info(
            "Sub-order status changed",
            order_id=event.order_id,
            sub_order_id=event.sub_order_id,
            previous_status=event.previous_status,
            new_status=event.new_status,
            updated_by_type=event.updated_by_type,
        )

    @handle(OverallStatusChanged)
    def on_overall_status_changed(self, event: OverallStatusChanged) -> None:
        logger.info(
            "Overall order status changed",
            order_id=event.order_id,
            previous_status=event.previous_status,
            new_status=event.new_status,
        )
