"""FastAPI routes for the Ordering domain: customer, merchant and admin views.

Authentication lives in front of this service. The caller's identity
arrives in headers (``X-Customer-Id``, ``X-User-Id``, ``X-Admin-Id``) and
the merchant id in the merchant routes' path.
"""

from fastapi import APIRouter, Header, Query

from ordering.api.schemas import (
    AddTrackingRequest,
    CancelSubOrderRequest,
    CreateOrderRequest,
    RefundSubOrderRequest,
    ReturnSubOrderRequest,
    SubOrderStatusResponse,
    TimeRange,
    UpdateOrderAdminRequest,
    UpdateSubOrderStatusRequest,
)
from ordering.order.administration import update_order_admin_fields
from ordering.order.creation import create_order_from_cart
from ordering.order.fulfillment import add_tracking_info, update_sub_order_status
from ordering.order.order import Actor
from ordering.order.returns import refund_sub_order, request_return
from ordering.order.status import OverallStatus, SubOrderStatus
from ordering.projections.customer_orders import get_customer_orders, get_order_details
from ordering.projections.common import order_view
from ordering.projections.merchant_orders import get_merchant_dashboard, get_merchant_order_stats, get_merchant_orders
from ordering.projections.order_analytics import get_all_orders, get_order_analytics
from ordering.projections.order_tracking import track_order


def _order_page(result: dict) -> dict:
    return {
        "orders": [order_view(order) for order in result["orders"]],
        "pagination": result["pagination"],
    }


def _status_response(order, sub_order_id) -> SubOrderStatusResponse:
    return SubOrderStatusResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        sub_order_id=sub_order_id,
        status=order.get_sub_order(sub_order_id).status,
        overall_status=order.overall_status,
        version=order._version,
    )


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201)
async def create_order(body: CreateOrderRequest, x_customer_id: str = Header()) -> dict:
    """Convert the customer's cart into an order, one sub-order per merchant."""
    order = create_order_from_cart(x_customer_id, body.model_dump(mode="json", exclude_none=True))
    return order_view(order)


@order_router.get("")
async def list_customer_orders(
    x_customer_id: str = Header(),
    status: OverallStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
) -> dict:
    return _order_page(get_customer_orders(x_customer_id, status=status, page=page, limit=limit))


@order_router.get("/track/{order_number}")
async def track_customer_order(order_number: str, x_customer_id: str = Header()) -> dict:
    return track_order(order_number, x_customer_id)


@order_router.get("/{order_id}")
async def get_customer_order(order_id: str, x_customer_id: str = Header()) -> dict:
    return order_view(get_order_details(order_id, x_customer_id))


@order_router.put("/{order_id}/sub-orders/{sub_order_id}/cancel", response_model=SubOrderStatusResponse)
async def cancel_sub_order(
    order_id: str,
    sub_order_id: str,
    body: CancelSubOrderRequest,
    x_customer_id: str = Header(),
) -> SubOrderStatusResponse:
    order = update_sub_order_status(
        order_id,
        sub_order_id,
        SubOrderStatus.CANCELLED,
        Actor.customer(x_customer_id),
        notes=body.reason or "Cancelled by customer",
    )
    return _status_response(order, sub_order_id)


@order_router.put("/{order_id}/sub-orders/{sub_order_id}/return", response_model=SubOrderStatusResponse)
async def return_sub_order(
    order_id: str,
    sub_order_id: str,
    body: ReturnSubOrderRequest,
    x_customer_id: str = Header(),
) -> SubOrderStatusResponse:
    order = request_return(order_id, sub_order_id, Actor.customer(x_customer_id), body.reason)
    return _status_response(order, sub_order_id)


# ---------------------------------------------------------------------------
# Merchant Router
# ---------------------------------------------------------------------------
merchant_router = APIRouter(prefix="/merchants/{merchant_id}/orders", tags=["merchant-orders"])


@merchant_router.get("")
async def list_merchant_orders(
    merchant_id: str,
    status: SubOrderStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
) -> dict:
    return get_merchant_orders(merchant_id, status=status, page=page, limit=limit)


@merchant_router.get("/stats")
async def merchant_order_stats(merchant_id: str, time_range: TimeRange = "30d") -> dict:
    return get_merchant_order_stats(merchant_id, time_range)


@merchant_router.get("/dashboard")
async def merchant_dashboard(merchant_id: str) -> dict:
    return get_merchant_dashboard(merchant_id)


@merchant_router.put("/{order_id}/sub-orders/{sub_order_id}/status", response_model=SubOrderStatusResponse)
async def merchant_update_status(
    merchant_id: str,
    order_id: str,
    sub_order_id: str,
    body: UpdateSubOrderStatusRequest,
    x_user_id: str | None = Header(default=None),
) -> SubOrderStatusResponse:
    order = update_sub_order_status(
        order_id, sub_order_id, body.status, Actor.merchant(merchant_id, x_user_id), notes=body.notes
    )
    return _status_response(order, sub_order_id)


@merchant_router.put("/{order_id}/sub-orders/{sub_order_id}/tracking", response_model=SubOrderStatusResponse)
async def merchant_add_tracking(
    merchant_id: str,
    order_id: str,
    sub_order_id: str,
    body: AddTrackingRequest,
    x_user_id: str | None = Header(default=None),
) -> SubOrderStatusResponse:
    order = add_tracking_info(
        order_id,
        sub_order_id,
        body.model_dump(mode="json", exclude_none=True),
        actor=Actor.merchant(merchant_id, x_user_id),
    )
    return _status_response(order, sub_order_id)


@merchant_router.put("/{order_id}/sub-orders/{sub_order_id}/refund", response_model=SubOrderStatusResponse)
async def merchant_refund(
    merchant_id: str,
    order_id: str,
    sub_order_id: str,
    body: RefundSubOrderRequest,
    x_user_id: str | None = Header(default=None),
) -> SubOrderStatusResponse:
    order = refund_sub_order(order_id, sub_order_id, Actor.merchant(merchant_id, x_user_id), amount=body.amount)
    return _status_response(order, sub_order_id)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


@admin_router.get("")
async def list_all_orders(
    status: OverallStatus | None = None,
    merchant_id: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
) -> dict:
    return _order_page(get_all_orders(status=status, merchant_id=merchant_id, page=page, limit=limit))


@admin_router.get("/analytics")
async def order_analytics(time_range: TimeRange = "30d") -> dict:
    return get_order_analytics(time_range)


@admin_router.put("/{order_id}")
async def update_order_admin(order_id: str, body: UpdateOrderAdminRequest) -> dict:
    order = update_order_admin_fields(order_id, admin_notes=body.admin_notes, priority=body.priority, tags=body.tags)
    return order_view(order)


@admin_router.put("/{order_id}/sub-orders/{sub_order_id}/status", response_model=SubOrderStatusResponse)
async def admin_update_status(
    order_id: str,
    sub_order_id: str,
    body: UpdateSubOrderStatusRequest,
    x_admin_id: str | None = Header(default=None),
) -> SubOrderStatusResponse:
    order = update_sub_order_status(order_id, sub_order_id, body.status, Actor.admin(x_admin_id), notes=body.notes)
    return _status_response(order, sub_order_id)
