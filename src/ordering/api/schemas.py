"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal commands the domain processes.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ordering.order.order import PaymentMethod, Priority, ShippingMethod
from ordering.order.status import SubOrderStatus

TimeRange = Literal["7d", "30d", "90d"]


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    full_name: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    phone_number: str | None = None


# ---------------------------------------------------------------------------
# Customer Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: PaymentMethod
    customer_notes: str | None = Field(default=None, max_length=1000)
    special_instructions: str | None = Field(default=None, max_length=1000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "full_name": "Jane Doe",
                        "street": "12 Market Street",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                    "payment_method": "credit_card",
                }
            ]
        }
    }


class CancelSubOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ReturnSubOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Merchant / Admin Request Schemas
# ---------------------------------------------------------------------------
class UpdateSubOrderStatusRequest(BaseModel):
    status: SubOrderStatus
    notes: str | None = Field(default=None, max_length=1000)


class AddTrackingRequest(BaseModel):
    tracking_number: str = Field(min_length=1, max_length=100)
    shipping_carrier: str = Field(min_length=1, max_length=100)
    shipping_method: ShippingMethod | None = None
    estimated_delivery: datetime | None = None


class RefundSubOrderRequest(BaseModel):
    amount: float | None = Field(default=None, ge=0)


class UpdateOrderAdminRequest(BaseModel):
    admin_notes: str | None = Field(default=None, max_length=2000)
    priority: Priority | None = None
    tags: list[str] | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class SubOrderStatusResponse(BaseModel):
    order_id: str
    order_number: str
    sub_order_id: str
    status: str
    overall_status: str
    version: int
