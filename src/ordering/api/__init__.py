"""Ordering domain API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import admin_router, merchant_router, order_router

__all__ = ["order_router", "merchant_router", "admin_router", "register_exception_handlers"]
