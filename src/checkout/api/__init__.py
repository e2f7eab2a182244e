"""Checkout API package."""

from checkout.api.errors import register_checkout_error_handlers
from checkout.api.routes import (
    address_router,
    cart_router,
    discount_router,
    draft_router,
    gateway_router,
    order_router,
    product_router,
)

routers = [
    product_router,
    cart_router,
    discount_router,
    address_router,
    draft_router,
    order_router,
    gateway_router,
]

__all__ = ["routers", "register_checkout_error_handlers"]
