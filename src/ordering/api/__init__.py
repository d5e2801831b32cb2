"""Ordering domain API package."""

from ordering.api.routes import (
    cart_router,
    checkout_router,
    coupon_router,
    gateway_router,
    order_router,
    shipping_router,
)

__all__ = [
    "checkout_router",
    "order_router",
    "coupon_router",
    "shipping_router",
    "cart_router",
    "gateway_router",
]
