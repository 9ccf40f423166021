"""Storefront API package."""

from storefront.api.routes import order_router, user_router

__all__ = ["order_router", "user_router"]
