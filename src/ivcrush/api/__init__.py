"""HTTP API routers."""

from ivcrush.api.router import api_router

__all__ = [
    "api_router",
]
