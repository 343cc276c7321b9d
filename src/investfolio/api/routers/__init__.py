"""API routers package."""

from investfolio.api.routers.investments import router as investments_router
from investfolio.api.routers.crypto import router as crypto_router

__all__ = [
    "investments_router",
    "crypto_router",
]
