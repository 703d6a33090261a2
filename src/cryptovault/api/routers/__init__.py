"""API routers package."""

from cryptovault.api.routers.entries import router as entries_router
from cryptovault.api.routers.grants import router as grants_router
from cryptovault.api.routers.sources import router as sources_router
from cryptovault.api.routers.prices import router as prices_router
from cryptovault.api.routers.portfolio import router as portfolio_router

__all__ = [
    "entries_router",
    "grants_router",
    "sources_router",
    "prices_router",
    "portfolio_router",
]
