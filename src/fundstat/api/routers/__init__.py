"""API routers package."""

from fundstat.api.routers.price import router as price_router
from fundstat.api.routers.portfolio import router as portfolio_router
from fundstat.api.routers.fund import router as fund_router

__all__ = [
    "price_router",
    "portfolio_router",
    "fund_router",
]
