"""Dependency injection for FastAPI."""

from fundstat.app_context import get_app_context
from fundstat.services import (
    AssetValuationService,
    FundStructureService,
    PortfolioService,
    PriceService,
)


def get_price_service() -> PriceService:
    """Provide the shared PriceService instance."""
    return get_app_context().prices


def get_portfolio_service() -> PortfolioService:
    """Provide the shared PortfolioService instance."""
    return get_app_context().portfolios


def get_valuation_service() -> AssetValuationService:
    """Provide the shared AssetValuationService instance."""
    return get_app_context().valuations


def get_fund_structure_service() -> FundStructureService:
    """Provide the shared FundStructureService instance."""
    return get_app_context().fund
