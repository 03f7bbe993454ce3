"""Service layer - valuation engine orchestration."""

from fundstat.services.external_price_service import ExternalPriceService
from fundstat.services.asset_valuation_service import AssetValuationService
from fundstat.services.price_service import PriceService
from fundstat.services.portfolio_service import PortfolioService
from fundstat.services.fund_structure_service import FundStructureService

__all__ = [
    "ExternalPriceService",
    "AssetValuationService",
    "PriceService",
    "PortfolioService",
    "FundStructureService",
]
