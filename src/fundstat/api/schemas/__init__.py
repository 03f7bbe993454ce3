"""API schemas package."""

from fundstat.api.schemas.price import PriceResponse
from fundstat.api.schemas.portfolio import (
    ValuationResponse,
    TokenValuationResponse,
    PortfolioResponse,
    ValuationListResponse,
)
from fundstat.api.schemas.fund import (
    FundAccountResponse,
    FundAccountListResponse,
    FundAccountPortfolioResponse,
    AggregateTotalsResponse,
    FundStructureResponse,
)

__all__ = [
    "PriceResponse",
    "ValuationResponse",
    "TokenValuationResponse",
    "PortfolioResponse",
    "ValuationListResponse",
    "FundAccountResponse",
    "FundAccountListResponse",
    "FundAccountPortfolioResponse",
    "AggregateTotalsResponse",
    "FundStructureResponse",
]
