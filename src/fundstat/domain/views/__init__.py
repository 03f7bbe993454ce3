"""View models package."""

from fundstat.domain.views.ledger import (
    BalanceRecord,
    AccountRecord,
    OrderbookLevel,
    OrderbookRecord,
    LiquidityPoolRecord,
    PaymentPathRecord,
    ClaimableBalanceRecord,
    OfferRecord,
)
from fundstat.domain.views.price import (
    OrderbookSnapshot,
    PoolSnapshot,
    PathHop,
    PathPriceDetails,
    OrderbookPriceDetails,
    BestPriceDetails,
    PriceDetails,
    TokenPairPrice,
)
from fundstat.domain.views.portfolio import (
    ReferenceAssets,
    TokenBalance,
    AccountPortfolio,
    TokenValuation,
    FundAccountPortfolio,
    AggregateTotals,
    FundStructureReport,
)

__all__ = [
    "BalanceRecord",
    "AccountRecord",
    "OrderbookLevel",
    "OrderbookRecord",
    "LiquidityPoolRecord",
    "PaymentPathRecord",
    "ClaimableBalanceRecord",
    "OfferRecord",
    "OrderbookSnapshot",
    "PoolSnapshot",
    "PathHop",
    "PathPriceDetails",
    "OrderbookPriceDetails",
    "BestPriceDetails",
    "PriceDetails",
    "TokenPairPrice",
    "ReferenceAssets",
    "TokenBalance",
    "AccountPortfolio",
    "TokenValuation",
    "FundAccountPortfolio",
    "AggregateTotals",
    "FundStructureReport",
]
