"""View models for price discovery results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Union

from fundstat.domain.models import AssetRef


@dataclass(frozen=True)
class OrderbookSnapshot:
    """Top of book for a pair."""

    best_bid: Optional[str] = None
    best_ask: Optional[str] = None
    bid_count: int = 0
    ask_count: int = 0


@dataclass(frozen=True)
class PoolSnapshot:
    """Pool reserves for a pair; price is reserve_b / reserve_a."""

    pool_id: str
    reserve_a: str
    reserve_b: str
    price: Optional[str] = None


@dataclass
class PathHop:
    """Diagnostics for one leg of a payment path."""

    from_asset: AssetRef
    to_asset: AssetRef
    bid: Optional[str] = None
    ask: Optional[str] = None
    mid_price: Optional[str] = None
    orderbook: Optional[OrderbookSnapshot] = None
    pool: Optional[PoolSnapshot] = None


@dataclass
class PathPriceDetails:
    source_amount: str
    destination_amount: str
    hops: list[PathHop] = field(default_factory=list)
    source: Literal["path"] = "path"


@dataclass
class OrderbookPriceDetails:
    venue: Literal["orderbook", "pool"]
    side: Literal["bid", "ask"]
    bid: Optional[str] = None
    ask: Optional[str] = None
    orderbook: Optional[OrderbookSnapshot] = None
    pool: Optional[PoolSnapshot] = None
    source: Literal["orderbook"] = "orderbook"


@dataclass
class BestPriceDetails:
    path_price: str
    direct_price: str
    chosen: Literal["path", "orderbook"]
    reason: str
    path: PathPriceDetails
    direct: OrderbookPriceDetails
    source: Literal["best"] = "best"


PriceDetails = Union[PathPriceDetails, OrderbookPriceDetails, BestPriceDetails]


@dataclass
class TokenPairPrice:
    """Price of one unit of asset_a expressed in asset_b. price is always > 0."""

    asset_a: AssetRef
    asset_b: AssetRef
    price: str
    destination_amount: str
    timestamp: datetime
    details: Optional[PriceDetails] = None
