"""Records returned by the ledger query collaborator."""

from dataclasses import dataclass, field
from typing import Optional

from fundstat.domain.models import AssetRef


@dataclass(frozen=True)
class BalanceRecord:
    """One trustline (or the native balance) of an account."""

    asset_type: str
    balance: str
    asset_code: Optional[str] = None
    asset_issuer: Optional[str] = None
    limit: Optional[str] = None


@dataclass(frozen=True)
class AccountRecord:
    """Account balances plus its metadata entries (values base64-encoded)."""

    account_id: str
    balances: list[BalanceRecord] = field(default_factory=list)
    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderbookLevel:
    price: str
    amount: str


@dataclass(frozen=True)
class OrderbookRecord:
    """Order book for selling/buying; bids sorted descending, asks ascending."""

    bids: list[OrderbookLevel] = field(default_factory=list)
    asks: list[OrderbookLevel] = field(default_factory=list)


@dataclass(frozen=True)
class LiquidityPoolRecord:
    """Constant-product pool; reserves keyed by canonical asset id."""

    pool_id: str
    reserves: dict[str, str]
    fee_bp: int = 30
    total_shares: str = "0"


@dataclass(frozen=True)
class PaymentPathRecord:
    """A path-payment route found by strict-send or strict-receive search."""

    source_asset: AssetRef
    source_amount: str
    destination_asset: AssetRef
    destination_amount: str
    path: list[AssetRef] = field(default_factory=list)


@dataclass(frozen=True)
class ClaimableBalanceRecord:
    id: str
    asset: AssetRef
    amount: str
    sponsor: Optional[str] = None
    claimants: list[str] = field(default_factory=list)
    paging_token: str = ""


@dataclass(frozen=True)
class OfferRecord:
    id: str
    seller: str
    selling: AssetRef
    buying: AssetRef
    amount: str
    price: str
    paging_token: str = ""
