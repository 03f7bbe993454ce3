"""View models for portfolio and fund structure outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fundstat.domain.models import AccountCategory, AssetRef, FundAccount, ResolvedAssetValuation


@dataclass(frozen=True)
class ReferenceAssets:
    """Reference currencies: primary (stable fund token) and secondary (native)."""

    primary: AssetRef
    secondary: AssetRef


@dataclass(frozen=True)
class TokenBalance:
    asset: AssetRef
    balance: str
    limit: Optional[str] = None


@dataclass
class AccountPortfolio:
    account_id: str
    tokens: list[TokenBalance] = field(default_factory=list)
    native_balance: str = "0"


@dataclass
class TokenValuation:
    """A token balance with its prices and values in both reference currencies."""

    asset: AssetRef
    balance: str
    price_in_reference: Optional[str] = None
    price_in_native: Optional[str] = None
    value_in_reference: Optional[str] = None
    value_in_native: Optional[str] = None
    is_nft: bool = False
    valuation: Optional[ResolvedAssetValuation] = None
    override_total: Optional[str] = None
    liquid_value_in_reference: Optional[str] = None
    liquid_value_in_native: Optional[str] = None


@dataclass
class FundAccountPortfolio:
    """One registry account with its priced holdings and totals."""

    account: FundAccount
    tokens: list[TokenValuation] = field(default_factory=list)
    native_balance: str = "0"
    native_price_in_reference: Optional[str] = None
    total_in_reference: Decimal = field(default_factory=lambda: Decimal("0"))
    total_in_native: Decimal = field(default_factory=lambda: Decimal("0"))
    liquid_total_in_reference: Decimal = field(default_factory=lambda: Decimal("0"))
    liquid_total_in_native: Decimal = field(default_factory=lambda: Decimal("0"))
    error: Optional[str] = None

    @property
    def id(self) -> str:
        return self.account.id

    @property
    def name(self) -> str:
        return self.account.name

    @property
    def category(self) -> AccountCategory:
        return self.account.category


@dataclass
class AggregateTotals:
    total_reference: Decimal = field(default_factory=lambda: Decimal("0"))
    total_native: Decimal = field(default_factory=lambda: Decimal("0"))
    liquid_total_reference: Decimal = field(default_factory=lambda: Decimal("0"))
    liquid_total_native: Decimal = field(default_factory=lambda: Decimal("0"))
    account_count: int = 0
    token_count: int = 0


@dataclass
class FundStructureReport:
    """Counted accounts feed the aggregate; excluded ones are reported only."""

    counted: list[FundAccountPortfolio] = field(default_factory=list)
    excluded: list[FundAccountPortfolio] = field(default_factory=list)
    aggregate: AggregateTotals = field(default_factory=AggregateTotals)
    generated_at: Optional[datetime] = None
