"""Pydantic schemas for fund structure endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from fundstat.api.schemas.portfolio import TokenValuationResponse
from fundstat.domain.models import FundAccount
from fundstat.domain.views import FundAccountPortfolio, FundStructureReport


class FundAccountResponse(BaseModel):
    id: str
    name: str
    category: str
    description: str

    @classmethod
    def from_model(cls, account: FundAccount) -> "FundAccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            category=account.category.value,
            description=account.description,
        )


class FundAccountListResponse(BaseModel):
    accounts: list[FundAccountResponse]
    count: int


class FundAccountPortfolioResponse(BaseModel):
    """One registry account with priced holdings and totals."""

    id: str
    name: str
    category: str
    description: str
    native_balance: str
    native_price_in_reference: Optional[str] = None
    total_in_reference: Decimal
    total_in_native: Decimal
    liquid_total_in_reference: Decimal
    liquid_total_in_native: Decimal
    error: Optional[str] = None
    tokens: list[TokenValuationResponse]

    @classmethod
    def from_view(cls, portfolio: FundAccountPortfolio) -> "FundAccountPortfolioResponse":
        return cls(
            id=portfolio.account.id,
            name=portfolio.account.name,
            category=portfolio.account.category.value,
            description=portfolio.account.description,
            native_balance=portfolio.native_balance,
            native_price_in_reference=portfolio.native_price_in_reference,
            total_in_reference=portfolio.total_in_reference,
            total_in_native=portfolio.total_in_native,
            liquid_total_in_reference=portfolio.liquid_total_in_reference,
            liquid_total_in_native=portfolio.liquid_total_in_native,
            error=portfolio.error,
            tokens=[TokenValuationResponse.from_view(t) for t in portfolio.tokens],
        )


class AggregateTotalsResponse(BaseModel):
    total_reference: Decimal
    total_native: Decimal
    liquid_total_reference: Decimal
    liquid_total_native: Decimal
    account_count: int
    token_count: int


class FundStructureResponse(BaseModel):
    """Response schema for the fund structure report."""

    counted: list[FundAccountPortfolioResponse]
    excluded: list[FundAccountPortfolioResponse]
    aggregate: AggregateTotalsResponse
    generated_at: Optional[datetime] = None

    @classmethod
    def from_view(cls, report: FundStructureReport) -> "FundStructureResponse":
        return cls(
            counted=[FundAccountPortfolioResponse.from_view(p) for p in report.counted],
            excluded=[FundAccountPortfolioResponse.from_view(p) for p in report.excluded],
            aggregate=AggregateTotalsResponse(
                total_reference=report.aggregate.total_reference,
                total_native=report.aggregate.total_native,
                liquid_total_reference=report.aggregate.liquid_total_reference,
                liquid_total_native=report.aggregate.liquid_total_native,
                account_count=report.aggregate.account_count,
                token_count=report.aggregate.token_count,
            ),
            generated_at=report.generated_at,
        )
