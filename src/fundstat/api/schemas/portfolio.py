"""Pydantic schemas for portfolio and valuation endpoints."""

from typing import Optional

from pydantic import BaseModel

from fundstat.domain.models import EurmtlValue, ResolvedAssetValuation
from fundstat.domain.views import TokenValuation


class ValuationResponse(BaseModel):
    """A resolved manual valuation."""

    token_code: str
    valuation_type: str
    raw_value: str
    is_external: bool
    source_account: str
    value_in_eurmtl: str

    @classmethod
    def from_model(cls, valuation: ResolvedAssetValuation) -> "ValuationResponse":
        raw = valuation.raw_value
        is_external = not isinstance(raw, EurmtlValue)
        return cls(
            token_code=valuation.token_code,
            valuation_type=valuation.valuation_type.value,
            raw_value=raw.symbol if is_external else raw.value,
            is_external=is_external,
            source_account=valuation.source_account,
            value_in_eurmtl=valuation.value_in_eurmtl,
        )


class TokenValuationResponse(BaseModel):
    """A token balance with prices and values in both reference currencies."""

    asset: str
    code: str
    issuer: Optional[str] = None
    balance: str
    price_in_reference: Optional[str] = None
    price_in_native: Optional[str] = None
    value_in_reference: Optional[str] = None
    value_in_native: Optional[str] = None
    is_nft: bool = False
    override_total: Optional[str] = None
    liquid_value_in_reference: Optional[str] = None
    liquid_value_in_native: Optional[str] = None
    valuation: Optional[ValuationResponse] = None

    @classmethod
    def from_view(cls, token: TokenValuation) -> "TokenValuationResponse":
        return cls(
            asset=token.asset.label,
            code=token.asset.code,
            issuer=token.asset.issuer,
            balance=token.balance,
            price_in_reference=token.price_in_reference,
            price_in_native=token.price_in_native,
            value_in_reference=token.value_in_reference,
            value_in_native=token.value_in_native,
            is_nft=token.is_nft,
            override_total=token.override_total,
            liquid_value_in_reference=token.liquid_value_in_reference,
            liquid_value_in_native=token.liquid_value_in_native,
            valuation=ValuationResponse.from_model(token.valuation) if token.valuation else None,
        )


class PortfolioResponse(BaseModel):
    """Response schema for a single account portfolio."""

    account_id: str
    native_balance: str
    native_price_in_reference: Optional[str] = None
    tokens: list[TokenValuationResponse]


class ValuationListResponse(BaseModel):
    account_id: str
    valuations: list[ValuationResponse]
    count: int
