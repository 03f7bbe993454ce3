"""Pydantic schemas for price endpoints."""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from fundstat.domain.views import TokenPairPrice


class PriceResponse(BaseModel):
    """Response schema for a pair price."""

    asset_a: str = Field(..., description="Priced asset (XLM or CODE:ISSUER)")
    asset_b: str = Field(..., description="Quote asset (XLM or CODE:ISSUER)")
    amount: str
    price: str
    destination_amount: str
    timestamp: datetime
    source: Optional[str] = Field(None, description="path, orderbook or best")
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_view(cls, result: TokenPairPrice, amount: str) -> "PriceResponse":
        return cls(
            asset_a=result.asset_a.label,
            asset_b=result.asset_b.label,
            amount=amount,
            price=result.price,
            destination_amount=result.destination_amount,
            timestamp=result.timestamp,
            source=result.details.source if result.details else None,
            details=asdict(result.details) if result.details else None,
        )
