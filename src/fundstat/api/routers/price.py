"""Pair price endpoint."""

import logging

from fastapi import APIRouter, Depends, Query

from fundstat.api.deps import get_price_service
from fundstat.api.schemas import PriceResponse
from fundstat.core.decimal_math import format_decimal, is_positive, to_decimal
from fundstat.core.exceptions import ValidationError
from fundstat.domain.models import parse_asset_string
from fundstat.services import PriceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/price", tags=["price"])


@router.get("", response_model=PriceResponse)
async def get_price(
    asset_a: str = Query(..., description="Asset to price: XLM, native or CODE:ISSUER"),
    asset_b: str = Query(..., description="Asset to quote in: XLM, native or CODE:ISSUER"),
    amount: str = Query("1", description="Amount of asset_a"),
    prices: PriceService = Depends(get_price_service),
) -> PriceResponse:
    """Price an amount of one ledger asset in another."""
    if not is_positive(amount):
        raise ValidationError(f"Amount must be a positive number: {amount}")
    amount = format_decimal(to_decimal(amount))
    result = await prices.get_token_price(parse_asset_string(asset_a), parse_asset_string(asset_b), amount)
    logger.info("Price fetched: %s/%s = %s", result.asset_a.label, result.asset_b.label, result.price)
    return PriceResponse.from_view(result, amount)
