"""Account portfolio and valuation endpoints."""

import logging

from fastapi import APIRouter, Depends

from fundstat.api.deps import get_portfolio_service, get_price_service, get_valuation_service
from fundstat.api.schemas import (
    PortfolioResponse,
    TokenValuationResponse,
    ValuationListResponse,
    ValuationResponse,
)
from fundstat.core.exceptions import ValidationError
from fundstat.domain.models import is_valid_account_id
from fundstat.domain.registry import EURMTL_ASSET, XLM_ASSET
from fundstat.domain.views import ReferenceAssets, TokenValuation
from fundstat.services import AssetValuationService, PortfolioService, PriceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["portfolio"])

_REFERENCES = ReferenceAssets(primary=EURMTL_ASSET, secondary=XLM_ASSET)


@router.get("/portfolio/{account_id}", response_model=PortfolioResponse)
async def get_portfolio(
    account_id: str,
    portfolios: PortfolioService = Depends(get_portfolio_service),
    prices: PriceService = Depends(get_price_service),
) -> PortfolioResponse:
    """Get an account's holdings priced in EURMTL and XLM."""
    portfolio = await portfolios.get_account_portfolio(account_id)

    try:
        tokens = await prices.get_tokens_with_prices(portfolio.tokens, _REFERENCES)
    except Exception:
        # Still return the balances when pricing fails
        logger.exception("Pricing failed for %s", account_id)
        tokens = [TokenValuation(asset=t.asset, balance=t.balance) for t in portfolio.tokens]

    try:
        native_price = (await prices.get_token_price(XLM_ASSET, EURMTL_ASSET)).price
    except Exception as exc:
        logger.warning("XLM price unavailable: %s", exc)
        native_price = None

    return PortfolioResponse(
        account_id=portfolio.account_id,
        native_balance=portfolio.native_balance,
        native_price_in_reference=native_price,
        tokens=[TokenValuationResponse.from_view(t) for t in tokens],
    )


@router.get("/valuations/{account_id}", response_model=ValuationListResponse)
async def get_valuations(
    account_id: str,
    valuations: AssetValuationService = Depends(get_valuation_service),
) -> ValuationListResponse:
    """Get the manual valuations published by an account, resolved to EURMTL."""
    if not is_valid_account_id(account_id):
        raise ValidationError(f"Invalid account id: {account_id}")
    raw = await valuations.get_account_valuations(account_id)
    resolved = await valuations.resolve_all_valuations(raw, skip_failures=True)
    return ValuationListResponse(
        account_id=account_id,
        valuations=[ValuationResponse.from_model(v) for v in resolved],
        count=len(resolved),
    )
