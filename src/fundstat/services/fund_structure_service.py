"""Fund-wide valuation report across the registered accounts."""

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Awaitable, Callable, Optional, Sequence

from fundstat.core.decimal_math import (
    LEDGER_PRECISION,
    divide_with_precision,
    format_decimal,
    is_positive,
    multiply_with_precision,
    safe_decimal,
    safe_sum,
    to_decimal,
)
from fundstat.core.exceptions import ConfigurationError
from fundstat.core.timezone import now_utc
from fundstat.domain.models import AssetRef, FundAccount, ResolvedAssetValuation, ValuationType
from fundstat.domain.registry import EURMTL_ASSET, FUND_ACCOUNTS, XLM_ASSET
from fundstat.domain.views import (
    AggregateTotals,
    FundAccountPortfolio,
    FundStructureReport,
    ReferenceAssets,
    TokenValuation,
)
from fundstat.services.asset_valuation_service import (
    AssetValuationService,
    calculate_value_in_eurmtl,
    find_valuation,
    is_nft_balance,
    merge_valuations,
)
from fundstat.services.portfolio_service import PortfolioService
from fundstat.services.price_service import REFERENCE_VALUE_PLACES, PriceService

logger = logging.getLogger(__name__)

DEFAULT_REFERENCES = ReferenceAssets(primary=EURMTL_ASSET, secondary=XLM_ASSET)


def _product(a: Optional[str], b: Optional[str]) -> Optional[Decimal]:
    da, db = to_decimal(a), to_decimal(b)
    if da is None or db is None:
        return None
    try:
        result = da * db
    except ArithmeticError:
        return None
    return result if result.is_finite() else None


def apply_valuation_override(
    token: TokenValuation,
    valuations: Sequence[ResolvedAssetValuation],
    native_price_in_reference: Optional[str],
) -> TokenValuation:
    """
    Replace a token's market pricing with a manual valuation, if one exists.

    NFT-like holdings and nft-typed valuations take the stored total as both
    price and value. Unit valuations multiply the balance by the stored price.
    Native-currency figures are derived through native_price_in_reference.
    """
    is_nft = is_nft_balance(token.balance)
    valuation = find_valuation(token.asset.code, valuations, is_nft)
    if valuation is None:
        return replace(token, is_nft=is_nft)

    value = calculate_value_in_eurmtl(valuation, token.balance, is_nft)
    if is_nft or valuation.valuation_type == ValuationType.NFT:
        price = value
    else:
        price = valuation.value_in_eurmtl

    price_native = value_native = None
    if to_decimal(native_price_in_reference):
        price_native = divide_with_precision(price, native_price_in_reference)
        value_native = divide_with_precision(value, native_price_in_reference)

    return replace(
        token,
        is_nft=is_nft,
        valuation=valuation,
        price_in_reference=price,
        price_in_native=price_native,
        value_in_reference=value,
        value_in_native=value_native,
        override_total=value,
    )


def account_totals(
    tokens: Sequence[TokenValuation],
    native_balance: str,
    native_price_in_reference: Optional[str],
) -> tuple[Decimal, Decimal]:
    """
    Totals of an account in the reference and native currencies.

    Overridden tokens contribute their override total; other tokens contribute
    balance times price. Unpriceable contributions count as zero.
    """
    reference_parts: list[Optional[Decimal]] = []
    native_parts: list[Optional[Decimal]] = []
    for token in tokens:
        if token.override_total is not None:
            reference_parts.append(to_decimal(token.override_total))
            native_parts.append(to_decimal(token.value_in_native))
        else:
            reference_parts.append(_product(token.balance, token.price_in_reference))
            native_parts.append(_product(token.balance, token.price_in_native))

    reference_parts.append(_product(native_balance, native_price_in_reference))
    native_parts.append(to_decimal(native_balance))
    return safe_sum(reference_parts), safe_sum(native_parts)


def liquid_totals(
    tokens: Sequence[TokenValuation],
    native_balance: str,
    native_price_in_reference: Optional[str],
) -> tuple[Decimal, Decimal]:
    """
    Totals at the prices of selling each whole balance, slippage included.

    Overridden tokens contribute their override total; tokens without a
    full-balance quote count as zero.
    """
    reference_parts: list[Optional[Decimal]] = []
    native_parts: list[Optional[Decimal]] = []
    for token in tokens:
        if token.override_total is not None:
            reference_parts.append(to_decimal(token.override_total))
            native_parts.append(to_decimal(token.value_in_native))
        else:
            reference_parts.append(to_decimal(token.liquid_value_in_reference))
            native_parts.append(to_decimal(token.liquid_value_in_native))

    reference_parts.append(_product(native_balance, native_price_in_reference))
    native_parts.append(to_decimal(native_balance))
    return safe_sum(reference_parts), safe_sum(native_parts)


class FundStructureService:
    """
    Service for the fund structure report.

    Accounts are processed one after another with a short stagger. A failing
    token or account degrades to null pricing; only configuration errors
    abort the report.
    """

    def __init__(
        self,
        portfolio_service: PortfolioService,
        price_service: PriceService,
        valuation_service: AssetValuationService,
        accounts: Sequence[FundAccount] = FUND_ACCOUNTS,
        references: ReferenceAssets = DEFAULT_REFERENCES,
        account_delay_seconds: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._portfolios = portfolio_service
        self._prices = price_service
        self._valuations = valuation_service
        self._accounts = tuple(accounts)
        self._references = references
        self._account_delay = account_delay_seconds
        self._sleep = sleep

    def get_fund_accounts(self) -> list[FundAccount]:
        return list(self._accounts)

    async def get_fund_structure(self) -> FundStructureReport:
        valuations = await self._collect_valuations()

        portfolios: list[FundAccountPortfolio] = []
        for index, account in enumerate(self._accounts):
            if index > 0:
                await self._sleep(self._account_delay)
            portfolios.append(await self._build_account(account, valuations))

        counted = [p for p in portfolios if p.account.is_counted]
        excluded = [p for p in portfolios if not p.account.is_counted]
        aggregate = AggregateTotals(
            total_reference=safe_sum(p.total_in_reference for p in counted),
            total_native=safe_sum(p.total_in_native for p in counted),
            liquid_total_reference=safe_sum(p.liquid_total_in_reference for p in counted),
            liquid_total_native=safe_sum(p.liquid_total_in_native for p in counted),
            account_count=len(counted),
            token_count=sum(len(p.tokens) for p in counted),
        )
        logger.info(
            "Fund structure: %d counted, %d excluded, total %s %s (liquid %s)",
            len(counted),
            len(excluded),
            aggregate.total_reference,
            self._references.primary.code,
            aggregate.liquid_total_reference,
        )
        return FundStructureReport(
            counted=counted,
            excluded=excluded,
            aggregate=aggregate,
            generated_at=now_utc(),
        )

    async def _collect_valuations(self) -> list[ResolvedAssetValuation]:
        try:
            raw = await self._valuations.collect_account_valuations([a.id for a in self._accounts])
            return await self._valuations.resolve_all_valuations(raw, skip_failures=True)
        except ConfigurationError:
            raise
        except Exception:
            logger.exception("Valuation overrides unavailable, using market prices only")
            return []

    async def _native_price(self) -> Optional[str]:
        try:
            result = await self._prices.get_token_price(self._references.secondary, self._references.primary)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("Cross rate %s -> %s unavailable: %s",
                           self._references.secondary.label, self._references.primary.label, exc)
            return None
        return result.price

    async def _build_account(
        self,
        account: FundAccount,
        valuations: Sequence[ResolvedAssetValuation],
    ) -> FundAccountPortfolio:
        try:
            portfolio = await self._portfolios.get_account_portfolio(account.id)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Could not load portfolio of %s (%s): %s", account.name, account.id, exc)
            return FundAccountPortfolio(account=account, error=str(exc))

        try:
            priced = await self._prices.get_tokens_with_prices(portfolio.tokens, self._references)
            native_price = await self._native_price()

            owned = merge_valuations(valuations, owner_account=account.id)
            tokens = [apply_valuation_override(token, owned, native_price) for token in priced]
            tokens = [await self._with_liquid_values(token, native_price) for token in tokens]
            total_reference, total_native = account_totals(tokens, portfolio.native_balance, native_price)
            liquid_reference, liquid_native = liquid_totals(tokens, portfolio.native_balance, native_price)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Could not price portfolio of %s (%s): %s", account.name, account.id, exc)
            return FundAccountPortfolio(
                account=account,
                tokens=[
                    TokenValuation(asset=t.asset, balance=t.balance, is_nft=is_nft_balance(t.balance))
                    for t in portfolio.tokens
                ],
                native_balance=portfolio.native_balance,
                error=str(exc),
            )

        return FundAccountPortfolio(
            account=account,
            tokens=tokens,
            native_balance=portfolio.native_balance,
            native_price_in_reference=native_price,
            total_in_reference=total_reference,
            total_in_native=total_native,
            liquid_total_in_reference=liquid_reference,
            liquid_total_in_native=liquid_native,
        )

    async def _with_liquid_values(self, token: TokenValuation, native_price: Optional[str]) -> TokenValuation:
        """
        Add what selling the whole balance would fetch in each reference currency.

        Only market-priced tokens are quoted, and only against references they
        have a unit price in. A side without a full-balance quote is derived
        from the other one through the cross rate.
        """
        if token.override_total is not None or not is_positive(token.balance):
            return token

        liquid_reference = liquid_native = None
        if token.price_in_reference is not None:
            liquid_reference = await self._liquid_value(token, self._references.primary, REFERENCE_VALUE_PLACES)
        if token.price_in_native is not None:
            liquid_native = await self._liquid_value(token, self._references.secondary, LEDGER_PRECISION)

        if is_positive(native_price):
            if liquid_reference is None and liquid_native is not None:
                liquid_reference = multiply_with_precision(liquid_native, native_price, REFERENCE_VALUE_PLACES)
            elif liquid_native is None and liquid_reference is not None:
                liquid_native = divide_with_precision(liquid_reference, native_price)

        return replace(token, liquid_value_in_reference=liquid_reference, liquid_value_in_native=liquid_native)

    async def _liquid_value(self, token: TokenValuation, reference: AssetRef, places: int) -> Optional[str]:
        amount = format_decimal(safe_decimal(token.balance))
        try:
            result = await self._prices.get_token_price(token.asset, reference, amount)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("No full-balance quote for %s %s in %s: %s",
                           amount, token.asset.label, reference.label, exc)
            return None
        return multiply_with_precision(amount, result.price, places)
