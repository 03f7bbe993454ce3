"""
Ledger price discovery.

A pair is priced from two sources queried concurrently: payment-path search
and a direct quote from the order book or the liquidity pool. The higher of
the available prices wins. Results are cached for a short TTL and rate-limited
lookups are retried with exponential backoff.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Optional, Sequence

from fundstat.core.decimal_math import (
    divide_with_precision,
    is_positive,
    multiply_with_precision,
    safe_decimal,
    to_decimal,
)
from fundstat.core.exceptions import ConfigurationError, PriceUnavailableError
from fundstat.core.retry import is_rate_limit_error, retry_with_backoff
from fundstat.core.timezone import now_utc
from fundstat.domain.models import AssetRef
from fundstat.domain.views import (
    BestPriceDetails,
    LiquidityPoolRecord,
    OrderbookPriceDetails,
    OrderbookRecord,
    OrderbookSnapshot,
    PathHop,
    PathPriceDetails,
    PoolSnapshot,
    ReferenceAssets,
    TokenBalance,
    TokenPairPrice,
    TokenValuation,
)
from fundstat.providers.ledger_provider import LedgerProvider

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]

REFERENCE_VALUE_PLACES = 2


def orderbook_snapshot(record: OrderbookRecord) -> OrderbookSnapshot:
    return OrderbookSnapshot(
        best_bid=record.bids[0].price if record.bids else None,
        best_ask=record.asks[0].price if record.asks else None,
        bid_count=len(record.bids),
        ask_count=len(record.asks),
    )


def pool_snapshot(record: LiquidityPoolRecord, asset_a: AssetRef, asset_b: AssetRef) -> Optional[PoolSnapshot]:
    """Pool state for a->b; price is the reserve ratio reserve_b / reserve_a."""
    reserve_a = record.reserves.get(asset_a.canonical)
    reserve_b = record.reserves.get(asset_b.canonical)
    if reserve_a is None or reserve_b is None:
        return None
    price = divide_with_precision(reserve_b, reserve_a)
    return PoolSnapshot(
        pool_id=record.pool_id,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        price=price if is_positive(price) else None,
    )


def _mid_price(bid: Optional[str], ask: Optional[str]) -> Optional[str]:
    if bid is not None and ask is not None:
        return divide_with_precision(safe_decimal(bid) + safe_decimal(ask), "2")
    return bid if bid is not None else ask


def _lower_ask(book_ask: Optional[str], pool_ask: Optional[str]) -> str:
    """Pick the venue with the lower ask; a missing ask never wins, ties go to the order book."""
    if pool_ask is None:
        return "orderbook"
    if book_ask is None:
        return "pool"
    return "pool" if to_decimal(pool_ask) < to_decimal(book_ask) else "orderbook"


class PriceService:
    """
    Service for pricing one ledger asset in another.

    Concurrent misses for the same key share one lookup. The cache is bounded:
    expired entries are pruned first, then the oldest entries are evicted.
    """

    def __init__(
        self,
        ledger: LedgerProvider,
        cache_ttl_seconds: float = 30.0,
        max_cache_entries: int = 1000,
        retry_initial_delay_seconds: float = 2.0,
        max_attempts: int = 5,
        token_delay_seconds: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._ledger = ledger
        self._cache_ttl = cache_ttl_seconds
        self._max_cache_entries = max(1, max_cache_entries)
        self._retry_initial_delay = retry_initial_delay_seconds
        self._max_attempts = max_attempts
        self._token_delay = token_delay_seconds
        self._clock = clock
        self._sleep = sleep
        # key -> (price, stored_at), oldest first
        self._cache: "OrderedDict[CacheKey, tuple[TokenPairPrice, float]]" = OrderedDict()
        self._inflight: dict[CacheKey, asyncio.Future] = {}

    # =========================================================================
    # PAIR PRICES
    # =========================================================================

    async def get_token_price(self, asset_a: AssetRef, asset_b: AssetRef, amount: str = "1") -> TokenPairPrice:
        """
        Price `amount` of asset_a in asset_b.

        Raises:
            PriceUnavailableError: If no source yields a positive price.
            LedgerQueryError: If the ledger stays rate limited after every retry.
        """
        if asset_a.same_as(asset_b):
            return TokenPairPrice(
                asset_a=asset_a,
                asset_b=asset_b,
                price="1",
                destination_amount=amount,
                timestamp=now_utc(),
            )

        key: CacheKey = (asset_a.canonical, asset_b.canonical, amount)
        cached = self._get_cached(key)
        if cached is not None:
            logger.debug("Price cache hit for %s -> %s", asset_a.label, asset_b.label)
            return cached

        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._fetch_and_cache(key, asset_a, asset_b, amount))
            self._inflight[key] = future
            future.add_done_callback(lambda done, k=key: self._on_fetch_done(k, done))
        return await asyncio.shield(future)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _on_fetch_done(self, key: CacheKey, future: asyncio.Future) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]
        # Mark the outcome as retrieved when every waiter has gone away
        if not future.cancelled():
            future.exception()

    def _get_cached(self, key: CacheKey) -> Optional[TokenPairPrice]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        price, stored_at = entry
        if self._clock() - stored_at >= self._cache_ttl:
            del self._cache[key]
            return None
        return price

    def _store(self, key: CacheKey, price: TokenPairPrice) -> None:
        now = self._clock()
        expired = [k for k, (_, stored_at) in self._cache.items() if now - stored_at >= self._cache_ttl]
        for k in expired:
            del self._cache[k]
        self._cache.pop(key, None)
        while len(self._cache) >= self._max_cache_entries:
            self._cache.popitem(last=False)
        self._cache[key] = (price, now)

    async def _fetch_and_cache(
        self,
        key: CacheKey,
        asset_a: AssetRef,
        asset_b: AssetRef,
        amount: str,
    ) -> TokenPairPrice:
        logger.info("Discovering price %s -> %s (amount %s)", asset_a.label, asset_b.label, amount)
        result = await retry_with_backoff(
            lambda: self._discover(asset_a, asset_b, amount),
            max_attempts=self._max_attempts,
            initial_delay=self._retry_initial_delay,
            should_retry=is_rate_limit_error,
            sleep=self._sleep,
            description=f"Price lookup {asset_a.label} -> {asset_b.label}",
        )
        self._store(key, result)
        return result

    async def _discover(self, asset_a: AssetRef, asset_b: AssetRef, amount: str) -> TokenPairPrice:
        """Query both sources once and combine them."""
        path_task = self._find_path_price(asset_a, asset_b, amount)
        if amount == "1":
            path_result, direct_result = await asyncio.gather(
                path_task,
                self._find_direct_price(asset_a, asset_b),
                return_exceptions=True,
            )
        else:
            (path_result,) = await asyncio.gather(path_task, return_exceptions=True)
            direct_result = None

        errors = [r for r in (path_result, direct_result) if isinstance(r, BaseException)]
        for error in errors:
            if not isinstance(error, Exception) or is_rate_limit_error(error):
                raise error
        for error in errors:
            logger.warning(
                "Price source failed for %s -> %s: %s", asset_a.label, asset_b.label, error
            )

        path = None if isinstance(path_result, BaseException) else path_result
        direct = None if isinstance(direct_result, BaseException) else direct_result

        if path is not None and direct is not None:
            path_price, path_details = path
            direct_price, direct_details = direct
            if to_decimal(path_price) >= to_decimal(direct_price):
                chosen, price = "path", path_price
                destination_amount = path_details.destination_amount
                reason = f"path price {path_price} >= direct price {direct_price}"
            else:
                chosen, price = "orderbook", direct_price
                destination_amount = multiply_with_precision(amount, direct_price)
                reason = f"direct price {direct_price} > path price {path_price}"
            details = BestPriceDetails(
                path_price=path_price,
                direct_price=direct_price,
                chosen=chosen,
                reason=reason,
                path=path_details,
                direct=direct_details,
            )
        elif path is not None:
            price, details = path
            destination_amount = details.destination_amount
        elif direct is not None:
            price, details = direct
            destination_amount = multiply_with_precision(amount, price)
        else:
            raise PriceUnavailableError(asset_a.label, asset_b.label, cause=errors[0] if errors else None)

        return TokenPairPrice(
            asset_a=asset_a,
            asset_b=asset_b,
            price=price,
            destination_amount=destination_amount,
            timestamp=now_utc(),
            details=details,
        )

    # =========================================================================
    # PATH SEARCH
    # =========================================================================

    async def _find_path_price(
        self,
        asset_a: AssetRef,
        asset_b: AssetRef,
        amount: str,
    ) -> Optional[tuple[str, PathPriceDetails]]:
        try:
            records = await self._ledger.find_strict_send_paths(asset_a, amount, [asset_b])
        except Exception as exc:
            logger.debug("Strict-send search failed for %s -> %s (%s), trying strict-receive",
                         asset_a.label, asset_b.label, exc)
            records = await self._ledger.find_strict_receive_paths([asset_a], asset_b, amount)

        if not records:
            return None
        record = records[0]
        price = divide_with_precision(record.destination_amount, record.source_amount)
        if not is_positive(price):
            return None

        hops: list[PathHop] = []
        if record.path:
            hops = await self._build_hops([asset_a, *record.path, asset_b])
        return price, PathPriceDetails(
            source_amount=record.source_amount,
            destination_amount=record.destination_amount,
            hops=hops,
        )

    async def _build_hops(self, assets: Sequence[AssetRef]) -> list[PathHop]:
        """Per-hop diagnostics; each distinct pair is queried at most once."""
        lookups: dict[tuple[str, str], asyncio.Future] = {}

        def lookup(from_asset: AssetRef, to_asset: AssetRef) -> asyncio.Future:
            key = (from_asset.canonical, to_asset.canonical)
            if key not in lookups:
                lookups[key] = asyncio.ensure_future(self._hop_diagnostics(from_asset, to_asset))
            return lookups[key]

        pairs = list(zip(assets, assets[1:]))
        results = await asyncio.gather(*(lookup(x, y) for x, y in pairs), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _hop_diagnostics(self, from_asset: AssetRef, to_asset: AssetRef) -> PathHop:
        orderbook, pool = await asyncio.gather(
            self._ledger.get_orderbook(from_asset, to_asset),
            self._ledger.get_liquidity_pool(from_asset, to_asset),
            return_exceptions=True,
        )
        for failure in (orderbook, pool):
            if isinstance(failure, BaseException) and (
                not isinstance(failure, Exception) or is_rate_limit_error(failure)
            ):
                raise failure

        book = None
        if isinstance(orderbook, BaseException):
            logger.debug("No order book for hop %s -> %s: %s", from_asset.label, to_asset.label, orderbook)
        else:
            book = orderbook_snapshot(orderbook)

        pool_state = None
        if isinstance(pool, BaseException):
            logger.debug("No pool for hop %s -> %s: %s", from_asset.label, to_asset.label, pool)
        elif pool is not None:
            pool_state = pool_snapshot(pool, from_asset, to_asset)

        bid = book.best_bid if book else None
        ask = book.best_ask if book else None
        if bid is None and ask is None and pool_state is not None:
            bid = ask = pool_state.price
        return PathHop(
            from_asset=from_asset,
            to_asset=to_asset,
            bid=bid,
            ask=ask,
            mid_price=_mid_price(bid, ask),
            orderbook=book,
            pool=pool_state,
        )

    # =========================================================================
    # DIRECT QUOTE
    # =========================================================================

    async def _find_direct_price(
        self,
        asset_a: AssetRef,
        asset_b: AssetRef,
    ) -> Optional[tuple[str, OrderbookPriceDetails]]:
        orderbook, pool = await asyncio.gather(
            self._ledger.get_orderbook(asset_a, asset_b),
            self._ledger.get_liquidity_pool(asset_a, asset_b),
            return_exceptions=True,
        )
        failures = [r for r in (orderbook, pool) if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, Exception) or is_rate_limit_error(failure):
                raise failure
        if len(failures) == 2:
            raise failures[0]

        book = None if isinstance(orderbook, BaseException) else orderbook_snapshot(orderbook)
        pool_state = None
        if pool is not None and not isinstance(pool, BaseException):
            pool_state = pool_snapshot(pool, asset_a, asset_b)

        book_usable = book is not None and (book.best_bid is not None or book.best_ask is not None)
        pool_price = pool_state.price if pool_state is not None else None
        if not book_usable and pool_price is None:
            return None

        if not book_usable:
            venue = "pool"
        elif pool_price is None:
            venue = "orderbook"
        else:
            venue = _lower_ask(book.best_ask, pool_price)

        if venue == "pool":
            bid, ask = pool_price, pool_price
        else:
            bid, ask = book.best_bid, book.best_ask
        side = "bid" if bid is not None else "ask"
        price = bid if bid is not None else ask
        if not is_positive(price):
            return None

        return price, OrderbookPriceDetails(
            venue=venue,
            side=side,
            bid=bid,
            ask=ask,
            orderbook=book,
            pool=pool_state,
        )

    # =========================================================================
    # PORTFOLIO PRICING
    # =========================================================================

    async def get_tokens_with_prices(
        self,
        tokens: Sequence[TokenBalance],
        references: ReferenceAssets,
    ) -> list[TokenValuation]:
        """
        Price every token in both reference currencies.

        Tokens are priced one at a time with a short delay between them. When
        exactly one reference price is missing it is derived from the other via
        the live secondary->primary cross rate. A token that cannot be priced
        keeps null prices.
        """
        cross_rate: Optional[str] = None
        cross_loaded = False

        async def get_cross_rate() -> Optional[str]:
            nonlocal cross_rate, cross_loaded
            if not cross_loaded:
                cross_rate = await self._safe_price(references.secondary, references.primary)
                cross_loaded = True
            return cross_rate

        valuations: list[TokenValuation] = []
        for index, token in enumerate(tokens):
            if index > 0:
                await self._sleep(self._token_delay)

            primary = await self._safe_price(token.asset, references.primary)
            secondary = await self._safe_price(token.asset, references.secondary)

            if (primary is None) != (secondary is None):
                cross = await get_cross_rate()
                if cross is not None:
                    if primary is None:
                        primary = multiply_with_precision(secondary, cross)
                    else:
                        secondary = divide_with_precision(primary, cross)
                primary = primary if is_positive(primary) else None
                secondary = secondary if is_positive(secondary) else None

            valuations.append(
                TokenValuation(
                    asset=token.asset,
                    balance=token.balance,
                    price_in_reference=primary,
                    price_in_native=secondary,
                    value_in_reference=(
                        multiply_with_precision(primary, token.balance, REFERENCE_VALUE_PLACES)
                        if primary is not None
                        else None
                    ),
                    value_in_native=(
                        multiply_with_precision(secondary, token.balance) if secondary is not None else None
                    ),
                )
            )
        return valuations

    async def _safe_price(self, asset: AssetRef, reference: AssetRef) -> Optional[str]:
        try:
            result = await self.get_token_price(asset, reference)
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.warning("Could not price %s in %s: %s", asset.label, reference.label, exc)
            return None
        return result.price
