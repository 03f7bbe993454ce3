"""External (off-ledger) EUR prices with caching and rate-limit backoff."""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from fundstat.core.exceptions import AppError, ExternalPriceError
from fundstat.core.retry import is_rate_limit_error, retry_with_backoff
from fundstat.providers.quote_provider import QuoteProvider

logger = logging.getLogger(__name__)

EXTERNAL_PRICE_SYMBOLS: tuple[str, ...] = ("BTC", "ETH", "XLM", "Sats", "USD")

# Sats is derived from the bitcoin quote; USD is quoted through tether
COIN_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "XLM": "stellar",
    "Sats": "bitcoin",
    "USD": "tether",
}

SATS_PER_BTC = Decimal("100000000")


def is_external_price_symbol(value: str) -> bool:
    """Exact, case-sensitive membership in the supported symbol set."""
    return value in COIN_IDS


class ExternalPriceService:
    """
    Service for EUR prices of a fixed set of off-ledger symbols.

    Each symbol is cached for cache_ttl_seconds. Every upstream request is
    preceded by a courtesy delay; HTTP 429 answers are retried with doubling
    delays, other failures surface immediately as ExternalPriceError.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        cache_ttl_seconds: float = 3600.0,
        request_delay_seconds: float = 6.0,
        retry_initial_delay_seconds: float = 10.0,
        max_attempts: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._request_delay = request_delay_seconds
        self._retry_initial_delay = retry_initial_delay_seconds
        self._max_attempts = max_attempts
        self._clock = clock
        self._sleep = sleep
        # symbol -> (price_eur, fetched_at)
        self._cache: dict[str, tuple[Decimal, float]] = {}

    async def get_price_in_eur(self, symbol: str) -> Decimal:
        """
        Return the EUR price of symbol.

        Raises:
            ExternalPriceError: If the symbol is unsupported or no price can be fetched.
        """
        if not is_external_price_symbol(symbol):
            raise ExternalPriceError(f"Unsupported external price symbol: {symbol}")

        cached = self._get_cached(symbol)
        if cached is not None:
            logger.debug("External price cache hit for %s", symbol)
            return cached

        prices = await self._fetch([symbol])
        return prices[symbol]

    async def get_all_prices_in_eur(self) -> dict[str, Decimal]:
        """Return EUR prices for every supported symbol, fetching only stale ones in one batch."""
        result: dict[str, Decimal] = {}
        stale: list[str] = []
        for symbol in EXTERNAL_PRICE_SYMBOLS:
            cached = self._get_cached(symbol)
            if cached is None:
                stale.append(symbol)
            else:
                result[symbol] = cached

        if stale:
            result.update(await self._fetch(stale))

        return {symbol: result[symbol] for symbol in EXTERNAL_PRICE_SYMBOLS}

    def clear_cache(self) -> None:
        self._cache.clear()

    def _get_cached(self, symbol: str) -> Optional[Decimal]:
        entry = self._cache.get(symbol)
        if entry is None:
            return None
        price, fetched_at = entry
        if self._clock() - fetched_at >= self._cache_ttl:
            return None
        return price

    async def _fetch(self, symbols: list[str]) -> dict[str, Decimal]:
        coin_ids = list(dict.fromkeys(COIN_IDS[symbol] for symbol in symbols))
        logger.info("Fetching EUR prices for %s", ", ".join(symbols))

        await self._sleep(self._request_delay)
        try:
            quotes = await retry_with_backoff(
                lambda: self._provider.fetch_prices_eur(coin_ids),
                max_attempts=self._max_attempts,
                initial_delay=self._retry_initial_delay,
                should_retry=is_rate_limit_error,
                sleep=self._sleep,
                description=f"External price request ({','.join(coin_ids)})",
            )
        except ExternalPriceError:
            raise
        except AppError as exc:
            if is_rate_limit_error(exc):
                raise ExternalPriceError(
                    f"Rate limit persisted after {self._max_attempts} attempts", cause=exc
                ) from exc
            raise ExternalPriceError(exc.message, cause=exc) from exc
        except Exception as exc:
            raise ExternalPriceError(f"External price request failed: {exc}", cause=exc) from exc

        fetched_at = self._clock()
        prices: dict[str, Decimal] = {}
        for symbol in symbols:
            coin_id = COIN_IDS[symbol]
            quote = quotes.get(coin_id)
            if quote is None or not quote.is_finite() or quote <= 0:
                raise ExternalPriceError(f"No EUR quote for {symbol} ({coin_id})")
            price = quote / SATS_PER_BTC if symbol == "Sats" else quote
            self._cache[symbol] = (price, fetched_at)
            prices[symbol] = price
        return prices
