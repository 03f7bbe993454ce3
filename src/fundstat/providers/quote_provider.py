"""External quote providers for off-ledger symbols."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol

import httpx

from fundstat.core.exceptions import ExternalPriceError, RateLimitError

logger = logging.getLogger(__name__)


class QuoteProvider(Protocol):
    """
    Protocol for EUR quote sources.

    Implementations raise RateLimitError on HTTP 429 and ExternalPriceError on
    any other failure. Ids without a quote are omitted from the result.
    """

    async def fetch_prices_eur(self, coin_ids: list[str]) -> dict[str, Decimal]:
        """Return EUR price per coin id."""
        ...


class CoinGeckoQuoteProvider:
    """Quote provider for the CoinGecko simple price endpoint."""

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_prices_eur(self, coin_ids: list[str]) -> dict[str, Decimal]:
        if not coin_ids:
            return {}

        params = {"ids": ",".join(coin_ids), "vs_currencies": "eur"}
        try:
            response = await self._client.get("/simple/price", params=params)
        except httpx.HTTPError as exc:
            raise ExternalPriceError(f"Quote request failed: {exc}", cause=exc) from exc

        if response.status_code == 429:
            raise RateLimitError("Quote API rate limit exceeded")
        if response.status_code >= 400:
            raise ExternalPriceError(f"Quote API returned HTTP {response.status_code}")

        try:
            body = response.json(parse_float=Decimal)
        except ValueError as exc:
            raise ExternalPriceError("Malformed quote response", cause=exc) from exc
        if not isinstance(body, dict):
            raise ExternalPriceError("Malformed quote response")

        result: dict[str, Decimal] = {}
        for coin_id in coin_ids:
            entry = body.get(coin_id)
            eur = entry.get("eur") if isinstance(entry, dict) else None
            if eur is None:
                continue
            try:
                result[coin_id] = Decimal(str(eur))
            except InvalidOperation:
                logger.warning("Ignoring non-numeric quote for %s: %r", coin_id, eur)
        return result
