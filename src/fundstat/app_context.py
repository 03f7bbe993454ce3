"""
Application context for in-process service management.

Owns the process-lifetime services so that their caches survive across
requests. Used by the API dependencies and by scripts that call the engine
directly.
"""

from typing import Optional

from fundstat.config.settings import Settings, get_settings
from fundstat.config.stellar import get_stellar_config
from fundstat.providers import CoinGeckoQuoteProvider, HorizonLedgerProvider
from fundstat.services import (
    AssetValuationService,
    ExternalPriceService,
    FundStructureService,
    PortfolioService,
    PriceService,
)


class AppContext:
    """Lazily built providers and services sharing one configuration."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings

        # Provider and service instances (lazy initialized)
        self._ledger: Optional[HorizonLedgerProvider] = None
        self._quotes: Optional[CoinGeckoQuoteProvider] = None
        self._external_prices: Optional[ExternalPriceService] = None
        self._prices: Optional[PriceService] = None
        self._valuations: Optional[AssetValuationService] = None
        self._portfolios: Optional[PortfolioService] = None
        self._fund: Optional[FundStructureService] = None

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    # Provider accessors
    @property
    def ledger(self) -> HorizonLedgerProvider:
        """Get the ledger provider for the configured network."""
        if self._ledger is None:
            config = get_stellar_config(self.settings)
            self._ledger = HorizonLedgerProvider(
                horizon_url=config.horizon_url,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._ledger

    @property
    def quotes(self) -> CoinGeckoQuoteProvider:
        if self._quotes is None:
            self._quotes = CoinGeckoQuoteProvider(
                base_url=self.settings.coingecko_base_url,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._quotes

    # Service accessors
    @property
    def external_prices(self) -> ExternalPriceService:
        if self._external_prices is None:
            settings = self.settings
            self._external_prices = ExternalPriceService(
                provider=self.quotes,
                cache_ttl_seconds=settings.external_price_cache_ttl_seconds,
                request_delay_seconds=settings.external_price_request_delay_seconds,
                retry_initial_delay_seconds=settings.external_price_retry_initial_delay_seconds,
                max_attempts=settings.external_price_max_attempts,
            )
        return self._external_prices

    @property
    def prices(self) -> PriceService:
        if self._prices is None:
            settings = self.settings
            self._prices = PriceService(
                ledger=self.ledger,
                cache_ttl_seconds=settings.price_cache_ttl_seconds,
                max_cache_entries=settings.price_cache_max_entries,
                retry_initial_delay_seconds=settings.price_retry_initial_delay_seconds,
                max_attempts=settings.price_max_attempts,
                token_delay_seconds=settings.token_price_delay_seconds,
            )
        return self._prices

    @property
    def valuations(self) -> AssetValuationService:
        if self._valuations is None:
            self._valuations = AssetValuationService(
                ledger=self.ledger,
                external_prices=self.external_prices,
                fetch_concurrency=self.settings.valuation_fetch_concurrency,
            )
        return self._valuations

    @property
    def portfolios(self) -> PortfolioService:
        if self._portfolios is None:
            self._portfolios = PortfolioService(ledger=self.ledger)
        return self._portfolios

    @property
    def fund(self) -> FundStructureService:
        if self._fund is None:
            self._fund = FundStructureService(
                portfolio_service=self.portfolios,
                price_service=self.prices,
                valuation_service=self.valuations,
                account_delay_seconds=self.settings.account_delay_seconds,
            )
        return self._fund

    async def aclose(self) -> None:
        """Close HTTP clients."""
        if self._ledger is not None:
            await self._ledger.aclose()
            self._ledger = None
        if self._quotes is not None:
            await self._quotes.aclose()
            self._quotes = None
        self._external_prices = None
        self._prices = None
        self._valuations = None
        self._portfolios = None
        self._fund = None


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
