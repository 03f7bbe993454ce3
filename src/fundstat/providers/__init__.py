"""Ledger and quote providers module."""

from fundstat.providers.ledger_provider import LedgerProvider
from fundstat.providers.horizon_provider import HorizonLedgerProvider
from fundstat.providers.quote_provider import QuoteProvider, CoinGeckoQuoteProvider
from fundstat.providers.paging import fetch_all_pages

__all__ = [
    "LedgerProvider",
    "HorizonLedgerProvider",
    "QuoteProvider",
    "CoinGeckoQuoteProvider",
    "fetch_all_pages",
]
