"""Ledger query provider protocol."""

from typing import Optional, Protocol

from fundstat.domain.models import AssetRef
from fundstat.domain.views import (
    AccountRecord,
    ClaimableBalanceRecord,
    LiquidityPoolRecord,
    OfferRecord,
    OrderbookRecord,
    PaymentPathRecord,
)


class LedgerProvider(Protocol):
    """
    Protocol for ledger query backends.

    Implementations raise LedgerQueryError on any failure; HTTP 429 must stay
    detectable through the error's status_code or cause chain.
    """

    async def load_account(self, account_id: str) -> AccountRecord:
        """Load balances and metadata entries of an account."""
        ...

    async def get_orderbook(self, selling: AssetRef, buying: AssetRef, limit: int = 20) -> OrderbookRecord:
        """Fetch the order book for selling/buying."""
        ...

    async def get_liquidity_pool(self, asset_a: AssetRef, asset_b: AssetRef) -> Optional[LiquidityPoolRecord]:
        """Return the pool holding both assets, or None if there is none."""
        ...

    async def find_strict_send_paths(
        self,
        source_asset: AssetRef,
        source_amount: str,
        destination_assets: list[AssetRef],
    ) -> list[PaymentPathRecord]:
        """Find paths that deliver as much as possible for a fixed source amount."""
        ...

    async def find_strict_receive_paths(
        self,
        source_assets: list[AssetRef],
        destination_asset: AssetRef,
        destination_amount: str,
    ) -> list[PaymentPathRecord]:
        """Find paths that cost as little as possible for a fixed destination amount."""
        ...

    async def list_claimable_balances(self, claimant: str) -> list[ClaimableBalanceRecord]:
        """
        List every claimable balance claimable by an account.

        Part of the ledger interface only; the price and fund services do not call it.
        """
        ...

    async def list_offers(self, account_id: str) -> list[OfferRecord]:
        """
        List every open offer of an account.

        Part of the ledger interface only; the price and fund services do not call it.
        """
        ...
