"""
Pytest configuration and fixtures for valuation engine tests.

This module provides:
- Deterministic in-memory ledger and quote providers
- Factory helpers for account records, order books, pools and paths
- A controllable clock and a recording sleep
- Service fixtures wired to the fakes
- A FastAPI test client using those services
"""

import base64
from decimal import Decimal
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from fundstat.api.deps import (
    get_fund_structure_service,
    get_portfolio_service,
    get_price_service,
    get_valuation_service,
)
from fundstat.config.settings import reset_settings
from fundstat.core.exceptions import LedgerQueryError, RateLimitError
from fundstat.domain.models import AssetRef
from fundstat.domain.registry import EURMTL_ASSET, XLM_ASSET
from fundstat.domain.views import (
    AccountRecord,
    BalanceRecord,
    ClaimableBalanceRecord,
    LiquidityPoolRecord,
    OfferRecord,
    OrderbookLevel,
    OrderbookRecord,
    PaymentPathRecord,
    ReferenceAssets,
)
from fundstat.main import app
from fundstat.services import (
    AssetValuationService,
    ExternalPriceService,
    FundStructureService,
    PortfolioService,
    PriceService,
)


# =============================================================================
# CONSTANTS
# =============================================================================

ISSUER_A = "G" + "A" * 55
ISSUER_B = "G" + "B" * 55
HOLDER = "G" + "C" * 55
OTHER_HOLDER = "G" + "D" * 55

TOKEN_A = AssetRef.credit("TKNA", ISSUER_A)
TOKEN_B = AssetRef.credit("TOKENB", ISSUER_B)
USDC = AssetRef.credit("USDC", ISSUER_B)

REFERENCES = ReferenceAssets(primary=EURMTL_ASSET, secondary=XLM_ASSET)


# =============================================================================
# TIME HELPERS
# =============================================================================


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that returns immediately and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def clean_settings():
    """Reset global settings around every test."""
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# RECORD FACTORIES
# =============================================================================


def encode_data(value: str) -> str:
    """Encode a metadata value the way the ledger stores it."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def account_record(
    account_id: str,
    native: Optional[str] = "100",
    tokens: Iterable[tuple[AssetRef, str]] = (),
    data: Optional[dict[str, str]] = None,
) -> AccountRecord:
    """Build an account record; data values are given in plain text."""
    balances = []
    if native is not None:
        balances.append(BalanceRecord(asset_type="native", balance=native))
    for asset, balance in tokens:
        balances.append(
            BalanceRecord(
                asset_type=asset.kind.value,
                balance=balance,
                asset_code=asset.code,
                asset_issuer=asset.issuer,
                limit="922337203685.4775807",
            )
        )
    encoded = {key: encode_data(value) for key, value in (data or {}).items()}
    return AccountRecord(account_id=account_id, balances=balances, data=encoded)


def orderbook(bids: Iterable[str] = (), asks: Iterable[str] = ()) -> OrderbookRecord:
    return OrderbookRecord(
        bids=[OrderbookLevel(price=p, amount="1000") for p in bids],
        asks=[OrderbookLevel(price=p, amount="1000") for p in asks],
    )


def pool(asset_a: AssetRef, reserve_a: str, asset_b: AssetRef, reserve_b: str) -> LiquidityPoolRecord:
    return LiquidityPoolRecord(
        pool_id=f"pool-{asset_a.code}-{asset_b.code}",
        reserves={asset_a.canonical: reserve_a, asset_b.canonical: reserve_b},
    )


def payment_path(
    source: AssetRef,
    source_amount: str,
    destination: AssetRef,
    destination_amount: str,
    via: Iterable[AssetRef] = (),
) -> PaymentPathRecord:
    return PaymentPathRecord(
        source_asset=source,
        source_amount=source_amount,
        destination_asset=destination,
        destination_amount=destination_amount,
        path=list(via),
    )


def rate_limited(operation: str = "strictSendPaths") -> LedgerQueryError:
    return LedgerQueryError(operation, RateLimitError(), status_code=429)


# =============================================================================
# FAKE PROVIDERS
# =============================================================================


class FakeLedgerProvider:
    """
    In-memory ledger provider.

    Missing order books are empty, missing pools are None, missing paths are
    empty lists and missing accounts raise a 404 LedgerQueryError. Failures can
    be queued per operation.
    """

    def __init__(self):
        self.accounts: dict[str, AccountRecord] = {}
        self.orderbooks: dict[tuple[str, str], OrderbookRecord] = {}
        self.pools: dict[frozenset, LiquidityPoolRecord] = {}
        self.strict_send: dict[tuple[str, str], list[PaymentPathRecord]] = {}
        self.strict_send_fills: dict[tuple[str, str, str], list[PaymentPathRecord]] = {}
        self.strict_receive: dict[tuple[str, str], list[PaymentPathRecord]] = {}
        self.claimable_balances: dict[str, list[ClaimableBalanceRecord]] = {}
        self.offers: dict[str, list[OfferRecord]] = {}
        self.calls: list[tuple] = []
        self._failures: dict[str, list[BaseException]] = {}
        self._permanent_failures: dict[str, BaseException] = {}

    # Setup helpers
    def add_account(self, record: AccountRecord) -> None:
        self.accounts[record.account_id] = record

    def set_orderbook(self, selling: AssetRef, buying: AssetRef, record: OrderbookRecord) -> None:
        self.orderbooks[(selling.canonical, buying.canonical)] = record

    def set_pool(self, record: LiquidityPoolRecord) -> None:
        self.pools[frozenset(record.reserves)] = record

    def set_strict_send(self, source: AssetRef, destination: AssetRef, records: list[PaymentPathRecord]) -> None:
        self.strict_send[(source.canonical, destination.canonical)] = records

    def set_strict_receive(self, source: AssetRef, destination: AssetRef, records: list[PaymentPathRecord]) -> None:
        self.strict_receive[(source.canonical, destination.canonical)] = records

    def set_price(self, source: AssetRef, destination: AssetRef, price: str) -> None:
        """Make strict-send path search return `price` for one unit."""
        self.set_strict_send(source, destination, [payment_path(source, "1", destination, price)])

    def set_fill(self, source: AssetRef, destination: AssetRef, amount: str, received: str) -> None:
        """Make strict-send for exactly `amount` deliver `received`, overriding set_price."""
        self.strict_send_fills[(source.canonical, destination.canonical, amount)] = [
            payment_path(source, amount, destination, received)
        ]

    def fail(self, operation: str, exc: BaseException, times: Optional[int] = 1) -> None:
        """Raise exc from operation `times` times, or forever when times is None."""
        if times is None:
            self._permanent_failures[operation] = exc
        else:
            self._failures.setdefault(operation, []).extend([exc] * times)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def _enter(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self._permanent_failures:
            raise self._permanent_failures[operation]
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    # LedgerProvider protocol
    async def load_account(self, account_id: str) -> AccountRecord:
        self._enter("load_account", account_id)
        if account_id not in self.accounts:
            raise LedgerQueryError("loadAccount", status_code=404)
        return self.accounts[account_id]

    async def get_orderbook(self, selling: AssetRef, buying: AssetRef, limit: int = 20) -> OrderbookRecord:
        self._enter("get_orderbook", selling.canonical, buying.canonical)
        return self.orderbooks.get((selling.canonical, buying.canonical), OrderbookRecord())

    async def get_liquidity_pool(self, asset_a: AssetRef, asset_b: AssetRef) -> Optional[LiquidityPoolRecord]:
        self._enter("get_liquidity_pool", asset_a.canonical, asset_b.canonical)
        return self.pools.get(frozenset((asset_a.canonical, asset_b.canonical)))

    async def find_strict_send_paths(
        self,
        source_asset: AssetRef,
        source_amount: str,
        destination_assets: list[AssetRef],
    ) -> list[PaymentPathRecord]:
        destination = destination_assets[0]
        self._enter("find_strict_send_paths", source_asset.canonical, destination.canonical, source_amount)
        fill = self.strict_send_fills.get((source_asset.canonical, destination.canonical, source_amount))
        if fill is not None:
            return list(fill)
        return list(self.strict_send.get((source_asset.canonical, destination.canonical), []))

    async def find_strict_receive_paths(
        self,
        source_assets: list[AssetRef],
        destination_asset: AssetRef,
        destination_amount: str,
    ) -> list[PaymentPathRecord]:
        source = source_assets[0]
        self._enter("find_strict_receive_paths", source.canonical, destination_asset.canonical, destination_amount)
        return list(self.strict_receive.get((source.canonical, destination_asset.canonical), []))

    async def list_claimable_balances(self, claimant: str) -> list[ClaimableBalanceRecord]:
        self._enter("list_claimable_balances", claimant)
        return list(self.claimable_balances.get(claimant, []))

    async def list_offers(self, account_id: str) -> list[OfferRecord]:
        self._enter("list_offers", account_id)
        return list(self.offers.get(account_id, []))


class FakeQuoteProvider:
    """Quote provider with fixed EUR prices per coin id."""

    FIXED_PRICES = {
        "bitcoin": Decimal("50000"),
        "ethereum": Decimal("3000"),
        "stellar": Decimal("0.25"),
        "tether": Decimal("0.92"),
    }

    def __init__(self, prices: Optional[dict[str, Decimal]] = None):
        self.prices = dict(self.FIXED_PRICES if prices is None else prices)
        self.requests: list[list[str]] = []
        self._failures: list[BaseException] = []

    def fail(self, exc: BaseException, times: int = 1) -> None:
        self._failures.extend([exc] * times)

    async def fetch_prices_eur(self, coin_ids: list[str]) -> dict[str, Decimal]:
        self.requests.append(list(coin_ids))
        if self._failures:
            raise self._failures.pop(0)
        return {coin_id: self.prices[coin_id] for coin_id in coin_ids if coin_id in self.prices}


@pytest.fixture
def ledger() -> FakeLedgerProvider:
    return FakeLedgerProvider()


@pytest.fixture
def quotes() -> FakeQuoteProvider:
    return FakeQuoteProvider()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def external_price_service(quotes, clock, sleep) -> ExternalPriceService:
    """Provide ExternalPriceService over the fake quote provider."""
    return ExternalPriceService(provider=quotes, clock=clock, sleep=sleep)


@pytest.fixture
def price_service(ledger, clock, sleep) -> PriceService:
    """Provide PriceService over the fake ledger."""
    return PriceService(ledger=ledger, clock=clock, sleep=sleep)


@pytest.fixture
def valuation_service(ledger, external_price_service) -> AssetValuationService:
    """Provide AssetValuationService over the fake ledger."""
    return AssetValuationService(ledger=ledger, external_prices=external_price_service)


@pytest.fixture
def portfolio_service(ledger) -> PortfolioService:
    """Provide PortfolioService over the fake ledger."""
    return PortfolioService(ledger=ledger)


@pytest.fixture
def fund_service(portfolio_service, price_service, valuation_service, sleep) -> FundStructureService:
    """Provide FundStructureService over the registry accounts."""
    return FundStructureService(
        portfolio_service=portfolio_service,
        price_service=price_service,
        valuation_service=valuation_service,
        sleep=sleep,
    )


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def client(price_service, portfolio_service, valuation_service, fund_service) -> TestClient:
    """Provide FastAPI test client wired to the fake-backed services."""
    app.dependency_overrides[get_price_service] = lambda: price_service
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio_service
    app.dependency_overrides[get_valuation_service] = lambda: valuation_service
    app.dependency_overrides[get_fund_structure_service] = lambda: fund_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
