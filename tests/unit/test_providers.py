"""
Unit tests for the HTTP providers.

Both providers are exercised against httpx.MockTransport handlers, so no
network access is needed.
"""

import json
from decimal import Decimal

import httpx
import pytest

from fundstat.core.exceptions import ExternalPriceError, LedgerQueryError, RateLimitError
from fundstat.core.retry import is_rate_limit_error
from fundstat.domain.models import AssetRef
from fundstat.domain.registry import EURMTL_ASSET, XLM_ASSET
from fundstat.providers import CoinGeckoQuoteProvider, HorizonLedgerProvider
from fundstat.providers.paging import fetch_all_pages

from tests.conftest import HOLDER, ISSUER_A, TOKEN_A, encode_data


HORIZON = "https://horizon.test"


def horizon(handler) -> HorizonLedgerProvider:
    client = httpx.AsyncClient(base_url=HORIZON, transport=httpx.MockTransport(handler))
    return HorizonLedgerProvider(HORIZON, client=client)


def coingecko(handler) -> CoinGeckoQuoteProvider:
    client = httpx.AsyncClient(base_url="https://quotes.test", transport=httpx.MockTransport(handler))
    return CoinGeckoQuoteProvider(client=client)


def embedded(records: list) -> dict:
    return {"_embedded": {"records": records}}


# =============================================================================
# HORIZON
# =============================================================================


class TestHorizonAccounts:
    """Tests for account loading."""

    @pytest.mark.asyncio
    async def test_load_account(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/accounts/{HOLDER}"
            return httpx.Response(
                200,
                json={
                    "account_id": HOLDER,
                    "balances": [
                        {"asset_type": "credit_alphanum4", "asset_code": "TKNA", "asset_issuer": ISSUER_A,
                         "balance": "10.0000000", "limit": "1000.0000000"},
                        {"asset_type": "native", "balance": "99.5000000"},
                    ],
                    "data": {"TKNA_1COST": encode_data("3")},
                },
            )

        record = await horizon(handler).load_account(HOLDER)

        assert record.account_id == HOLDER
        assert record.balances[0].asset_code == "TKNA"
        assert record.balances[1].asset_type == "native"
        assert record.data == {"TKNA_1COST": encode_data("3")}

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self):
        provider = horizon(lambda request: httpx.Response(404, json={"status": 404}))

        with pytest.raises(LedgerQueryError) as exc_info:
            await provider.load_account(HOLDER)

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "LEDGER_QUERY_ERROR"
        assert not exc_info.value.is_rate_limited

    @pytest.mark.asyncio
    async def test_rate_limit_is_detectable(self):
        provider = horizon(lambda request: httpx.Response(429))

        with pytest.raises(LedgerQueryError) as exc_info:
            await provider.load_account(HOLDER)

        assert exc_info.value.is_rate_limited
        assert is_rate_limit_error(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(LedgerQueryError) as exc_info:
            await horizon(handler).load_account(HOLDER)

        assert exc_info.value.status_code is None


class TestHorizonMarkets:
    """Tests for order book, pool and path queries."""

    @pytest.mark.asyncio
    async def test_orderbook_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.url.params)
            return httpx.Response(
                200,
                json={"bids": [{"price": "0.9", "amount": "5"}], "asks": [{"price": "1.1", "amount": "7"}]},
            )

        book = await horizon(handler).get_orderbook(TOKEN_A, XLM_ASSET)

        assert seen["selling_asset_type"] == "credit_alphanum4"
        assert seen["selling_asset_code"] == "TKNA"
        assert seen["selling_asset_issuer"] == ISSUER_A
        assert seen["buying_asset_type"] == "native"
        assert "buying_asset_code" not in seen
        assert book.bids[0].price == "0.9"
        assert book.asks[0].amount == "7"

    @pytest.mark.asyncio
    async def test_liquidity_pool(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["reserves"] == f"{TOKEN_A.canonical},native"
            return httpx.Response(
                200,
                json=embedded([
                    {
                        "id": "abc",
                        "fee_bp": 30,
                        "total_shares": "50",
                        "reserves": [
                            {"asset": TOKEN_A.canonical, "amount": "100"},
                            {"asset": "native", "amount": "400"},
                        ],
                    }
                ]),
            )

        record = await horizon(handler).get_liquidity_pool(TOKEN_A, XLM_ASSET)

        assert record.pool_id == "abc"
        assert record.reserves == {TOKEN_A.canonical: "100", "native": "400"}

    @pytest.mark.asyncio
    async def test_missing_pool_is_none(self):
        record = await horizon(lambda request: httpx.Response(200, json=embedded([]))).get_liquidity_pool(
            TOKEN_A, XLM_ASSET
        )

        assert record is None

    @pytest.mark.asyncio
    async def test_strict_send_paths(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/paths/strict-send"
            assert request.url.params["destination_assets"] == EURMTL_ASSET.canonical
            return httpx.Response(
                200,
                json=embedded([
                    {
                        "source_asset_type": "credit_alphanum4",
                        "source_asset_code": "TKNA",
                        "source_asset_issuer": ISSUER_A,
                        "source_amount": "1.0000000",
                        "destination_asset_type": "credit_alphanum12",
                        "destination_asset_code": "EURMTL",
                        "destination_asset_issuer": EURMTL_ASSET.issuer,
                        "destination_amount": "2.5000000",
                        "path": [{"asset_type": "native"}],
                    }
                ]),
            )

        [record] = await horizon(handler).find_strict_send_paths(TOKEN_A, "1", [EURMTL_ASSET])

        assert record.source_asset == TOKEN_A
        assert record.destination_asset == EURMTL_ASSET
        assert record.destination_amount == "2.5000000"
        assert record.path == [AssetRef.native()]

    @pytest.mark.asyncio
    async def test_strict_receive_paths(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/paths/strict-receive"
            assert request.url.params["source_assets"] == TOKEN_A.canonical
            assert request.url.params["destination_amount"] == "1"
            return httpx.Response(200, json=embedded([]))

        assert await horizon(handler).find_strict_receive_paths([TOKEN_A], EURMTL_ASSET, "1") == []


class TestHorizonPaging:
    """Tests for cursor pagination."""

    @pytest.mark.asyncio
    async def test_claimable_balances_follow_cursor(self):
        cursors = []

        def handler(request: httpx.Request) -> httpx.Response:
            cursor = request.url.params.get("cursor")
            cursors.append(cursor)
            start, count = (0, 200) if cursor is None else (200, 3)
            records = [
                {
                    "id": f"cb-{i}",
                    "asset": TOKEN_A.canonical,
                    "amount": "1",
                    "claimants": [{"destination": HOLDER}],
                    "paging_token": str(i),
                }
                for i in range(start, start + count)
            ]
            return httpx.Response(200, json=embedded(records))

        records = await horizon(handler).list_claimable_balances(HOLDER)

        assert len(records) == 203
        assert cursors == [None, "199"]
        assert records[0].asset == TOKEN_A
        assert records[0].claimants == [HOLDER]

    @pytest.mark.asyncio
    async def test_fetch_all_pages_stops_at_max_pages(self):
        calls = []

        async def fetch_page(cursor, limit):
            calls.append(cursor)
            return [f"{len(calls)}-{i}" for i in range(limit)]

        records = await fetch_all_pages(fetch_page, lambda r: r, page_size=2, max_pages=3)

        assert len(records) == 6
        assert calls == [None, "1-1", "2-1"]

    @pytest.mark.asyncio
    async def test_offers(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/accounts/{HOLDER}/offers"
            return httpx.Response(
                200,
                json=embedded([
                    {
                        "id": 17,
                        "seller": HOLDER,
                        "selling": {"asset_type": "native"},
                        "buying": {"asset_type": "credit_alphanum4", "asset_code": "TKNA", "asset_issuer": ISSUER_A},
                        "amount": "5",
                        "price": "0.5",
                        "paging_token": "17",
                    }
                ]),
            )

        [offer] = await horizon(handler).list_offers(HOLDER)

        assert offer.id == "17"
        assert offer.selling == XLM_ASSET
        assert offer.buying == TOKEN_A


# =============================================================================
# COINGECKO
# =============================================================================


class TestCoinGeckoQuoteProvider:
    """Tests for the simple price endpoint."""

    @pytest.mark.asyncio
    async def test_prices_parsed_as_decimal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/simple/price")
            assert request.url.params["ids"] == "bitcoin,stellar"
            assert request.url.params["vs_currencies"] == "eur"
            return httpx.Response(
                200,
                content=json.dumps({"bitcoin": {"eur": 51234.12}, "stellar": {"eur": 0.1}}).encode(),
                headers={"content-type": "application/json"},
            )

        prices = await coingecko(handler).fetch_prices_eur(["bitcoin", "stellar"])

        assert prices == {"bitcoin": Decimal("51234.12"), "stellar": Decimal("0.1")}

    @pytest.mark.asyncio
    async def test_missing_ids_are_omitted(self):
        provider = coingecko(lambda request: httpx.Response(200, json={"bitcoin": {"eur": 1}}))

        assert await provider.fetch_prices_eur(["bitcoin", "ethereum"]) == {"bitcoin": Decimal("1")}

    @pytest.mark.asyncio
    async def test_empty_request_skips_http(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await coingecko(handler).fetch_prices_eur([]) == {}

    @pytest.mark.asyncio
    async def test_rate_limit(self):
        provider = coingecko(lambda request: httpx.Response(429))

        with pytest.raises(RateLimitError) as exc_info:
            await provider.fetch_prices_eur(["bitcoin"])

        assert is_rate_limit_error(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_error(self):
        provider = coingecko(lambda request: httpx.Response(500))

        with pytest.raises(ExternalPriceError):
            await provider.fetch_prices_eur(["bitcoin"])

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        provider = coingecko(lambda request: httpx.Response(200, content=b"not json"))

        with pytest.raises(ExternalPriceError):
            await provider.fetch_prices_eur(["bitcoin"])
