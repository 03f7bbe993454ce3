"""Horizon REST API ledger provider."""

import logging
from typing import Any, Optional

import httpx

from fundstat.core.exceptions import LedgerQueryError
from fundstat.domain.models import AssetKind, AssetRef
from fundstat.domain.views import (
    AccountRecord,
    BalanceRecord,
    ClaimableBalanceRecord,
    LiquidityPoolRecord,
    OfferRecord,
    OrderbookLevel,
    OrderbookRecord,
    PaymentPathRecord,
)
from fundstat.providers.paging import DEFAULT_PAGE_SIZE, fetch_all_pages

logger = logging.getLogger(__name__)


def _asset_params(prefix: str, asset: AssetRef) -> dict[str, str]:
    params = {f"{prefix}_asset_type": asset.kind.value}
    if not asset.is_native:
        params[f"{prefix}_asset_code"] = asset.code
        params[f"{prefix}_asset_issuer"] = asset.issuer
    return params


def _asset_from_fields(asset_type: Optional[str], code: Optional[str], issuer: Optional[str]) -> AssetRef:
    if asset_type == AssetKind.NATIVE.value or not code:
        return AssetRef.native()
    return AssetRef.credit(code, issuer)


def _asset_from_canonical(value: str) -> AssetRef:
    if value == "native":
        return AssetRef.native()
    code, _, issuer = value.partition(":")
    return AssetRef.credit(code, issuer)


def _records(body: dict[str, Any]) -> list[dict[str, Any]]:
    return body.get("_embedded", {}).get("records", [])


def _path_from_record(record: dict[str, Any]) -> PaymentPathRecord:
    return PaymentPathRecord(
        source_asset=_asset_from_fields(
            record.get("source_asset_type"),
            record.get("source_asset_code"),
            record.get("source_asset_issuer"),
        ),
        source_amount=record["source_amount"],
        destination_asset=_asset_from_fields(
            record.get("destination_asset_type"),
            record.get("destination_asset_code"),
            record.get("destination_asset_issuer"),
        ),
        destination_amount=record["destination_amount"],
        path=[
            _asset_from_fields(hop.get("asset_type"), hop.get("asset_code"), hop.get("asset_issuer"))
            for hop in record.get("path", [])
        ],
    )


class HorizonLedgerProvider:
    """
    Ledger provider backed by a Horizon server.

    Every failure surfaces as LedgerQueryError carrying the operation name and
    the HTTP status, if any.
    """

    def __init__(
        self,
        horizon_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(base_url=horizon_url, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, operation: str, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise LedgerQueryError(operation, exc, status_code=exc.response.status_code) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise LedgerQueryError(operation, exc) from exc

    async def load_account(self, account_id: str) -> AccountRecord:
        body = await self._get("loadAccount", f"/accounts/{account_id}")
        balances = [
            BalanceRecord(
                asset_type=entry.get("asset_type", ""),
                balance=entry.get("balance", "0"),
                asset_code=entry.get("asset_code"),
                asset_issuer=entry.get("asset_issuer"),
                limit=entry.get("limit"),
            )
            for entry in body.get("balances", [])
        ]
        return AccountRecord(
            account_id=body.get("account_id", account_id),
            balances=balances,
            data=dict(body.get("data", {})),
        )

    async def get_orderbook(self, selling: AssetRef, buying: AssetRef, limit: int = 20) -> OrderbookRecord:
        params = {**_asset_params("selling", selling), **_asset_params("buying", buying), "limit": limit}
        body = await self._get("fetchOrderbook", "/order_book", params)
        return OrderbookRecord(
            bids=[OrderbookLevel(price=level["price"], amount=level["amount"]) for level in body.get("bids", [])],
            asks=[OrderbookLevel(price=level["price"], amount=level["amount"]) for level in body.get("asks", [])],
        )

    async def get_liquidity_pool(self, asset_a: AssetRef, asset_b: AssetRef) -> Optional[LiquidityPoolRecord]:
        params = {"reserves": f"{asset_a.canonical},{asset_b.canonical}", "limit": 1}
        body = await self._get("fetchLiquidityPool", "/liquidity_pools", params)
        records = _records(body)
        if not records:
            return None
        record = records[0]
        return LiquidityPoolRecord(
            pool_id=record["id"],
            reserves={reserve["asset"]: reserve["amount"] for reserve in record.get("reserves", [])},
            fee_bp=int(record.get("fee_bp", 30)),
            total_shares=record.get("total_shares", "0"),
        )

    async def find_strict_send_paths(
        self,
        source_asset: AssetRef,
        source_amount: str,
        destination_assets: list[AssetRef],
    ) -> list[PaymentPathRecord]:
        params = {
            **_asset_params("source", source_asset),
            "source_amount": source_amount,
            "destination_assets": ",".join(asset.canonical for asset in destination_assets),
        }
        body = await self._get("strictSendPaths", "/paths/strict-send", params)
        return [_path_from_record(record) for record in _records(body)]

    async def find_strict_receive_paths(
        self,
        source_assets: list[AssetRef],
        destination_asset: AssetRef,
        destination_amount: str,
    ) -> list[PaymentPathRecord]:
        params = {
            "source_assets": ",".join(asset.canonical for asset in source_assets),
            **_asset_params("destination", destination_asset),
            "destination_amount": destination_amount,
        }
        body = await self._get("strictReceivePaths", "/paths/strict-receive", params)
        return [_path_from_record(record) for record in _records(body)]

    async def list_claimable_balances(self, claimant: str) -> list[ClaimableBalanceRecord]:
        """Page through /claimable_balances. Interface only; no service calls it."""
        async def fetch_page(cursor: Optional[str], limit: int) -> list[ClaimableBalanceRecord]:
            params: dict[str, Any] = {"claimant": claimant, "limit": limit, "order": "asc"}
            if cursor:
                params["cursor"] = cursor
            body = await self._get("listClaimableBalances", "/claimable_balances", params)
            return [
                ClaimableBalanceRecord(
                    id=record["id"],
                    asset=_asset_from_canonical(record.get("asset", "native")),
                    amount=record.get("amount", "0"),
                    sponsor=record.get("sponsor"),
                    claimants=[c.get("destination", "") for c in record.get("claimants", [])],
                    paging_token=record.get("paging_token", ""),
                )
                for record in _records(body)
            ]

        return await fetch_all_pages(fetch_page, lambda record: record.paging_token, DEFAULT_PAGE_SIZE)

    async def list_offers(self, account_id: str) -> list[OfferRecord]:
        """Page through /accounts/{id}/offers. Interface only; no service calls it."""
        async def fetch_page(cursor: Optional[str], limit: int) -> list[OfferRecord]:
            params: dict[str, Any] = {"limit": limit, "order": "asc"}
            if cursor:
                params["cursor"] = cursor
            body = await self._get("listOffers", f"/accounts/{account_id}/offers", params)
            offers = []
            for record in _records(body):
                selling = record.get("selling", {})
                buying = record.get("buying", {})
                offers.append(
                    OfferRecord(
                        id=str(record["id"]),
                        seller=record.get("seller", account_id),
                        selling=_asset_from_fields(
                            selling.get("asset_type"), selling.get("asset_code"), selling.get("asset_issuer")
                        ),
                        buying=_asset_from_fields(
                            buying.get("asset_type"), buying.get("asset_code"), buying.get("asset_issuer")
                        ),
                        amount=record.get("amount", "0"),
                        price=record.get("price", "0"),
                        paging_token=record.get("paging_token", ""),
                    )
                )
            return offers

        return await fetch_all_pages(fetch_page, lambda record: record.paging_token, DEFAULT_PAGE_SIZE)
