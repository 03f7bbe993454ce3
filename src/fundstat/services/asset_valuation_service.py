"""
Manual valuation overrides read from account metadata.

Metadata keys ending in "_1COST" carry a per-unit price; keys ending in
"_COST" carry the total value of an NFT-like holding. Values are either a
reference-currency amount or one of the external price symbols.
"""

import asyncio
import base64
import binascii
import logging
from typing import Optional, Sequence, TypeVar

from fundstat.core.decimal_math import multiply_with_precision, quantize_str, to_decimal
from fundstat.core.exceptions import ConfigurationError, LedgerQueryError
from fundstat.domain.models import (
    AssetValuation,
    EurmtlValue,
    ExternalValue,
    ResolvedAssetValuation,
    ValuationType,
    ValuationValue,
)
from fundstat.providers.ledger_provider import LedgerProvider
from fundstat.services.external_price_service import ExternalPriceService, is_external_price_symbol

logger = logging.getLogger(__name__)

UNIT_COST_SUFFIX = "_1COST"
COST_SUFFIX = "_COST"

# 1 stroop, the smallest ledger amount
NFT_BALANCE = "0.0000001"

V = TypeVar("V", AssetValuation, ResolvedAssetValuation)


def parse_valuation_key(key: str) -> Optional[tuple[str, ValuationType]]:
    """Split a metadata key into (token_code, valuation_type), or None if it is not a valuation."""
    # "_1COST" also ends with "_COST", so it must be checked first
    if key.endswith(UNIT_COST_SUFFIX):
        code, valuation_type = key[: -len(UNIT_COST_SUFFIX)], ValuationType.UNIT
    elif key.endswith(COST_SUFFIX):
        code, valuation_type = key[: -len(COST_SUFFIX)], ValuationType.NFT
    else:
        return None
    if not code:
        return None
    return code, valuation_type


def decode_data_value(value: str) -> Optional[str]:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def normalize_decimal_separators(text: str) -> str:
    """
    Normalize "1.234,5" and "0,8" style numbers to dot-decimal.

    With both separators present, dots are thousands separators and the comma
    is the decimal point.
    """
    if "." in text and "," in text:
        return text.replace(".", "").replace(",", ".")
    if "," in text:
        return text.replace(",", ".")
    return text


def parse_valuation_value(decoded: str) -> Optional[ValuationValue]:
    """
    Interpret a decoded metadata value.

    Returns:
        ExternalValue for an exact external symbol, EurmtlValue for a finite
        positive number, otherwise None.
    """
    text = decoded.strip()
    if is_external_price_symbol(text):
        return ExternalValue(symbol=text)

    normalized = normalize_decimal_separators(text)
    amount = to_decimal(normalized)
    if amount is None or amount <= 0:
        return None
    return EurmtlValue(value=normalized)


def parse_account_valuations(data: dict[str, str], account_id: str) -> list[AssetValuation]:
    """Extract valuations from an account's base64-encoded metadata entries."""
    valuations: list[AssetValuation] = []
    for key, encoded in data.items():
        parsed_key = parse_valuation_key(key)
        if parsed_key is None:
            continue
        decoded = decode_data_value(encoded)
        if decoded is None:
            logger.debug("Skipping undecodable metadata entry %s on %s", key, account_id)
            continue
        value = parse_valuation_value(decoded)
        if value is None:
            logger.debug("Skipping invalid valuation %s=%r on %s", key, decoded, account_id)
            continue
        token_code, valuation_type = parsed_key
        valuations.append(
            AssetValuation(
                token_code=token_code,
                valuation_type=valuation_type,
                raw_value=value,
                source_account=account_id,
            )
        )
    return valuations


def merge_valuations(valuations: Sequence[V], owner_account: Optional[str] = None) -> list[V]:
    """
    Deduplicate valuations by (token_code, valuation_type).

    Without an owner the first-discovered entry wins. With an owner, the
    owner's entry wins regardless of position.
    """
    merged: dict[tuple[str, ValuationType], V] = {}
    for valuation in valuations:
        key = (valuation.token_code, valuation.valuation_type)
        existing = merged.get(key)
        if existing is None:
            merged[key] = valuation
        elif (
            owner_account is not None
            and valuation.source_account == owner_account
            and existing.source_account != owner_account
        ):
            merged[key] = valuation
    return list(merged.values())


def is_nft_balance(balance: str) -> bool:
    """True iff the balance string is exactly one stroop."""
    return balance == NFT_BALANCE


def find_valuation(token_code: str, valuations: Sequence[V], is_nft: bool) -> Optional[V]:
    """Find a valuation for token_code, preferring nft for NFT-like holdings and unit otherwise."""
    preferred = ValuationType.NFT if is_nft else ValuationType.UNIT
    fallback: Optional[V] = None
    for valuation in valuations:
        if valuation.token_code != token_code:
            continue
        if valuation.valuation_type == preferred:
            return valuation
        if fallback is None:
            fallback = valuation
    return fallback


def calculate_value_in_eurmtl(valuation: ResolvedAssetValuation, balance: str, is_nft: bool) -> str:
    """
    Value of a holding under a valuation.

    NFT-like holdings and nft-typed valuations use the stored total; unit
    valuations multiply the balance by the unit price.
    """
    value = to_decimal(valuation.value_in_eurmtl)
    if value is None or value <= 0:
        return "0"
    if is_nft or valuation.valuation_type == ValuationType.NFT:
        return quantize_str(value)
    return multiply_with_precision(balance, value)


class AssetValuationService:
    """
    Service for reading and resolving valuation overrides.

    Metadata for several accounts is fetched with bounded concurrency;
    resolution of external symbols runs strictly one at a time.
    """

    def __init__(
        self,
        ledger: LedgerProvider,
        external_prices: ExternalPriceService,
        fetch_concurrency: int = 3,
    ):
        self._ledger = ledger
        self._external_prices = external_prices
        self._fetch_concurrency = max(1, fetch_concurrency)

    async def get_account_valuations(self, account_id: str) -> list[AssetValuation]:
        account = await self._ledger.load_account(account_id)
        valuations = parse_account_valuations(account.data, account_id)
        logger.info("Parsed %d valuations from account %s", len(valuations), account_id)
        return valuations

    async def collect_account_valuations(self, account_ids: Sequence[str]) -> list[AssetValuation]:
        """
        Read valuations from several accounts without merging them.

        Accounts whose metadata cannot be loaded contribute nothing. The result
        keeps the order of account_ids.
        """
        semaphore = asyncio.Semaphore(self._fetch_concurrency)

        async def fetch(account_id: str) -> list[AssetValuation]:
            async with semaphore:
                try:
                    return await self.get_account_valuations(account_id)
                except LedgerQueryError as exc:
                    logger.warning("Skipping valuations of %s: %s", account_id, exc.message)
                    return []

        batches = await asyncio.gather(*(fetch(account_id) for account_id in account_ids))
        return [valuation for batch in batches for valuation in batch]

    async def get_valuations_from_accounts(
        self,
        account_ids: Sequence[str],
        owner_account: Optional[str] = None,
    ) -> list[AssetValuation]:
        """Collect valuations from several accounts and merge them, owner first."""
        return merge_valuations(await self.collect_account_valuations(account_ids), owner_account)

    async def resolve_valuation(self, valuation: AssetValuation) -> ResolvedAssetValuation:
        """Convert a valuation to the reference currency, pricing external symbols."""
        raw = valuation.raw_value
        if isinstance(raw, EurmtlValue):
            return ResolvedAssetValuation.from_valuation(valuation, raw.value)
        price = await self._external_prices.get_price_in_eur(raw.symbol)
        return ResolvedAssetValuation.from_valuation(valuation, quantize_str(price))

    async def resolve_all_valuations(
        self,
        valuations: Sequence[AssetValuation],
        skip_failures: bool = False,
    ) -> list[ResolvedAssetValuation]:
        """
        Resolve valuations sequentially.

        With skip_failures, an entry that fails to resolve is logged and
        dropped instead of aborting the batch.
        """
        resolved: list[ResolvedAssetValuation] = []
        for valuation in valuations:
            try:
                resolved.append(await self.resolve_valuation(valuation))
            except ConfigurationError:
                raise
            except Exception:
                if not skip_failures:
                    raise
                logger.warning(
                    "Dropping valuation %s (%s) from %s: resolution failed",
                    valuation.token_code,
                    valuation.valuation_type.value,
                    valuation.source_account,
                    exc_info=True,
                )
        return resolved

    is_nft_balance = staticmethod(is_nft_balance)
    find_valuation = staticmethod(find_valuation)
    calculate_value_in_eurmtl = staticmethod(calculate_value_in_eurmtl)
