"""Domain models package."""

from fundstat.domain.models.enums import AssetKind, ValuationType, AccountCategory
from fundstat.domain.models.asset import AssetRef, parse_asset_string, is_valid_account_id
from fundstat.domain.models.valuation import (
    EurmtlValue,
    ExternalValue,
    ValuationValue,
    AssetValuation,
    ResolvedAssetValuation,
)
from fundstat.domain.models.fund import FundAccount

__all__ = [
    "AssetKind",
    "ValuationType",
    "AccountCategory",
    "AssetRef",
    "parse_asset_string",
    "is_valid_account_id",
    "EurmtlValue",
    "ExternalValue",
    "ValuationValue",
    "AssetValuation",
    "ResolvedAssetValuation",
    "FundAccount",
]
