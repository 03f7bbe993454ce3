"""Manual valuation records."""

from dataclasses import dataclass
from typing import Union

from fundstat.domain.models.enums import ValuationType


@dataclass(frozen=True)
class EurmtlValue:
    """Valuation stated directly in the reference currency."""

    value: str


@dataclass(frozen=True)
class ExternalValue:
    """Valuation that points at an off-ledger price symbol."""

    symbol: str


ValuationValue = Union[EurmtlValue, ExternalValue]


@dataclass(frozen=True)
class AssetValuation:
    """A valuation override read from an account's metadata."""

    token_code: str
    valuation_type: ValuationType
    raw_value: ValuationValue
    source_account: str


@dataclass(frozen=True)
class ResolvedAssetValuation:
    """An AssetValuation with its value converted to the reference currency."""

    token_code: str
    valuation_type: ValuationType
    raw_value: ValuationValue
    source_account: str
    value_in_eurmtl: str

    @classmethod
    def from_valuation(cls, valuation: AssetValuation, value_in_eurmtl: str) -> "ResolvedAssetValuation":
        return cls(
            token_code=valuation.token_code,
            valuation_type=valuation.valuation_type,
            raw_value=valuation.raw_value,
            source_account=valuation.source_account,
            value_in_eurmtl=value_in_eurmtl,
        )
