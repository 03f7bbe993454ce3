"""Ledger asset identity."""

import re
from dataclasses import dataclass
from typing import Optional

from fundstat.core.exceptions import ValidationError
from fundstat.domain.models.enums import AssetKind

NATIVE_CODE = "XLM"

ACCOUNT_ID_PATTERN = re.compile(r"^G[A-Z2-7]{55}$")
_ASSET_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{1,12}$")


def is_valid_account_id(value: str) -> bool:
    """Check the public-key shape of a ledger account id."""
    return bool(ACCOUNT_ID_PATTERN.match(value or ""))


@dataclass(frozen=True)
class AssetRef:
    """
    Reference to a ledger asset.

    Identity is (code, issuer); the native asset has no issuer.
    """

    code: str
    issuer: Optional[str] = None
    kind: AssetKind = AssetKind.NATIVE

    @classmethod
    def native(cls) -> "AssetRef":
        return cls(code=NATIVE_CODE, issuer=None, kind=AssetKind.NATIVE)

    @classmethod
    def credit(cls, code: str, issuer: str) -> "AssetRef":
        """Build a credit asset; the kind follows from the code length."""
        kind = AssetKind.CREDIT_ALPHANUM4 if len(code) <= 4 else AssetKind.CREDIT_ALPHANUM12
        return cls(code=code, issuer=issuer, kind=kind)

    @property
    def is_native(self) -> bool:
        return self.kind == AssetKind.NATIVE

    @property
    def canonical(self) -> str:
        """Horizon query form: "native" or "CODE:ISSUER"."""
        if self.is_native:
            return "native"
        return f"{self.code}:{self.issuer}"

    @property
    def label(self) -> str:
        """Display form: "XLM" or "CODE:ISSUER"."""
        if self.is_native:
            return NATIVE_CODE
        return self.canonical

    def same_as(self, other: "AssetRef") -> bool:
        return self.code == other.code and self.issuer == other.issuer

    def __str__(self) -> str:
        return self.label


def parse_asset_string(value: str) -> AssetRef:
    """
    Parse "XLM", "native" or "CODE:ISSUER" into an AssetRef.

    Raises:
        ValidationError: If the string is not a recognised asset.
    """
    text = (value or "").strip()
    if text.upper() == NATIVE_CODE or text.lower() == "native":
        return AssetRef.native()

    parts = text.split(":")
    if len(parts) != 2:
        raise ValidationError(f"Invalid asset '{value}': expected CODE:ISSUER, XLM or native")
    code, issuer = parts[0].strip(), parts[1].strip()
    if not _ASSET_CODE_PATTERN.match(code):
        raise ValidationError(f"Invalid asset code '{code}'")
    if not is_valid_account_id(issuer):
        raise ValidationError(f"Invalid asset issuer '{issuer}'")
    return AssetRef.credit(code, issuer)
