"""Enumerations for domain models."""

from enum import Enum


class AssetKind(str, Enum):
    """Ledger asset types."""

    NATIVE = "native"
    CREDIT_ALPHANUM4 = "credit_alphanum4"
    CREDIT_ALPHANUM12 = "credit_alphanum12"


class ValuationType(str, Enum):
    """How a manual valuation applies to a holding."""

    NFT = "nft"  # total value of a whole holding
    UNIT = "unit"  # price per unit


class AccountCategory(str, Enum):
    """Role of an account within the fund."""

    ISSUER = "issuer"
    SUBFOND = "subfond"
    MUTUAL = "mutual"
    OPERATIONAL = "operational"
    OTHER = "other"  # excluded from fund totals
