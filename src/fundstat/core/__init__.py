"""Core utilities and exceptions."""

from fundstat.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ConfigurationError,
    LedgerQueryError,
    RateLimitError,
    ExternalPriceError,
    PriceUnavailableError,
)
from fundstat.core.timezone import now_utc

__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "LedgerQueryError",
    "RateLimitError",
    "ExternalPriceError",
    "PriceUnavailableError",
    "now_utc",
]
