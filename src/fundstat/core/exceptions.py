"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, variable: str, detail: str = "missing or invalid"):
        self.variable = variable
        super().__init__(f"Configuration error for {variable}: {detail}", code="CONFIGURATION_ERROR")


class LedgerQueryError(AppError):
    """Raised when a ledger (Horizon) query fails."""

    def __init__(
        self,
        operation: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ):
        self.operation = operation
        self.cause = cause
        self.status_code = status_code
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Ledger query '{operation}' failed{detail}", code="LEDGER_QUERY_ERROR")

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


class RateLimitError(AppError):
    """Raised when an upstream API answers with HTTP 429."""

    def __init__(self, message: str = "Rate limit exceeded"):
        self.status_code = 429
        super().__init__(message, code="RATE_LIMITED")


class ExternalPriceError(AppError):
    """Raised when an external (off-ledger) price cannot be obtained."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, code="EXTERNAL_PRICE_ERROR")


class PriceUnavailableError(AppError):
    """Raised when no price source yields a price for a pair."""

    def __init__(self, asset_a: str, asset_b: str, cause: Optional[BaseException] = None):
        self.asset_a = asset_a
        self.asset_b = asset_b
        self.cause = cause
        super().__init__(f"No price available for {asset_a} -> {asset_b}", code="PRICE_UNAVAILABLE")
