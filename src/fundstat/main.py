"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fundstat.app_context import get_app_context, set_app_context
from fundstat.config.settings import get_settings
from fundstat.config.logging_config import setup_logging
from fundstat.api.routers import price_router, portfolio_router, fund_router
from fundstat.core.exceptions import AppError, LedgerQueryError

_STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "PRICE_UNAVAILABLE": 404,
    "LEDGER_QUERY_ERROR": 502,
    "EXTERNAL_PRICE_ERROR": 502,
    "RATE_LIMITED": 503,
    "CONFIGURATION_ERROR": 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    yield
    # Shutdown
    await get_app_context().aclose()
    set_app_context(None)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Valuation engine for Stellar portfolios and multi-account funds",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(price_router)
app.include_router(portfolio_router)
app.include_router(fund_router)


def status_for_error(exc: AppError) -> int:
    """HTTP status for an application error."""
    if isinstance(exc, LedgerQueryError):
        if exc.status_code == 404:
            return 404
        if exc.is_rate_limited:
            return 503
    return _STATUS_BY_CODE.get(exc.code, 400)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=status_for_error(exc),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "network": settings.stellar_network,
        "docs": "/docs",
    }
