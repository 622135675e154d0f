from __future__ import annotations

import os
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version as pkg_version

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quotedesk.api.routes import router
from quotedesk.config.settings import get_settings
from quotedesk.errors import PROVIDER_CODES, VALIDATION_CODES, AppError
from quotedesk.integrations.twelvedata_rest import TwelveDataRestClient
from quotedesk.observability import configure_logging
from quotedesk.services.market_data import MarketDataService


def get_app_version() -> str:
    if version := os.environ.get("QUOTEDESK_VERSION"):
        return version
    try:
        return pkg_version("quotedesk")
    except PackageNotFoundError:
        return "dev"


_ERROR_STATUS = {
    "symbol_not_found": 404,
    "symbol_exists": 409,
}


def status_for_error(exc: AppError) -> int:
    if exc.code in _ERROR_STATUS:
        return _ERROR_STATUS[exc.code]
    if exc.code in VALIDATION_CODES:
        return 400
    if exc.code in PROVIDER_CODES:
        return 502
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        configure_logging(app.state.get_settings().QUOTEDESK_LOG_LEVEL)
    except ValueError:
        # unknown level names or invalid env must not keep the app from starting
        configure_logging("INFO")
    yield


app = FastAPI(title="Quotedesk", version=get_app_version(), lifespan=lifespan)
app.include_router(router, prefix="/v1")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=status_for_error(exc), content=exc.to_dict())


def _build_market_data_service() -> MarketDataService:
    settings = app.state.get_settings()
    provider = TwelveDataRestClient(
        base_url=settings.QUOTEDESK_PROVIDER_BASE_URL,
        timeout_sec=settings.QUOTEDESK_REQUEST_TIMEOUT_SEC,
    )
    return MarketDataService(base_dir=settings.QUOTEDESK_DATA_DIR, provider=provider)


def get_market_data_service() -> MarketDataService:
    # NOTE: built lazily so app import does not require env during tests.
    if app.state.market_data_service is None:
        app.state.market_data_service = _build_market_data_service()
    return app.state.market_data_service


app.state.get_settings = get_settings
app.state.market_data_service = None
app.state.get_market_data_service = get_market_data_service
