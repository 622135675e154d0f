from fastapi import APIRouter, Query, Request

from quotedesk.errors import AppError
from quotedesk.observability import CommandSpan
from quotedesk.schemas.performance import TimeRange
from quotedesk.schemas.settings import AppSettingsInput, BootstrapPayload
from quotedesk.schemas.watchlist import AddSymbolRequest
from quotedesk.services.market_data import MarketDataService
from quotedesk.services.settings_store import SettingsStore
from quotedesk.services.watchlist_store import WatchlistStore

router = APIRouter()


def _service(request: Request) -> MarketDataService:
    return request.app.state.get_market_data_service()


@router.get('/version')
def get_app_version(request: Request):
    return {'version': request.app.version}


@router.get('/bootstrap')
def get_app_bootstrap_data(request: Request):
    span = CommandSpan('get_app_bootstrap_data')
    base_dir = _service(request).base_dir
    try:
        payload = BootstrapPayload(
            settings=SettingsStore(base_dir).load(),
            watchlist=WatchlistStore(base_dir).load(),
        )
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(watchlist_len=len(payload.watchlist))
    return payload.to_json_dict()


@router.get('/settings')
def get_settings(request: Request):
    span = CommandSpan('get_settings')
    try:
        settings = SettingsStore(_service(request).base_dir).load()
    except AppError as exc:
        span.err(exc)
        raise
    span.ok()
    return settings.to_json_dict()


@router.put('/settings')
def save_settings(body: AppSettingsInput, request: Request):
    span = CommandSpan('save_settings')
    try:
        saved = SettingsStore(_service(request).base_dir).save(body)
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(provider=saved.provider, auto_refresh_seconds=saved.auto_refresh_seconds)
    return saved.to_json_dict()


@router.post('/settings/test-connection')
async def test_provider_connection(request: Request):
    span = CommandSpan('test_provider_connection')
    try:
        result = await _service(request).test_provider_connection()
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(ok=result.ok)
    return result.to_json_dict()


@router.get('/watchlist')
def get_watchlist(request: Request):
    span = CommandSpan('get_watchlist')
    try:
        items = WatchlistStore(_service(request).base_dir).load()
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(watchlist_len=len(items))
    return [item.to_json_dict() for item in items]


@router.post('/watchlist')
def add_symbol(body: AddSymbolRequest, request: Request):
    span = CommandSpan('add_symbol', symbol=body.symbol)
    try:
        items = WatchlistStore(_service(request).base_dir).add_symbol(body.symbol)
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(watchlist_len=len(items))
    return [item.to_json_dict() for item in items]


@router.delete('/watchlist/{symbol}')
def remove_symbol(symbol: str, request: Request):
    span = CommandSpan('remove_symbol', symbol=symbol)
    try:
        items = WatchlistStore(_service(request).base_dir).remove_symbol(symbol)
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(watchlist_len=len(items))
    return [item.to_json_dict() for item in items]


@router.post('/quotes/refresh')
async def refresh_watchlist_quotes(request: Request):
    span = CommandSpan('refresh_watchlist_quotes')
    try:
        quotes = await _service(request).refresh_watchlist_quotes()
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(quote_count=len(quotes))
    return [quote.to_json_dict() for quote in quotes]


@router.get('/performance/{symbol}')
async def get_symbol_performance(
    symbol: str,
    request: Request,
    time_range: TimeRange = Query(TimeRange.ONE_MONTH, alias='range'),
):
    span = CommandSpan('get_symbol_performance', symbol=symbol, range=time_range.value)
    try:
        performance = await _service(request).get_symbol_performance(symbol, time_range)
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(status=performance.status.value, points=len(performance.points))
    return performance.to_json_dict()


@router.post('/performance/{symbol}/refresh')
async def refresh_symbol_performance(
    symbol: str,
    request: Request,
    time_range: TimeRange = Query(TimeRange.ONE_MONTH, alias='range'),
):
    span = CommandSpan('refresh_symbol_performance', symbol=symbol, range=time_range.value)
    try:
        performance = await _service(request).refresh_symbol_performance(symbol, time_range)
    except AppError as exc:
        span.err(exc)
        raise
    span.ok(status=performance.status.value, points=len(performance.points))
    return performance.to_json_dict()


@router.delete('/cache')
async def clear_cache(request: Request):
    span = CommandSpan('clear_cache')
    try:
        await _service(request).clear_cache()
    except AppError as exc:
        span.err(exc)
        raise
    span.ok()
    return {'cleared': True}


@router.get('/metrics/market-data')
def market_data_metrics(request: Request):
    return _service(request).metrics()
