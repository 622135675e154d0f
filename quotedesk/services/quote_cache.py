from __future__ import annotations

import time
from pathlib import Path

from pydantic import ValidationError

from quotedesk.errors import AppError
from quotedesk.schemas.quote import CachedQuoteEntry, QuoteSnapshot, QuoteStatus
from quotedesk.services.json_files import read_json, write_json_atomic

CACHE_DIR_NAME = "cache"
QUOTES_CACHE_FILE_NAME = "quotes.json"
QUOTE_CACHE_TTL_SEC = 60

QuoteCacheMap = dict[str, CachedQuoteEntry]


class QuoteCacheStore:
    """Quote cache persisted as one JSON object keyed by symbol."""

    def __init__(self, base_dir: str | Path) -> None:
        self.file_path = Path(base_dir) / CACHE_DIR_NAME / QUOTES_CACHE_FILE_NAME

    def load(self) -> QuoteCacheMap:
        raw = read_json(self.file_path, label="quote cache")
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise AppError.persistence("Unable to parse quote cache file: expected a JSON object.")
        try:
            return {symbol: CachedQuoteEntry.model_validate(entry) for symbol, entry in raw.items()}
        except ValidationError as exc:
            raise AppError.persistence(f"Unable to parse quote cache file: {exc}") from exc

    def save(self, cache: QuoteCacheMap) -> None:
        payload = {symbol: entry.to_json_dict() for symbol, entry in cache.items()}
        write_json_atomic(self.file_path, payload, label="quote cache")


def is_quote_fresh(cached_at: int, now: int) -> bool:
    return max(now - cached_at, 0) <= QUOTE_CACHE_TTL_SEC


def fresh_quote(quote: QuoteSnapshot) -> QuoteSnapshot:
    return quote.model_copy(
        update={"status": QuoteStatus.FRESH, "error_code": None, "error_message": None}
    )


def stale_quote(entry: CachedQuoteEntry, error: AppError) -> QuoteSnapshot:
    return entry.quote.model_copy(
        update={
            "status": QuoteStatus.STALE,
            "error_code": error.code,
            "error_message": error.message,
        }
    )


def error_quote(symbol: str, error: AppError, now: int | None = None) -> QuoteSnapshot:
    ref = int(time.time()) if now is None else now
    return QuoteSnapshot(
        symbol=symbol,
        price=0.0,
        last_updated_at=str(ref),
        status=QuoteStatus.ERROR,
        error_code=error.code,
        error_message=error.message,
    )


def to_cached_entry(
    quote: QuoteSnapshot, now: int, previous: CachedQuoteEntry | None = None
) -> CachedQuoteEntry:
    cached_at = now if previous is None else max(now, previous.cached_at)
    return CachedQuoteEntry(quote=fresh_quote(quote), cached_at=cached_at)


def prune_to_symbols(cache: QuoteCacheMap, symbols: list[str]) -> QuoteCacheMap:
    keep = set(symbols)
    return {symbol: entry for symbol, entry in cache.items() if symbol in keep}
