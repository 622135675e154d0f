from __future__ import annotations

import asyncio
import logging
import shutil
import time
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Callable

from quotedesk.errors import AppError
from quotedesk.schemas.performance import PerformanceSnapshot, TimeRange
from quotedesk.schemas.quote import QuoteSnapshot, QuoteStatus
from quotedesk.schemas.settings import ProviderTestResult
from quotedesk.services.json_files import file_lock
from quotedesk.services.quote_cache import (
    CACHE_DIR_NAME,
    QuoteCacheStore,
    error_quote,
    fresh_quote,
    is_quote_fresh,
    prune_to_symbols,
    stale_quote,
    to_cached_entry,
)
from quotedesk.services.settings_store import SettingsStore
from quotedesk.services.symbols import normalize_symbol
from quotedesk.services.timeseries_cache import (
    TimeSeriesCacheStore,
    is_timeseries_fresh,
    with_status,
)
from quotedesk.services.watchlist_store import WatchlistStore

logger = logging.getLogger(__name__)


class MarketDataService:
    """Cache-first quote and performance synchronization against one provider.

    Stores are built per call from ``base_dir``. Every load/mutate/save cycle on
    a cache file runs under that file's process-wide lock, so two refreshes
    started concurrently are applied one after the other instead of racing.
    """

    def __init__(
        self,
        *,
        base_dir: str | Path,
        provider,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.base_dir = Path(base_dir)
        self.provider = provider
        self.clock = clock or time.time

        self.provider_calls = 0
        self.cache_hits = 0
        self.stale_fallbacks = 0
        self.error_results = 0

    def _now(self) -> int:
        return int(self.clock())

    def _require_api_key(self, message: str) -> str:
        api_key = SettingsStore(self.base_dir).load().api_key.strip()
        if not api_key:
            raise AppError.validation("invalid_settings", message)
        return api_key

    async def refresh_watchlist_quotes(self) -> list[QuoteSnapshot]:
        api_key = self._require_api_key("Save an API key before refreshing quotes.")
        watchlist = WatchlistStore(self.base_dir).load()
        if not watchlist:
            return []

        store = QuoteCacheStore(self.base_dir)
        async with file_lock(store.file_path):
            cache = store.load()
            now = self._now()
            out: list[QuoteSnapshot] = []
            fetched = stale = errors = 0

            for item in watchlist:
                symbol = item.symbol
                entry = cache.get(symbol)
                if entry is not None and is_quote_fresh(entry.cached_at, now):
                    self.cache_hits += 1
                    out.append(fresh_quote(entry.quote))
                    continue

                self.provider_calls += 1
                try:
                    quote = await asyncio.to_thread(self.provider.fetch_quote, symbol, api_key)
                except AppError as exc:
                    logger.warning(
                        "[QUOTE][fetch_failed] symbol=%s code=%s cached=%s",
                        symbol,
                        exc.code,
                        int(entry is not None),
                    )
                    if entry is not None:
                        stale += 1
                        self.stale_fallbacks += 1
                        out.append(stale_quote(entry, exc))
                    else:
                        errors += 1
                        self.error_results += 1
                        out.append(error_quote(symbol, exc, self._now()))
                    continue

                fetched += 1
                cache[symbol] = to_cached_entry(quote, self._now(), previous=entry)
                out.append(cache[symbol].quote)

            cache = prune_to_symbols(cache, [item.symbol for item in watchlist])
            store.save(cache)

        logger.info(
            "[QUOTE][batch_resolve] target_count=%s fresh_count=%s fetched_count=%s "
            "stale_count=%s error_count=%s",
            len(watchlist),
            len(out) - fetched - stale - errors,
            fetched,
            stale,
            errors,
        )
        return out

    async def get_symbol_performance(
        self, symbol: str, time_range: TimeRange
    ) -> PerformanceSnapshot:
        return await self._load_performance(symbol, time_range, force_refresh=False)

    async def refresh_symbol_performance(
        self, symbol: str, time_range: TimeRange
    ) -> PerformanceSnapshot:
        return await self._load_performance(symbol, time_range, force_refresh=True)

    async def _load_performance(
        self, symbol: str, time_range: TimeRange, *, force_refresh: bool
    ) -> PerformanceSnapshot:
        normalized = normalize_symbol(symbol)
        time_range = TimeRange(time_range)
        api_key = self._require_api_key("Save an API key before loading chart data.")

        store = TimeSeriesCacheStore(self.base_dir)
        async with file_lock(store.file_path(normalized, time_range)):
            cached = store.load(normalized, time_range)
            if (
                not force_refresh
                and cached is not None
                and is_timeseries_fresh(cached.cached_at, self._now())
            ):
                self.cache_hits += 1
                return with_status(cached.performance, QuoteStatus.FRESH)

            self.provider_calls += 1
            try:
                performance = await asyncio.to_thread(
                    self.provider.fetch_symbol_performance, normalized, time_range, api_key
                )
            except AppError as exc:
                if cached is None:
                    raise
                logger.warning(
                    "[SERIES][fetch_failed] symbol=%s range=%s code=%s",
                    normalized,
                    time_range.value,
                    exc.code,
                )
                self.stale_fallbacks += 1
                return with_status(cached.performance, QuoteStatus.STALE)

            entry = store.save(normalized, time_range, performance, now=self._now(), previous=cached)
            return entry.performance

    async def test_provider_connection(self) -> ProviderTestResult:
        api_key = self._require_api_key("Save an API key before testing provider connection.")
        return await asyncio.to_thread(self.provider.test_connection, api_key)

    async def clear_cache(self) -> None:
        cache_dir = self.base_dir / CACHE_DIR_NAME
        series_dir = TimeSeriesCacheStore(self.base_dir).dir_path
        paths = [QuoteCacheStore(self.base_dir).file_path]
        if series_dir.is_dir():
            paths.extend(sorted(series_dir.glob("*.json")))

        # no load/save cycle on any cache file may straddle the removal
        async with AsyncExitStack() as stack:
            for path in paths:
                await stack.enter_async_context(file_lock(path))
            if not cache_dir.exists():
                return
            try:
                shutil.rmtree(cache_dir)
            except OSError as exc:
                raise AppError.persistence(f"Unable to clear cache directory: {exc}") from exc

    def metrics(self) -> dict[str, int]:
        return {
            "provider_calls": self.provider_calls,
            "cache_hits": self.cache_hits,
            "stale_fallbacks": self.stale_fallbacks,
            "error_results": self.error_results,
        }
