from __future__ import annotations

import time
from pathlib import Path

from pydantic import ValidationError

from quotedesk.errors import AppError
from quotedesk.schemas.performance import (
    CachedPerformanceEntry,
    PerformanceSnapshot,
    TimeRange,
)
from quotedesk.schemas.quote import QuoteStatus
from quotedesk.services.json_files import read_json, write_json_atomic
from quotedesk.services.quote_cache import CACHE_DIR_NAME

TIMESERIES_DIR_NAME = "timeseries"
TIMESERIES_CACHE_TTL_SEC = 300


class TimeSeriesCacheStore:
    """Performance cache with one JSON file per (symbol, range)."""

    def __init__(self, base_dir: str | Path) -> None:
        self.dir_path = Path(base_dir) / CACHE_DIR_NAME / TIMESERIES_DIR_NAME

    def file_path(self, symbol: str, time_range: TimeRange) -> Path:
        return self.dir_path / f"{symbol}-{TimeRange(time_range).value}.json"

    def load(self, symbol: str, time_range: TimeRange) -> CachedPerformanceEntry | None:
        raw = read_json(self.file_path(symbol, time_range), label="timeseries cache")
        if raw is None:
            return None
        try:
            return CachedPerformanceEntry.model_validate(raw)
        except ValidationError as exc:
            raise AppError.persistence(f"Unable to parse timeseries cache file: {exc}") from exc

    def save(
        self,
        symbol: str,
        time_range: TimeRange,
        performance: PerformanceSnapshot,
        now: int | None = None,
        previous: CachedPerformanceEntry | None = None,
    ) -> CachedPerformanceEntry:
        cached_at = int(time.time()) if now is None else now
        if previous is not None:
            cached_at = max(cached_at, previous.cached_at)
        entry = CachedPerformanceEntry(
            performance=performance.model_copy(update={"status": QuoteStatus.FRESH}),
            cached_at=cached_at,
        )
        write_json_atomic(
            self.file_path(symbol, time_range), entry.to_json_dict(), label="timeseries cache"
        )
        return entry


def is_timeseries_fresh(cached_at: int, now: int) -> bool:
    return max(now - cached_at, 0) <= TIMESERIES_CACHE_TTL_SEC


def with_status(performance: PerformanceSnapshot, status: QuoteStatus) -> PerformanceSnapshot:
    return performance.model_copy(update={"status": status})
