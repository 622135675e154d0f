from __future__ import annotations

from enum import Enum

from quotedesk.schemas.quote import CamelModel, QuoteStatus


class TimeRange(str, Enum):
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    ONE_YEAR = "1Y"

    @property
    def request_config(self) -> tuple[str, str]:
        """Provider (interval, outputsize) pair for this range."""
        return _RANGE_REQUEST_CONFIG[self]


_RANGE_REQUEST_CONFIG: dict[TimeRange, tuple[str, str]] = {
    TimeRange.ONE_DAY: ("1h", "24"),
    TimeRange.ONE_WEEK: ("1day", "7"),
    TimeRange.ONE_MONTH: ("1day", "30"),
    TimeRange.THREE_MONTHS: ("1day", "90"),
    TimeRange.ONE_YEAR: ("1week", "52"),
}


class PerformancePoint(CamelModel):
    ts: str
    close: float


class PerformanceSnapshot(CamelModel):
    symbol: str
    range: TimeRange
    points: list[PerformancePoint]
    min: float
    max: float
    start: float
    end: float
    last_updated_at: str
    status: QuoteStatus = QuoteStatus.FRESH


class CachedPerformanceEntry(CamelModel):
    performance: PerformanceSnapshot
    cached_at: int
