from __future__ import annotations

from typing import Literal

from quotedesk.schemas.performance import TimeRange
from quotedesk.schemas.quote import CamelModel
from quotedesk.schemas.watchlist import WatchlistItem

AppProvider = Literal["twelvedata"]


class AppSettingsInput(CamelModel):
    provider: AppProvider = "twelvedata"
    api_key: str
    default_range: TimeRange = TimeRange.ONE_MONTH
    auto_refresh_seconds: int = 60
    notifications_enabled: bool = False


class AppSettings(CamelModel):
    provider: AppProvider = "twelvedata"
    api_key: str = ""
    default_range: TimeRange = TimeRange.ONE_MONTH
    auto_refresh_seconds: int = 60
    notifications_enabled: bool = False


class ProviderTestResult(CamelModel):
    ok: bool
    provider: AppProvider = "twelvedata"
    message: str


class BootstrapPayload(CamelModel):
    settings: AppSettings
    watchlist: list[WatchlistItem]
