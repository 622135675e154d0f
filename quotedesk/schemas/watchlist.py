from __future__ import annotations

from pydantic import BaseModel

from quotedesk.schemas.quote import CamelModel


class WatchlistItem(CamelModel):
    symbol: str
    display_name: str | None = None
    pinned: bool | None = None


class AddSymbolRequest(BaseModel):
    symbol: str
