from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class QuoteStatus(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    ERROR = "error"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class QuoteSnapshot(CamelModel):
    symbol: str
    price: float
    change_abs: float | None = None
    change_pct: float | None = None
    currency: str | None = None
    last_updated_at: str
    status: QuoteStatus = QuoteStatus.FRESH
    error_code: str | None = None
    error_message: str | None = None


class CachedQuoteEntry(CamelModel):
    quote: QuoteSnapshot
    cached_at: int
