from __future__ import annotations

from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from quotedesk.errors import AppError
from quotedesk.schemas.watchlist import WatchlistItem
from quotedesk.services.json_files import read_json, write_json_atomic
from quotedesk.services.symbols import normalize_symbol

WATCHLIST_FILE_NAME = "watchlist.json"

_ITEMS = TypeAdapter(list[WatchlistItem])


class WatchlistStore:
    def __init__(self, base_dir: str | Path) -> None:
        self.file_path = Path(base_dir) / WATCHLIST_FILE_NAME

    def load(self) -> list[WatchlistItem]:
        raw = read_json(self.file_path, label="watchlist")
        if raw is None:
            return []
        try:
            return _ITEMS.validate_python(raw)
        except ValidationError as exc:
            raise AppError.persistence(f"Unable to parse watchlist file: {exc}") from exc

    def save(self, items: list[WatchlistItem]) -> list[WatchlistItem]:
        payload = [item.to_json_dict() for item in items]
        write_json_atomic(self.file_path, payload, label="watchlist")
        return list(items)

    def add_symbol(self, value: str) -> list[WatchlistItem]:
        symbol = normalize_symbol(value)
        items = self.load()
        if any(item.symbol == symbol for item in items):
            raise AppError.validation("symbol_exists", f"{symbol} is already in your watchlist.")
        items.append(WatchlistItem(symbol=symbol))
        return self.save(items)

    def remove_symbol(self, value: str) -> list[WatchlistItem]:
        symbol = normalize_symbol(value)
        items = self.load()
        remaining = [item for item in items if item.symbol != symbol]
        if len(remaining) == len(items):
            raise AppError.validation("symbol_not_found", f"{symbol} is not in your watchlist.")
        return self.save(remaining)
