from __future__ import annotations

import re

from quotedesk.errors import AppError

MAX_SYMBOL_LEN = 12
_SYMBOL_CHARS = re.compile(r"[A-Z0-9.\-]+")


def normalize_symbol(value: str) -> str:
    """Return the canonical ticker for ``value`` or raise ``invalid_symbol``.

    Watchlist mutations and performance lookups both go through here so they
    agree on symbol identity.
    """
    normalized = str(value).strip().upper()
    if not normalized:
        raise AppError.validation("invalid_symbol", "Symbol cannot be empty.")
    if len(normalized) > MAX_SYMBOL_LEN:
        raise AppError.validation("invalid_symbol", "Symbol is too long.")
    if not _SYMBOL_CHARS.fullmatch(normalized):
        raise AppError.validation("invalid_symbol", "Symbol contains invalid characters.")
    return normalized
