from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, Optional

import requests

from quotedesk.errors import AppError
from quotedesk.schemas.performance import PerformancePoint, PerformanceSnapshot, TimeRange
from quotedesk.schemas.quote import QuoteSnapshot, QuoteStatus
from quotedesk.schemas.settings import ProviderTestResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.twelvedata.com"
DEFAULT_TIMEOUT_SEC = 8.0

_TEST_SYMBOL = "AAPL"
_TEST_INTERVAL = "1day"
_TEST_OUTPUT_SIZE = "1"


class TwelveDataRestClient:
    """Twelve Data REST client returning domain snapshots or raising classified AppErrors.

    Every call performs exactly one GET; retries are left to the caller.
    """

    def __init__(
        self,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        min_points: int = 1,
    ) -> None:
        self.session = session or requests
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout_sec = timeout_sec
        self.min_points = max(int(min_points), 1)

    def test_connection(self, api_key: str) -> ProviderTestResult:
        key = _require_api_key(api_key, "Save a valid API key before testing connection.")
        self._get_json(
            "/time_series",
            {
                "symbol": _TEST_SYMBOL,
                "interval": _TEST_INTERVAL,
                "outputsize": _TEST_OUTPUT_SIZE,
                "apikey": key,
            },
        )
        return ProviderTestResult(ok=True, provider="twelvedata", message="Connection successful.")

    def fetch_quote(self, symbol: str, api_key: str) -> QuoteSnapshot:
        key = _require_api_key(api_key, "Save a valid API key before refreshing quotes.")
        payload = self._get_json("/quote", {"symbol": symbol, "apikey": key})
        return parse_quote_payload(symbol, payload)

    def fetch_symbol_performance(
        self, symbol: str, time_range: TimeRange, api_key: str
    ) -> PerformanceSnapshot:
        key = _require_api_key(api_key, "Save a valid API key before loading chart data.")
        interval, outputsize = TimeRange(time_range).request_config
        payload = self._get_json(
            "/time_series",
            {"symbol": symbol, "interval": interval, "outputsize": outputsize, "apikey": key},
        )
        return parse_performance_payload(symbol, time_range, payload, min_points=self.min_points)

    def _get_json(self, path: str, params: Dict[str, str]) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                params=params,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise map_transport_error(exc) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise AppError.provider(
                "provider_payload_parse_failed",
                f"Unable to parse provider response: {exc}",
            ) from exc

        status_code = int(response.status_code)
        if not 200 <= status_code < 300 or payload_has_error_status(payload):
            err = map_provider_error(status_code, payload)
            logger.debug(
                "[PROVIDER][request_failed] path=%s status=%s code=%s", path, status_code, err.code
            )
            raise err
        return payload


def _require_api_key(api_key: str, message: str) -> str:
    key = (api_key or "").strip()
    if not key:
        raise AppError.validation("invalid_settings", message)
    return key


def payload_has_error_status(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    status = payload.get("status")
    return isinstance(status, str) and status.lower() == "error"


def map_transport_error(exc: requests.RequestException) -> AppError:
    # ConnectTimeout is both a Timeout and a ConnectionError; it counts as a timeout.
    if isinstance(exc, requests.Timeout):
        return AppError.provider(
            "network_timeout",
            "Request timed out while contacting provider.",
        )
    if isinstance(exc, requests.ConnectionError):
        return AppError.provider(
            "network_connect_error",
            "Unable to connect to provider. Check your network connection.",
        )
    return AppError.provider("network_error", f"Provider request failed: {exc}")


def map_provider_error(status_code: int, payload: Any) -> AppError:
    message = None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        message = payload["message"]
    message = message or "Provider request failed."
    lowered = message.lower()

    if status_code == 401 or "api key" in lowered or "apikey" in lowered:
        code = "invalid_api_key"
    elif status_code == 429 or any(word in lowered for word in ("rate", "frequency", "limit")):
        code = "rate_limited"
    elif "symbol" in lowered:
        code = "invalid_symbol"
    else:
        code = "provider_error"
    return AppError.provider(code, message)


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    # NaN and infinities cannot be written as JSON
    return number if math.isfinite(number) else None


def _number_field(payload: Any, *keys: str) -> Optional[float]:
    if not isinstance(payload, dict):
        return None
    for key in keys:
        if key not in payload:
            continue
        number = _to_float(payload[key])
        if number is not None:
            return number
    return None


def parse_quote_payload(symbol: str, payload: Any) -> QuoteSnapshot:
    price = _number_field(payload, "close", "price", "last")
    if price is None:
        raise AppError.provider("provider_payload_invalid", "Quote payload missing price.")

    symbol_value = payload.get("symbol")
    currency = payload.get("currency")
    updated = payload.get("datetime")
    return QuoteSnapshot(
        symbol=symbol_value if isinstance(symbol_value, str) else symbol,
        price=price,
        change_abs=_number_field(payload, "change"),
        change_pct=_number_field(payload, "percent_change", "change_percent"),
        currency=currency if isinstance(currency, str) else None,
        last_updated_at=updated if isinstance(updated, str) else str(int(time.time())),
        status=QuoteStatus.FRESH,
    )


def parse_performance_payload(
    symbol: str, time_range: TimeRange, payload: Any, min_points: int = 1
) -> PerformanceSnapshot:
    values = payload.get("values") if isinstance(payload, dict) else None
    if not isinstance(values, list):
        raise AppError.provider("provider_payload_invalid", "Time series payload missing values.")
    if not values:
        raise AppError.provider(
            "provider_payload_invalid", "Time series payload contains no values."
        )

    points: list[PerformancePoint] = []
    for entry in values:
        ts = entry.get("datetime") if isinstance(entry, dict) else None
        close = _number_field(entry, "close")
        if not isinstance(ts, str) or close is None:
            continue
        points.append(PerformancePoint(ts=ts, close=close))

    if not points:
        raise AppError.provider(
            "provider_payload_invalid", "Time series payload contains no valid close values."
        )
    if len(points) < min_points:
        raise AppError.provider(
            "provider_payload_invalid",
            f"Time series payload contains {len(points)} valid points; {min_points} required.",
        )

    # provider returns newest first
    points.reverse()
    closes = [point.close for point in points]
    return PerformanceSnapshot(
        symbol=symbol,
        range=TimeRange(time_range),
        points=points,
        min=min(closes),
        max=max(closes),
        start=points[0].close,
        end=points[-1].close,
        last_updated_at=points[-1].ts,
        status=QuoteStatus.FRESH,
    )
