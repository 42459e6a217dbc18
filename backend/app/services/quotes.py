import time
import threading
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote as urlquote

import httpx
from loguru import logger

from app.core.settings import settings
from app.models.records import Quote

CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"


class QuoteProviderError(RuntimeError):
    """Transport or HTTP failure talking to the market-data provider."""


class QuoteNotFoundError(QuoteProviderError):
    """Provider answered but had no data for the symbol."""


class TTLCache:
    """Tiny thread-safe TTL memo keyed by string."""
    def __init__(self, ttl_sec: float = 300.0, max_items: int = 1024):
        self.ttl = ttl_sec
        self.max = max_items
        self.mu = threading.Lock()
        self.store: Dict[str, Tuple[float, Any]] = {}

    def _prune(self) -> None:
        if len(self.store) <= self.max:
            return
        # drop oldest 10%
        items = sorted(self.store.items(), key=lambda kv: kv[1][0])
        for k, _ in items[: max(1, len(items) // 10)]:
            self.store.pop(k, None)

    def get(self, key: str) -> Optional[Any]:
        with self.mu:
            v = self.store.get(key)
            if not v:
                return None
            ts, data = v
            if (time.monotonic() - ts) > self.ttl:
                self.store.pop(key, None)
                return None
            return data

    def set(self, key: str, data: Any) -> None:
        with self.mu:
            self.store[key] = (time.monotonic(), data)
            self._prune()


def _num(v: Any) -> Optional[float]:
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def quote_from_chart(symbol: str, payload: Dict[str, Any]) -> Quote:
    # Shape: {"chart": {"result": [{"meta": {...}, ...}], "error": null}}
    results = (payload.get("chart") or {}).get("result") or []
    if not results:
        raise QuoteNotFoundError(f"No chart data found for symbol: {symbol}")
    meta = results[0].get("meta") or {}

    price = _num(meta.get("regularMarketPrice"))
    prev = _num(meta.get("previousClose")) or _num(meta.get("chartPreviousClose"))
    change = change_pct = None
    if price is not None and prev:
        change = price - prev
        change_pct = change / prev * 100

    return Quote(
        symbol=meta.get("symbol") or symbol,
        current_price=price,
        previous_close=prev,
        day_change=change,
        day_change_percent=change_pct,
        currency=meta.get("currency"),
        exchange=meta.get("fullExchangeName") or meta.get("exchangeName"),
        long_name=meta.get("longName") or meta.get("shortName"),
        week52_high=_num(meta.get("fiftyTwoWeekHigh")),
        week52_low=_num(meta.get("fiftyTwoWeekLow")),
        as_of=meta.get("regularMarketTime"),
    )


class YahooQuoteClient:
    def __init__(
        self,
        timeout_s: float,
        cache_ttl_s: float = 300.0,
        user_agent: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout_s = timeout_s
        self.cache = TTLCache(cache_ttl_s)
        headers = {"User-Agent": user_agent} if user_agent else {}
        self.client = httpx.Client(timeout=self.timeout_s, headers=headers, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _request(self, symbol: str) -> Dict[str, Any]:
        url = CHART_URL.format(symbol=urlquote(symbol, safe=""))
        try:
            resp = self.client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"Quote request for {symbol} failed: {e}")
            raise QuoteProviderError(str(e)) from e

        if resp.status_code == 404:
            raise QuoteNotFoundError(f"No chart data found for symbol: {symbol}")
        if resp.status_code >= 400:
            raise QuoteProviderError(f"Quote provider returned HTTP {resp.status_code} for {symbol}")
        try:
            return resp.json()
        except ValueError as e:
            raise QuoteProviderError(f"Malformed quote payload for {symbol}") from e

    def get_quote(self, symbol: str) -> Quote:
        key = symbol.strip().upper()
        if not key:
            raise QuoteNotFoundError("Empty symbol")
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        logger.info(f"Fetching quote for {key}")
        quote = quote_from_chart(key, self._request(key))
        self.cache.set(key, quote)
        return quote


# Singleton accessor
_client: Optional[YahooQuoteClient] = None

def get_quote_client() -> YahooQuoteClient:
    global _client
    if _client is None:
        _client = YahooQuoteClient(
            timeout_s=settings.http_timeout_s,
            cache_ttl_s=settings.quote_cache_ttl_s,
            user_agent=settings.yahoo_user_agent,
        )
    return _client
