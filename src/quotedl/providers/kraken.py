"""Kraken public OHLC provider.

``/0/public/OHLC`` answers with the most recent bars (up to 720) for a
pair, oldest first::

    {"error": [], "result": {"XXBTZUSD": [[1617580800, "58000.1", ...], ...],
                             "last": 1617580800}}

Each bar is ``[time, open, high, low, close, vwap, volume, count]`` with the
prices and volumes encoded as strings. The date range is not sent; Kraken
decides how much history to return.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, NamedTuple

import httpx
from pydantic import BaseModel, Field, TypeAdapter

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import FetchError
from quotedl.core.models import Period, Quote
from quotedl.providers.base import HttpProvider, decode_payload, ensure_ascending, require_symbol

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.kraken.com"

_INTERVAL: dict[Period, str] = {
    Period.MIN1: "1",
    Period.MIN5: "5",
    Period.MIN15: "15",
    Period.MIN30: "30",
    Period.MIN60: "60",
    Period.HOUR4: "240",
    Period.DAILY: "1440",
    Period.WEEKLY: "10080",
}
_DEFAULT_INTERVAL = "1440"

_UNKNOWN_PAIR = "EQuery:Unknown asset pair"


# --- Wire shapes ---


class _OHLCBar(NamedTuple):
    """``[time, open, high, low, close, vwap, volume, count]``; prices arrive as strings."""

    time: int
    open: float
    high: float
    low: float
    close: float
    vwap: float
    volume: float
    trades: int


class _OHLCResponse(BaseModel):
    error: list[str] = Field(default_factory=list)
    result: dict[str, Any] = Field(default_factory=dict)


_RESPONSE_SCHEMA = TypeAdapter(_OHLCResponse)
_BARS_SCHEMA = TypeAdapter(list[_OHLCBar])


def interval_for(period: Period) -> str:
    """Kraken interval in minutes; unsupported periods fall back to daily."""
    return _INTERVAL.get(period, _DEFAULT_INTERVAL)


class KrakenAdapter:
    """Maps a Kraken OHLC response into a Quote.

    The bars are looked up under the requested pair name. When that key is
    missing but the result holds exactly one pair (Kraken answers ``XBTUSD``
    under ``XXBTZUSD``), that pair is used. Otherwise the symbol is unknown
    and an empty Quote is returned.
    """

    def adapt(self, raw_data: Any, symbol: str) -> Quote:
        response = decode_payload(_RESPONSE_SCHEMA, raw_data, "kraken", symbol)
        pairs = {k: v for k, v in response.result.items() if k != "last"}

        raw_bars = pairs.get(symbol)
        if raw_bars is None and len(pairs) == 1:
            raw_bars = next(iter(pairs.values()))
        if raw_bars is None:
            logger.warning("kraken: symbol '%s' not found", symbol)
            return Quote(symbol=symbol)

        bars = decode_payload(_BARS_SCHEMA, raw_bars, "kraken", symbol)
        quote = Quote.with_bars(symbol, len(bars))
        for i, bar in enumerate(bars):
            quote.date[i] = datetime.fromtimestamp(bar.time, tz=timezone.utc)
            quote.open[i] = bar.open
            quote.high[i] = bar.high
            quote.low[i] = bar.low
            quote.close[i] = bar.close
            quote.volume[i] = bar.volume
        return ensure_ascending(quote)


class KrakenProvider(HttpProvider):
    """Fetches recent OHLC bars for a Kraken pair such as ``XBTUSD``."""

    name = "kraken"

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
        adapter: KrakenAdapter | None = None,
    ) -> None:
        super().__init__(config, client)
        self._base_url = base_url
        self._adapter = adapter or KrakenAdapter()

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        symbol = require_symbol(symbol)
        url = f"{self._base_url}/0/public/OHLC"
        raw = self._get_json(url, symbol, params={"pair": symbol, "interval": interval_for(period)})
        if raw is None:
            return Quote(symbol=symbol)

        errors = raw.get("error") if isinstance(raw, dict) else None
        if errors:
            if _UNKNOWN_PAIR in errors:
                logger.warning("kraken: symbol '%s' not found", symbol)
                return Quote(symbol=symbol)
            logger.error("kraken API error for %s: %s", symbol, errors)
            raise FetchError(
                f"kraken API error for {symbol}: {', '.join(map(str, errors))}",
                context={"symbol": symbol, "url": url},
            )

        return self._adapter.adapt(raw, symbol)
