"""Huobi kline provider.

``/market/history/kline`` returns up to 2000 of the most recent bars,
newest first::

    {"status": "ok", "ch": "market.btcusdt.kline.1day", "ts": 1630000000000,
     "data": [{"id": 1629993600, "open": 1.0, "close": 1.5, "low": 0.5,
               "high": 2.0, "amount": 10.0, "vol": 15.0, "count": 42}, ...]}

``vol`` (quote-currency turnover) is mapped to volume. The date range is not
sent; Huobi decides how much history to return.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel, Field, TypeAdapter

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import FetchError
from quotedl.core.models import Period, Quote
from quotedl.providers.base import HttpProvider, decode_payload, ensure_ascending, require_symbol

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.huobi.pro"
_MAX_BARS = 1990

_INTERVAL: dict[Period, str] = {
    Period.MIN1: "1min",
    Period.MIN5: "5min",
    Period.MIN15: "15min",
    Period.MIN30: "30min",
    Period.MIN60: "60min",
    Period.DAILY: "1day",
    Period.WEEKLY: "1week",
    Period.MONTHLY: "1mon",
}
_DEFAULT_INTERVAL = "1day"

_UNKNOWN_SYMBOL = "invalid-parameter"


# --- Wire shapes ---


class _Kline(BaseModel):
    id: int
    open: float = 0.0
    close: float = 0.0
    low: float = 0.0
    high: float = 0.0
    amount: float = 0.0
    vol: float = 0.0
    count: int = 0


class _KlineResponse(BaseModel):
    status: str = ""
    data: list[_Kline] = Field(default_factory=list)


_RESPONSE_SCHEMA = TypeAdapter(_KlineResponse)


def interval_for(period: Period) -> str:
    """Huobi period name; unsupported periods fall back to daily."""
    return _INTERVAL.get(period, _DEFAULT_INTERVAL)


class HuobiAdapter:
    """Maps a kline response (newest first) into an ascending Quote."""

    def adapt(self, raw_data: Any, symbol: str) -> Quote:
        response = decode_payload(_RESPONSE_SCHEMA, raw_data, "huobi", symbol)
        bars = response.data
        numrows = len(bars)
        quote = Quote.with_bars(symbol, numrows)
        for row, kline in enumerate(bars):
            bar = numrows - 1 - row
            quote.date[bar] = datetime.fromtimestamp(kline.id, tz=timezone.utc)
            quote.open[bar] = kline.open
            quote.high[bar] = kline.high
            quote.low[bar] = kline.low
            quote.close[bar] = kline.close
            quote.volume[bar] = kline.vol
        return ensure_ascending(quote)


class HuobiProvider(HttpProvider):
    """Fetches recent klines for a Huobi symbol such as ``btcusdt``."""

    name = "huobi"

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
        adapter: HuobiAdapter | None = None,
    ) -> None:
        super().__init__(config, client)
        self._base_url = base_url
        self._adapter = adapter or HuobiAdapter()

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        symbol = require_symbol(symbol)
        url = f"{self._base_url}/market/history/kline"
        params = {"symbol": symbol, "period": interval_for(period), "size": _MAX_BARS}
        raw = self._get_json(url, symbol, params=params)
        if raw is None:
            return Quote(symbol=symbol)

        if isinstance(raw, dict) and raw.get("status") not in (None, "ok"):
            if raw.get("err-code") == _UNKNOWN_SYMBOL:
                logger.warning("huobi: symbol '%s' not found", symbol)
                return Quote(symbol=symbol)
            logger.error("huobi API error for %s: %s", symbol, raw.get("err-msg"))
            raise FetchError(
                f"huobi API error for {symbol}: {raw.get('err-msg')}",
                context={"symbol": symbol, "url": url},
            )

        return self._adapter.adapt(raw, symbol)
