"""Coinbase Exchange candles provider.

The public ``/products/<id>/candles`` endpoint returns at most a few hundred
candles per call, newest first, each as
``[time, low, high, open, close, volume]``. Longer ranges are downloaded in
fixed windows of ``page_size`` bars with a pause between pages.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import TypeAdapter

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import ParseError
from quotedl.core.models import Period, Quote
from quotedl.providers.base import HttpProvider, decode_payload, ensure_ascending, require_symbol

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.exchange.coinbase.com"
_PAGE_SIZE = 200

_GRANULARITY: dict[Period, int] = {
    Period.MIN1: 60,
    Period.MIN5: 5 * 60,
    Period.MIN15: 15 * 60,
    Period.MIN30: 30 * 60,
    Period.MIN60: 60 * 60,
    Period.DAILY: 24 * 60 * 60,
    Period.WEEKLY: 7 * 24 * 60 * 60,
}
_DEFAULT_GRANULARITY = 24 * 60 * 60

# [time, low, high, open, close, volume]
_Candle = tuple[float, float, float, float, float, float]
_CANDLES_SCHEMA = TypeAdapter(list[_Candle])


def granularity_for(period: Period) -> int:
    """Candle size in seconds; unsupported periods fall back to daily."""
    return _GRANULARITY.get(period, _DEFAULT_GRANULARITY)


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class CoinbaseAdapter:
    """Maps one page of candles (newest first) into an ascending Quote."""

    def adapt(self, raw_data: Any, symbol: str) -> Quote:
        candles = decode_payload(_CANDLES_SCHEMA, raw_data, "coinbase", symbol)
        numrows = len(candles)
        quote = Quote.with_bars(symbol, numrows)
        for row, (stamp, low, high, open_, close, volume) in enumerate(candles):
            bar = numrows - 1 - row
            quote.date[bar] = datetime.fromtimestamp(int(stamp), tz=timezone.utc)
            quote.low[bar] = low
            quote.high[bar] = high
            quote.open[bar] = open_
            quote.close[bar] = close
            quote.volume[bar] = volume
        return ensure_ascending(quote)


class CoinbaseProvider(HttpProvider):
    """Fetches candles from Coinbase Exchange, paging through long ranges.

    Parameters
    ----------
    config : HttpConfig | None
        Timeout, user agent and the delay between pages.
    client : httpx.Client | None
        Shared HTTP client.
    base_url : str
        Override base URL (useful for testing).
    adapter : CoinbaseAdapter | None
        Custom adapter instance. Uses default if None.
    page_size : int
        Bars requested per window.
    sleep : Callable[[float], None]
        Called with the page delay between windows.
    """

    name = "coinbase"

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
        adapter: CoinbaseAdapter | None = None,
        page_size: int = _PAGE_SIZE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, client)
        self._base_url = base_url
        self._adapter = adapter or CoinbaseAdapter()
        self._page_size = page_size
        self._sleep = sleep

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        """Download every window between ``start`` and ``end``.

        Each window covers ``page_size`` bars and ends no later than
        ``end``; the next window starts one bar after the previous one ends.
        A page whose body is not JSON or cannot be decoded is logged and
        contributes no bars.
        """
        symbol = require_symbol(symbol)
        granularity = granularity_for(period)
        step = timedelta(seconds=granularity)
        window = step * self._page_size
        url = f"{self._base_url}/products/{symbol}/candles"

        quote = Quote(symbol=symbol)
        page_start = start
        while page_start < end:
            page_end = min(page_start + window, end)
            params = {
                "start": _rfc3339(page_start),
                "end": _rfc3339(page_end),
                "granularity": granularity,
            }
            try:
                raw = self._get_json(url, symbol, params=params)
                if raw is None:
                    return Quote(symbol=symbol)
                quote.extend(self._adapter.adapt(raw, symbol))
            except ParseError:
                logger.error(
                    "coinbase page %s..%s for %s skipped", params["start"], params["end"], symbol
                )

            page_start = page_end + step
            if page_start < end:
                self._sleep(self._config.page_delay)

        return quote
