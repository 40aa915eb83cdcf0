"""Tiingo providers: end-of-day equities and crypto.

Both endpoints need an API token, sent as ``Authorization: Token <token>``.
The daily endpoint returns split/dividend adjusted prices, which are the
ones mapped into the Quote; volume stays unadjusted.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timezone
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import ConfigError
from quotedl.core.models import Period, Quote
from quotedl.providers.base import (
    HttpProvider,
    date_param,
    decode_payload,
    ensure_ascending,
    require_symbol,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.tiingo.com"

_RESAMPLE_FREQ: dict[Period, str] = {
    Period.MIN1: "1min",
    Period.MIN3: "3min",
    Period.MIN5: "5min",
    Period.MIN15: "15min",
    Period.MIN30: "30min",
    Period.MIN60: "1hour",
    Period.HOUR2: "2hour",
    Period.HOUR4: "4hour",
    Period.HOUR6: "6hour",
    Period.HOUR8: "8hour",
    Period.HOUR12: "12hour",
    Period.DAILY: "1day",
}
_DEFAULT_RESAMPLE_FREQ = "1day"


# --- Wire shapes ---


class _DailyBar(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: datetime
    adj_open: float = Field(0.0, alias="adjOpen")
    adj_high: float = Field(0.0, alias="adjHigh")
    adj_low: float = Field(0.0, alias="adjLow")
    adj_close: float = Field(0.0, alias="adjClose")
    volume: float = 0.0


class _CryptoBar(BaseModel):
    date: datetime
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0


class _CryptoTicker(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticker: str = ""
    price_data: list[_CryptoBar] = Field(default_factory=list, alias="priceData")


_DAILY_SCHEMA = TypeAdapter(list[_DailyBar])
_CRYPTO_SCHEMA = TypeAdapter(list[_CryptoTicker])


# --- Adapters ---


class TiingoDailyAdapter:
    """Maps ``/tiingo/daily/<ticker>/prices`` JSON into a Quote."""

    def adapt(self, raw_data: Any, symbol: str) -> Quote:
        bars = decode_payload(_DAILY_SCHEMA, raw_data, "tiingo", symbol)
        quote = Quote.with_bars(symbol, len(bars))
        for i, bar in enumerate(bars):
            # only the calendar day is meaningful for end-of-day bars
            quote.date[i] = datetime.combine(
                bar.date.astimezone(timezone.utc).date(), time(), tzinfo=timezone.utc
            )
            quote.open[i] = bar.adj_open
            quote.high[i] = bar.adj_high
            quote.low[i] = bar.adj_low
            quote.close[i] = bar.adj_close
            quote.volume[i] = bar.volume
        return ensure_ascending(quote)


class TiingoCryptoAdapter:
    """Maps ``/tiingo/crypto/prices`` JSON into a Quote.

    The response is a list with one entry per requested ticker; only the
    first entry is used.
    """

    def adapt(self, raw_data: Any, symbol: str) -> Quote:
        tickers = decode_payload(_CRYPTO_SCHEMA, raw_data, "tiingo-crypto", symbol)
        if not tickers:
            logger.warning("tiingo crypto symbol '%s' no data returned", symbol)
            return Quote(symbol=symbol)

        bars = tickers[0].price_data
        quote = Quote.with_bars(symbol, len(bars))
        for i, bar in enumerate(bars):
            quote.date[i] = bar.date.astimezone(timezone.utc)
            quote.open[i] = bar.open
            quote.high[i] = bar.high
            quote.low[i] = bar.low
            quote.close[i] = bar.close
            quote.volume[i] = bar.volume
        return ensure_ascending(quote)


# --- Providers ---


class _TiingoProvider(HttpProvider):
    def __init__(
        self,
        token: str | None,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
    ) -> None:
        if not token:
            raise ConfigError(
                f"missing token for {self.name}, must be passed or TIINGO_API_TOKEN must be set",
                context={"field": "token", "value": None},
            )
        super().__init__(config, client)
        self._base_url = base_url
        self._auth = {"Authorization": f"Token {token}"}


class TiingoDailyProvider(_TiingoProvider):
    """End-of-day adjusted prices for stocks, ETFs and mutual funds.

    Only daily bars exist; any other period is served as daily.
    """

    name = "tiingo"

    def __init__(
        self,
        token: str | None,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
        adapter: TiingoDailyAdapter | None = None,
    ) -> None:
        super().__init__(token, config, client, base_url)
        self._adapter = adapter or TiingoDailyAdapter()

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        symbol = require_symbol(symbol)
        if period is not Period.DAILY:
            logger.debug("tiingo only serves daily bars, ignoring period %s", period)

        url = f"{self._base_url}/tiingo/daily/{symbol.replace('/', '-')}/prices"
        params = {"startDate": date_param(start), "endDate": date_param(end)}
        raw = self._get_json(url, symbol, params=params, headers=self._auth)
        if raw is None:
            return Quote(symbol=symbol)
        return self._adapter.adapt(raw, symbol)


class TiingoCryptoProvider(_TiingoProvider):
    """Crypto pairs at intraday or daily resolution (``btcusd``, ``ethbtc``...)."""

    name = "tiingo-crypto"

    def __init__(
        self,
        token: str | None,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        base_url: str = _BASE_URL,
        adapter: TiingoCryptoAdapter | None = None,
    ) -> None:
        super().__init__(token, config, client, base_url)
        self._adapter = adapter or TiingoCryptoAdapter()

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        symbol = require_symbol(symbol)
        params = {
            "tickers": symbol,
            "startDate": date_param(start),
            "endDate": date_param(end),
            "resampleFreq": _RESAMPLE_FREQ.get(period, _DEFAULT_RESAMPLE_FREQ),
        }
        raw = self._get_json(
            f"{self._base_url}/tiingo/crypto/prices",
            symbol,
            params=params,
            headers=self._auth,
        )
        if raw is None:
            return Quote(symbol=symbol)
        return self._adapter.adapt(raw, symbol)
