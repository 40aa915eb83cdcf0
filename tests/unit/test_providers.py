"""Tests for the provider adapters and their HTTP plumbing."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
import respx

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import ConfigError, FetchError, ParseError
from quotedl.core.models import Period, Quote
from quotedl.providers.base import ensure_ascending, require_symbol
from quotedl.providers.coinbase import CoinbaseAdapter, CoinbaseProvider, granularity_for
from quotedl.providers.huobi import HuobiAdapter, HuobiProvider
from quotedl.providers.kraken import KrakenAdapter, KrakenProvider, interval_for
from quotedl.providers.tiingo import (
    TiingoCryptoAdapter,
    TiingoCryptoProvider,
    TiingoDailyAdapter,
    TiingoDailyProvider,
)

TIINGO_DAILY_URL = "https://api.tiingo.com/tiingo/daily/aapl/prices"
TIINGO_CRYPTO_URL = "https://api.tiingo.com/tiingo/crypto/prices"
COINBASE_URL = "https://api.exchange.coinbase.com/products/BTC-USD/candles"
KRAKEN_URL = "https://api.kraken.com/0/public/OHLC"
HUOBI_URL = "https://api.huobi.pro/market/history/kline"

DAY = 86400
JAN1 = 1609459200  # 2021-01-01 00:00 UTC


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def assert_well_formed(quote: Quote) -> None:
    n = len(quote.date)
    assert all(len(s) == n for s in (quote.open, quote.high, quote.low, quote.close, quote.volume))
    assert all(a <= b for a, b in zip(quote.date, quote.date[1:]))


# --- Shared helpers ---


class TestHelpers:
    def test_require_symbol_strips(self):
        assert require_symbol("  aapl ") == "aapl"

    def test_require_symbol_rejects_blank(self):
        with pytest.raises(ValueError, match="must not be empty"):
            require_symbol("   ")

    def test_ensure_ascending_keeps_sorted_record(self, aapl_quote):
        assert ensure_ascending(aapl_quote) is aapl_quote

    def test_ensure_ascending_reorders(self):
        quote = Quote(
            symbol="x",
            date=[utc(2021, 1, 3), utc(2021, 1, 1), utc(2021, 1, 2)],
            open=[3.0, 1.0, 2.0],
            high=[3.0, 1.0, 2.0],
            low=[3.0, 1.0, 2.0],
            close=[3.0, 1.0, 2.0],
            volume=[30.0, 10.0, 20.0],
        )
        ordered = ensure_ascending(quote)
        assert ordered.close == [1.0, 2.0, 3.0]
        assert ordered.volume == [10.0, 20.0, 30.0]
        assert_well_formed(ordered)

    def test_shared_client_is_not_closed(self, http_config):
        client = httpx.Client()
        with CoinbaseProvider(http_config, client=client):
            pass
        assert not client.is_closed
        client.close()


# --- Tiingo daily ---


@pytest.fixture
def tiingo_daily_json() -> list[dict]:
    return [
        {
            "date": "2021-01-04T00:00:00.000Z",
            "close": 129.41,
            "adjOpen": 131.0,
            "adjHigh": 131.1,
            "adjLow": 124.4,
            "adjClose": 127.0,
            "volume": 143301887,
        },
        {
            "date": "2021-01-05T00:00:00.000Z",
            "adjOpen": 126.5,
            "adjHigh": 129.3,
            "adjLow": 126.0,
            "adjClose": 128.6,
            "volume": 97664898,
        },
    ]


class TestTiingoDaily:
    def test_adapter_maps_adjusted_prices(self, tiingo_daily_json):
        quote = TiingoDailyAdapter().adapt(tiingo_daily_json, "aapl")
        assert quote.date == [utc(2021, 1, 4), utc(2021, 1, 5)]
        assert quote.open == [131.0, 126.5]
        assert quote.close == [127.0, 128.6]
        assert quote.volume == [143301887.0, 97664898.0]

    def test_adapter_keeps_calendar_day_only(self):
        raw = [{"date": "2021-01-04T21:00:00-05:00", "adjClose": 1.0}]
        quote = TiingoDailyAdapter().adapt(raw, "aapl")
        assert quote.date == [utc(2021, 1, 5)]

    def test_adapter_rejects_wrong_shape(self):
        with pytest.raises(ParseError):
            TiingoDailyAdapter().adapt({"detail": "Not found."}, "aapl")

    def test_requires_token(self):
        with pytest.raises(ConfigError, match="missing token"):
            TiingoDailyProvider(None)

    @respx.mock
    def test_get_quote(self, http_config, start, end, tiingo_daily_json):
        route = respx.get(TIINGO_DAILY_URL).mock(
            return_value=httpx.Response(200, json=tiingo_daily_json)
        )
        with TiingoDailyProvider("secret", http_config) as provider:
            quote = provider.get_quote("aapl", start, end)

        assert len(quote) == 2
        assert_well_formed(quote)
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Token secret"
        assert request.url.params["startDate"] == "2021-01-01"
        assert request.url.params["endDate"] == "2021-01-10"

    @respx.mock
    def test_non_daily_period_served_as_daily(self, http_config, start, end, tiingo_daily_json):
        respx.get(TIINGO_DAILY_URL).mock(return_value=httpx.Response(200, json=tiingo_daily_json))
        with TiingoDailyProvider("secret", http_config) as provider:
            assert len(provider.get_quote("aapl", start, end, Period.MIN5)) == 2

    @respx.mock
    def test_not_found_is_empty(self, http_config, start, end):
        respx.get(TIINGO_DAILY_URL).mock(return_value=httpx.Response(404))
        with TiingoDailyProvider("secret", http_config) as provider:
            quote = provider.get_quote("aapl", start, end)
        assert quote.symbol == "aapl"
        assert len(quote) == 0

    @respx.mock
    def test_server_error_raises(self, http_config, start, end):
        respx.get(TIINGO_DAILY_URL).mock(return_value=httpx.Response(500, text="oops"))
        with TiingoDailyProvider("secret", http_config) as provider:
            with pytest.raises(FetchError) as exc_info:
                provider.get_quote("aapl", start, end)
        assert exc_info.value.context["status_code"] == 500
        assert not isinstance(exc_info.value, ParseError)

    @respx.mock
    def test_connection_error_raises(self, http_config, start, end):
        respx.get(TIINGO_DAILY_URL).mock(side_effect=httpx.ConnectError("refused"))
        with TiingoDailyProvider("secret", http_config) as provider:
            with pytest.raises(FetchError, match="request failed"):
                provider.get_quote("aapl", start, end)

    @respx.mock
    def test_invalid_json_raises_parse_error(self, http_config, start, end):
        respx.get(TIINGO_DAILY_URL).mock(return_value=httpx.Response(200, text="<html>"))
        with TiingoDailyProvider("secret", http_config) as provider:
            with pytest.raises(ParseError):
                provider.get_quote("aapl", start, end)

    def test_blank_symbol_rejected(self, http_config, start, end):
        with TiingoDailyProvider("secret", http_config) as provider:
            with pytest.raises(ValueError):
                provider.get_quote(" ", start, end)


# --- Tiingo crypto ---


@pytest.fixture
def tiingo_crypto_json() -> list[dict]:
    return [
        {
            "ticker": "btcusd",
            "baseCurrency": "btc",
            "quoteCurrency": "usd",
            "priceData": [
                {
                    "date": "2021-01-01T01:00:00+00:00",
                    "open": 29000.5,
                    "high": 29100.0,
                    "low": 28900.0,
                    "close": 29050.25,
                    "volume": 12.5,
                },
                {
                    "date": "2021-01-01T00:00:00+00:00",
                    "open": 28923.6,
                    "high": 29010.0,
                    "low": 28800.0,
                    "close": 29000.5,
                    "volume": 10.0,
                },
            ],
        }
    ]


class TestTiingoCrypto:
    def test_adapter_restores_ascending_order(self, tiingo_crypto_json):
        quote = TiingoCryptoAdapter().adapt(tiingo_crypto_json, "btcusd")
        assert quote.date == [utc(2021, 1, 1, 0), utc(2021, 1, 1, 1)]
        assert quote.close == [29000.5, 29050.25]
        assert_well_formed(quote)

    def test_adapter_empty_response(self):
        assert len(TiingoCryptoAdapter().adapt([], "btcusd")) == 0

    @respx.mock
    def test_resample_frequency(self, http_config, start, end, tiingo_crypto_json):
        route = respx.get(TIINGO_CRYPTO_URL).mock(
            return_value=httpx.Response(200, json=tiingo_crypto_json)
        )
        with TiingoCryptoProvider("secret", http_config) as provider:
            provider.get_quote("btcusd", start, end, Period.MIN60)
            assert route.calls.last.request.url.params["resampleFreq"] == "1hour"
            assert route.calls.last.request.url.params["tickers"] == "btcusd"

            provider.get_quote("btcusd", start, end, Period.MONTHLY)
            assert route.calls.last.request.url.params["resampleFreq"] == "1day"


# --- Coinbase ---


def candle(ts: int, price: float) -> list[float]:
    # [time, low, high, open, close, volume]
    return [ts, price - 1, price + 1, price, price + 0.5, price * 10]


class TestCoinbase:
    def test_descending_page_becomes_ascending(self):
        raw = [candle(3, 30.0), candle(2, 20.0), candle(1, 10.0)]
        quote = CoinbaseAdapter().adapt(raw, "BTC-USD")
        assert quote.date == [
            datetime.fromtimestamp(1, tz=timezone.utc),
            datetime.fromtimestamp(2, tz=timezone.utc),
            datetime.fromtimestamp(3, tz=timezone.utc),
        ]
        assert quote.open == [10.0, 20.0, 30.0]
        assert quote.low == [9.0, 19.0, 29.0]
        assert quote.high == [11.0, 21.0, 31.0]
        assert quote.close == [10.5, 20.5, 30.5]
        assert quote.volume == [100.0, 200.0, 300.0]

    def test_adapter_rejects_short_candles(self):
        with pytest.raises(ParseError):
            CoinbaseAdapter().adapt([[1, 2, 3]], "BTC-USD")

    def test_granularity_falls_back_to_daily(self):
        assert granularity_for(Period.MIN15) == 900
        assert granularity_for(Period.HOUR4) == DAY

    @respx.mock
    def test_pages_through_range(self, start, end):
        page1 = [candle(JAN1 + d * DAY, 100.0 + d) for d in (3, 2, 1, 0)]
        page2 = [candle(JAN1 + d * DAY, 100.0 + d) for d in (9, 8, 7, 6, 5)]
        route = respx.get(COINBASE_URL).mock(
            side_effect=[httpx.Response(200, json=page1), httpx.Response(200, json=page2)]
        )
        pauses: list[float] = []
        provider = CoinbaseProvider(HttpConfig(page_delay=0.5), page_size=4, sleep=pauses.append)
        with provider:
            quote = provider.get_quote("BTC-USD", start, end)

        assert route.call_count == 2
        assert pauses == [0.5]
        first = route.calls[0].request.url.params
        assert first["start"] == "2021-01-01T00:00:00Z"
        assert first["end"] == "2021-01-05T00:00:00Z"
        assert first["granularity"] == str(DAY)
        assert route.calls[1].request.url.params["start"] == "2021-01-06T00:00:00Z"

        assert len(quote) == 9
        assert quote.open[0] == 100.0
        assert quote.open[-1] == 109.0
        assert_well_formed(quote)

    @respx.mock
    def test_malformed_page_is_skipped(self, start, end):
        good = [candle(JAN1 + d * DAY, 1.0) for d in (1, 0)]
        respx.get(COINBASE_URL).mock(
            side_effect=[httpx.Response(200, json=good), httpx.Response(200, json={"message": "x"})]
        )
        provider = CoinbaseProvider(HttpConfig(page_delay=0), page_size=4, sleep=lambda _: None)
        with provider:
            quote = provider.get_quote("BTC-USD", start, end)
        assert len(quote) == 2

    @respx.mock
    def test_non_json_page_keeps_earlier_pages(self, start, end):
        good = [candle(JAN1 + d * DAY, 1.0) for d in (1, 0)]
        route = respx.get(COINBASE_URL).mock(
            side_effect=[
                httpx.Response(200, json=good),
                httpx.Response(200, text="<html>busy</html>"),
            ]
        )
        provider = CoinbaseProvider(HttpConfig(page_delay=0), page_size=4, sleep=lambda _: None)
        with provider:
            quote = provider.get_quote("BTC-USD", start, end)
        assert route.call_count == 2
        assert len(quote) == 2
        assert quote.open == [1.0, 1.0]

    @respx.mock
    def test_unknown_product_is_empty(self, http_config, start, end):
        respx.get(COINBASE_URL).mock(return_value=httpx.Response(404, json={"message": "NotFound"}))
        with CoinbaseProvider(http_config, sleep=lambda _: None) as provider:
            assert len(provider.get_quote("BTC-USD", start, end)) == 0


# --- Kraken ---


@pytest.fixture
def kraken_json() -> dict:
    return {
        "error": [],
        "result": {
            "XXBTZUSD": [
                [JAN1, "28923.6", "29600.0", "28624.5", "29331.6", "29100.0", "1500.25", 41000],
                [JAN1 + DAY, "29331.7", "33300.0", "28946.5", "32178.3", "31000.0", "2300.5", 52000],
            ],
            "last": JAN1 + DAY,
        },
    }


class TestKraken:
    def test_adapter_decodes_string_prices(self, kraken_json):
        quote = KrakenAdapter().adapt(kraken_json, "XXBTZUSD")
        assert quote.date == [utc(2021, 1, 1), utc(2021, 1, 2)]
        assert quote.open == [28923.6, 29331.7]
        assert quote.close == [29331.6, 32178.3]
        assert quote.volume == [1500.25, 2300.5]
        assert_well_formed(quote)

    def test_adapter_uses_only_pair_when_name_differs(self, kraken_json):
        assert len(KrakenAdapter().adapt(kraken_json, "XBTUSD")) == 2

    def test_adapter_rejects_malformed_bar(self, kraken_json):
        kraken_json["result"]["XXBTZUSD"][0] = [JAN1, "not-a-number", "1", "1", "1", "1", "1", 1]
        with pytest.raises(ParseError):
            KrakenAdapter().adapt(kraken_json, "XXBTZUSD")

    def test_interval_falls_back_to_daily(self):
        assert interval_for(Period.MIN60) == "60"
        assert interval_for(Period.DAY3) == "1440"

    @respx.mock
    def test_get_quote(self, http_config, start, end, kraken_json):
        route = respx.get(KRAKEN_URL).mock(return_value=httpx.Response(200, json=kraken_json))
        with KrakenProvider(http_config) as provider:
            quote = provider.get_quote("XBTUSD", start, end, Period.WEEKLY)
        assert len(quote) == 2
        assert quote.symbol == "XBTUSD"
        params = route.calls.last.request.url.params
        assert params["pair"] == "XBTUSD"
        assert params["interval"] == "10080"

    @respx.mock
    def test_unknown_pair_is_empty(self, http_config, start, end):
        respx.get(KRAKEN_URL).mock(
            return_value=httpx.Response(200, json={"error": ["EQuery:Unknown asset pair"]})
        )
        with KrakenProvider(http_config) as provider:
            assert len(provider.get_quote("NOPE", start, end)) == 0

    @respx.mock
    def test_api_error_raises(self, http_config, start, end):
        respx.get(KRAKEN_URL).mock(
            return_value=httpx.Response(200, json={"error": ["EGeneral:Too many requests"]})
        )
        with KrakenProvider(http_config) as provider:
            with pytest.raises(FetchError, match="Too many requests"):
                provider.get_quote("XBTUSD", start, end)


# --- Huobi ---


@pytest.fixture
def huobi_json() -> dict:
    return {
        "status": "ok",
        "ch": "market.btcusdt.kline.1day",
        "data": [
            {"id": JAN1 + DAY, "open": 2.0, "close": 2.5, "low": 1.5, "high": 3.0, "amount": 1.0, "vol": 20.0, "count": 5},
            {"id": JAN1, "open": 1.0, "close": 1.5, "low": 0.5, "high": 2.0, "amount": 1.0, "vol": 10.0, "count": 4},
        ],
    }


class TestHuobi:
    def test_adapter_reverses_newest_first(self, huobi_json):
        quote = HuobiAdapter().adapt(huobi_json, "btcusdt")
        assert quote.date == [utc(2021, 1, 1), utc(2021, 1, 2)]
        assert quote.open == [1.0, 2.0]
        assert quote.volume == [10.0, 20.0]
        assert_well_formed(quote)

    @respx.mock
    def test_get_quote(self, http_config, start, end, huobi_json):
        route = respx.get(HUOBI_URL).mock(return_value=httpx.Response(200, json=huobi_json))
        with HuobiProvider(http_config) as provider:
            quote = provider.get_quote("btcusdt", start, end, Period.HOUR6)
        assert len(quote) == 2
        params = route.calls.last.request.url.params
        assert params["symbol"] == "btcusdt"
        assert params["period"] == "1day"

    @respx.mock
    def test_invalid_symbol_is_empty(self, http_config, start, end):
        respx.get(HUOBI_URL).mock(
            return_value=httpx.Response(
                200,
                json={"status": "error", "err-code": "invalid-parameter", "err-msg": "invalid symbol"},
            )
        )
        with HuobiProvider(http_config) as provider:
            assert len(provider.get_quote("nope", start, end)) == 0

    @respx.mock
    def test_api_error_raises(self, http_config, start, end):
        respx.get(HUOBI_URL).mock(
            return_value=httpx.Response(
                200,
                json={"status": "error", "err-code": "bad-request", "err-msg": "rate limited"},
            )
        )
        with HuobiProvider(http_config) as provider:
            with pytest.raises(FetchError, match="rate limited"):
                provider.get_quote("btcusdt", start, end)
