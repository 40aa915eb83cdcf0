"""Market symbol lists.

A market is a named universe of symbols (an exchange, a market-cap bucket,
a sector, or the pairs an exchange trades against one quote currency).
Each list is one request followed by a source-specific parser::

    market name → URL → JSON (or FTP text) → parser → sorted lowercase symbols
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import ConfigError, FetchError, UnknownMarketError
from quotedl.markets.ftp import fetch_anonymous_ftp
from quotedl.providers.base import HttpProvider, decode_payload

logger = logging.getLogger(__name__)

_SCREENER_URL = "https://api.nasdaq.com/api/screener/stocks"
_NASDAQ100_URL = "https://api.nasdaq.com/api/quote/list-type/nasdaq100"
_TIINGO_CRYPTO_URL = "https://api.tiingo.com/tiingo/crypto"
_COINBASE_PRODUCTS_URL = "https://api.exchange.coinbase.com/products"
_KRAKEN_PAIRS_URL = "https://api.kraken.com/0/public/AssetPairs"
_HUOBI_SYMBOLS_URL = "https://api.huobi.pro/v1/common/symbols"

ETF_FTP_HOST = "ftp.nasdaqtrader.com"
ETF_FTP_DIRECTORY = "symboldirectory"
ETF_FTP_FILENAME = "otherlisted.txt"

# market name -> (screener query parameter, value)
_SCREENER_FILTERS: dict[str, tuple[str, str]] = {
    "nasdaq": ("exchange", "NASDAQ"),
    "amex": ("exchange", "AMEX"),
    "nyse": ("exchange", "NYSE"),
    "megacap": ("marketcap", "mega"),
    "largecap": ("marketcap", "large"),
    "midcap": ("marketcap", "mid"),
    "smallcap": ("marketcap", "small"),
    "microcap": ("marketcap", "micro"),
    "nanocap": ("marketcap", "nano"),
    "telecommunications": ("sector", "telecommunications"),
    "health_care": ("sector", "health_care"),
    "finance": ("sector", "finance"),
    "real_estate": ("sector", "real_estate"),
    "consumer_discretionary": ("sector", "consumer_discretionary"),
    "consumer_staples": ("sector", "consumer_staples"),
    "industrials": ("sector", "industrials"),
    "basic_materials": ("sector", "basic_materials"),
    "energy": ("sector", "energy"),
    "utilities": ("sector", "utilities"),
    "technology": ("sector", "technology"),
}

VALID_MARKETS: tuple[str, ...] = (
    "etf",
    "nasdaq",
    "nasdaq100",
    "amex",
    "nyse",
    "megacap",
    "largecap",
    "midcap",
    "smallcap",
    "microcap",
    "nanocap",
    "telecommunications",
    "health_care",
    "finance",
    "real_estate",
    "consumer_discretionary",
    "consumer_staples",
    "industrials",
    "basic_materials",
    "energy",
    "utilities",
    "technology",
    "tiingo-btc",
    "tiingo-eth",
    "tiingo-usd",
    "coinbase",
    "kraken",
    "huobi-btc",
    "huobi-eth",
    "huobi-usdt",
    "huobi-ht",
)

# Nasdaq rejects non-browser clients.
BROWSER_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:135.0) Gecko/20100101 Firefox/135.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.7; rv:135.0) Gecko/20100101 Firefox/135.0",
    "Mozilla/5.0 (X11; Linux i686; rv:135.0) Gecko/20100101 Firefox/135.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_7_4) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/18.3 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36 Edg/131.0.2903.86",
)


def validate_market(name: str, token: str | None = None) -> None:
    """Check a market name before anything is downloaded.

    Raises:
        UnknownMarketError: ``name`` is not one of VALID_MARKETS.
        ConfigError: A Tiingo market was requested without a token.
    """
    if name not in VALID_MARKETS:
        raise UnknownMarketError(
            f"invalid market '{name}'",
            context={"market": name},
        )
    if name.startswith("tiingo") and not token:
        raise ConfigError(
            f"market {name} requires TIINGO_API_TOKEN to be set",
            context={"field": "token", "value": None},
        )


def is_market(name: str) -> bool:
    return name in VALID_MARKETS


# --- Wire shapes ---


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _SymbolRow(_Lenient):
    symbol: str | None = None


class _Table(_Lenient):
    rows: list[_SymbolRow] | None = None


class _ScreenerResponse(_Lenient):
    data: _Table | None = None


class _Nasdaq100Data(_Lenient):
    data: _Table | None = None


class _Nasdaq100Response(_Lenient):
    data: _Nasdaq100Data | None = None


class _TiingoCryptoTicker(_Lenient):
    ticker: str = ""
    quote_currency: str | None = Field(default=None, alias="quoteCurrency")


class _CoinbaseProduct(_Lenient):
    id: str = ""
    trading_disabled: bool = False


class _KrakenPairs(_Lenient):
    error: list[str] = Field(default_factory=list)
    result: dict[str, Any] = Field(default_factory=dict)


class _HuobiSymbol(_Lenient):
    symbol: str = ""
    quote_currency: str = Field(default="", alias="quote-currency")


class _HuobiSymbols(_Lenient):
    status: str = ""
    data: list[_HuobiSymbol] = Field(default_factory=list)


_SCREENER_SCHEMA = TypeAdapter(_ScreenerResponse)
_NASDAQ100_SCHEMA = TypeAdapter(_Nasdaq100Response)
_TIINGO_SCHEMA = TypeAdapter(list[_TiingoCryptoTicker])
_COINBASE_SCHEMA = TypeAdapter(list[_CoinbaseProduct])
_KRAKEN_SCHEMA = TypeAdapter(_KrakenPairs)
_HUOBI_SCHEMA = TypeAdapter(_HuobiSymbols)


# --- Parsers ---


def _normalize(symbols: list[str]) -> list[str]:
    return sorted(s.strip().lower() for s in symbols if s.strip())


def parse_screener(raw: Any, market: str) -> list[str]:
    """``data.rows[].symbol`` from a Nasdaq screener response."""
    response = decode_payload(_SCREENER_SCHEMA, raw, "nasdaq", market)
    rows = response.data.rows if response.data and response.data.rows else []
    return _normalize([row.symbol or "" for row in rows])


def parse_nasdaq100(raw: Any, market: str) -> list[str]:
    """``data.data.rows[].symbol`` from the Nasdaq-100 list response."""
    response = decode_payload(_NASDAQ100_SCHEMA, raw, "nasdaq", market)
    table = response.data.data if response.data else None
    rows = table.rows if table and table.rows else []
    return _normalize([row.symbol or "" for row in rows])


def parse_tiingo_crypto(raw: Any, market: str) -> list[str]:
    """Tiingo crypto tickers quoted in the currency named by the market suffix."""
    currency = market.rsplit("-", 1)[-1]
    tickers = decode_payload(_TIINGO_SCHEMA, raw, "tiingo", market)
    return _normalize([t.ticker for t in tickers if (t.quote_currency or "").lower() == currency])


def parse_coinbase(raw: Any, market: str) -> list[str]:
    """Coinbase product ids, skipping products with trading disabled."""
    products = decode_payload(_COINBASE_SCHEMA, raw, "coinbase", market)
    return _normalize([p.id for p in products if not p.trading_disabled])


def parse_kraken(raw: Any, market: str) -> list[str]:
    """Kraken pair names (the keys of ``result``)."""
    response = decode_payload(_KRAKEN_SCHEMA, raw, "kraken", market)
    if response.error:
        raise FetchError(
            f"kraken API error for {market}: {', '.join(response.error)}",
            context={"symbol": market},
        )
    return _normalize(list(response.result))


def parse_huobi(raw: Any, market: str) -> list[str]:
    """Huobi symbols quoted in the currency named by the market suffix."""
    currency = market.rsplit("-", 1)[-1]
    response = decode_payload(_HUOBI_SCHEMA, raw, "huobi", market)
    return _normalize([s.symbol for s in response.data if s.quote_currency.lower() == currency])


def parse_etf_listing(text: str) -> list[str]:
    """ETF symbols from Nasdaq Trader's pipe-delimited ``otherlisted.txt``.

    Columns: ``ACT Symbol|Security Name|Exchange|CQS Symbol|ETF|Round Lot
    Size|Test Issue|NASDAQ Symbol``. Rows are kept when ETF is ``Y`` and
    Test Issue is ``N``.
    """
    symbols = []
    for line in text.splitlines():
        cols = line.split("|")
        if len(cols) > 6 and cols[4] == "Y" and cols[6] == "N":
            symbols.append(cols[0])
    return _normalize(symbols)


class MarketClient(HttpProvider):
    """Downloads market symbol lists.

    Parameters
    ----------
    config : HttpConfig | None
        Timeout and default user agent.
    client : httpx.Client | None
        Shared HTTP client.
    token : str | None
        Tiingo API token, required only for ``tiingo-*`` markets.
    """

    name = "markets"

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
        token: str | None = None,
    ) -> None:
        super().__init__(config, client)
        self._token = token

    def get_market_list(self, name: str) -> list[str]:
        """Return the sorted lowercase symbols of market ``name``.

        Raises:
            UnknownMarketError: Unknown market name.
            ConfigError: Tiingo market without a token.
            FetchError: The list could not be downloaded.
            ParseError: The list response had an unexpected shape.
        """
        validate_market(name, self._token)
        if name == "etf":
            symbols = self._etf_list()
        else:
            symbols = self._http_list(name)
        logger.info("market %s: %d symbols", name, len(symbols))
        return symbols

    def _etf_list(self) -> list[str]:
        data = fetch_anonymous_ftp(ETF_FTP_HOST, ETF_FTP_DIRECTORY, ETF_FTP_FILENAME)
        return parse_etf_listing(data.decode("utf-8", errors="replace"))

    def _http_list(self, name: str) -> list[str]:
        if name in _SCREENER_FILTERS or name == "nasdaq100":
            headers = {
                "User-Agent": random.choice(BROWSER_USER_AGENTS),
                "Accept": "application/json",
            }
            if name == "nasdaq100":
                raw = self._fetch(_NASDAQ100_URL, name, headers=headers)
                return parse_nasdaq100(raw, name)
            key, value = _SCREENER_FILTERS[name]
            params = {"tableonly": "true", "offset": 0, "download": "true", key: value}
            raw = self._fetch(_SCREENER_URL, name, params=params, headers=headers)
            return parse_screener(raw, name)

        if name.startswith("tiingo"):
            headers = {"Authorization": f"Token {self._token}", "Accept": "application/json"}
            return parse_tiingo_crypto(self._fetch(_TIINGO_CRYPTO_URL, name, headers=headers), name)
        if name == "coinbase":
            return parse_coinbase(self._fetch(_COINBASE_PRODUCTS_URL, name), name)
        if name == "kraken":
            return parse_kraken(self._fetch(_KRAKEN_PAIRS_URL, name), name)
        return parse_huobi(self._fetch(_HUOBI_SYMBOLS_URL, name), name)

    def _fetch(
        self,
        url: str,
        name: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        raw = self._get_json(url, name, params=params, headers=headers)
        if raw is None:
            raise FetchError(f"market list {name} not found at {url}", context={"url": url})
        return raw


def write_market_file(name: str, symbols: list[str], filename: str | Path | None = None) -> Path:
    """Write one symbol per line to ``filename`` (default ``<market>.txt``)."""
    path = Path(filename) if filename else Path(f"{name}.txt")
    path.write_text("\n".join(symbols), encoding="utf-8")
    logger.info("wrote %d %s symbols to %s", len(symbols), name, path)
    return path
