"""Quote providers: one adapter/provider pair per data source."""

from quotedl.providers.base import HttpProvider, QuoteAdapter, QuoteProvider
from quotedl.providers.batch import fetch_all
from quotedl.providers.coinbase import CoinbaseAdapter, CoinbaseProvider
from quotedl.providers.huobi import HuobiAdapter, HuobiProvider
from quotedl.providers.kraken import KrakenAdapter, KrakenProvider
from quotedl.providers.registry import Source, check_source, create_provider
from quotedl.providers.tiingo import (
    TiingoCryptoAdapter,
    TiingoCryptoProvider,
    TiingoDailyAdapter,
    TiingoDailyProvider,
)

__all__ = [
    # Protocols
    "QuoteAdapter",
    "QuoteProvider",
    "HttpProvider",
    # Sources
    "TiingoDailyAdapter",
    "TiingoDailyProvider",
    "TiingoCryptoAdapter",
    "TiingoCryptoProvider",
    "CoinbaseAdapter",
    "CoinbaseProvider",
    "KrakenAdapter",
    "KrakenProvider",
    "HuobiAdapter",
    "HuobiProvider",
    # Registry
    "Source",
    "check_source",
    "create_provider",
    "fetch_all",
]
