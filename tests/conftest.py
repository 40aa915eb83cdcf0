"""Shared pytest fixtures for quotedl."""

import os
from datetime import datetime, timezone

import pytest

from quotedl.core.config import HttpConfig, QuoteConfig
from quotedl.core.models import Quote, Quotes


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's Tiingo token and quotedl settings out of tests."""
    monkeypatch.delenv("TIINGO_API_TOKEN", raising=False)
    for key in list(os.environ):
        if key.startswith("QUOTEDL_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def http_config() -> HttpConfig:
    return HttpConfig(timeout=5.0, page_delay=0.0)


@pytest.fixture
def quote_config(http_config: HttpConfig) -> QuoteConfig:
    return QuoteConfig(delay_ms=0, http=http_config)


@pytest.fixture
def start() -> datetime:
    return datetime(2021, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def end() -> datetime:
    return datetime(2021, 1, 10, tzinfo=timezone.utc)


@pytest.fixture
def aapl_quote() -> Quote:
    return Quote(
        symbol="AAPL",
        date=[
            datetime(2021, 1, 4, tzinfo=timezone.utc),
            datetime(2021, 1, 5, tzinfo=timezone.utc),
        ],
        open=[133.52, 128.89],
        high=[133.61, 131.74],
        low=[126.76, 128.43],
        close=[129.41, 131.01],
        volume=[143301900.0, 97664900.0],
    )


@pytest.fixture
def btc_quote() -> Quote:
    return Quote(
        symbol="BTC-USD",
        date=[datetime(2021, 1, 1, 12, 30, tzinfo=timezone.utc)],
        open=[28923.63],
        high=[29600.0],
        low=[28624.57],
        close=[29331.69],
        volume=[11.123456789],
    )


@pytest.fixture
def sample_quotes(aapl_quote: Quote, btc_quote: Quote) -> Quotes:
    return Quotes([aapl_quote, btc_quote])
