"""Source names, their request validation, and provider construction."""

from __future__ import annotations

from enum import StrEnum

import httpx

from quotedl.core.config import QuoteConfig
from quotedl.core.exceptions import ConfigError
from quotedl.core.models import Period
from quotedl.providers.base import HttpProvider
from quotedl.providers.coinbase import CoinbaseProvider
from quotedl.providers.huobi import HuobiProvider
from quotedl.providers.kraken import KrakenProvider
from quotedl.providers.tiingo import TiingoCryptoProvider, TiingoDailyProvider


class Source(StrEnum):
    """Data providers, named by their command-line spelling."""

    TIINGO = "tiingo"
    TIINGO_CRYPTO = "tiingo-crypto"
    COINBASE = "coinbase"
    KRAKEN = "kraken"
    HUOBI = "huobi"

    @property
    def needs_token(self) -> bool:
        return self in (Source.TIINGO, Source.TIINGO_CRYPTO)


TIINGO_CRYPTO_PERIODS = frozenset(
    {
        Period.MIN1,
        Period.MIN3,
        Period.MIN5,
        Period.MIN15,
        Period.MIN30,
        Period.MIN60,
        Period.HOUR2,
        Period.HOUR4,
        Period.HOUR6,
        Period.HOUR8,
        Period.HOUR12,
        Period.DAILY,
    }
)
_TIINGO_CRYPTO_NAMES = frozenset(p.value for p in TIINGO_CRYPTO_PERIODS)


def check_source(source: Source, period: Period | str, token: str | None) -> None:
    """Reject source/period/token combinations before any request is made.

    ``period`` is compared as spelled on the command line, so aliases such
    as ``1d`` and unknown strings are rejected for the Tiingo sources even
    though ``Period.parse`` would map them to daily. Coinbase, Kraken and
    Huobi accept any period and fall back to daily for the ones they do not
    support.

    Raises:
        ConfigError: Tiingo with a non-daily period, Tiingo crypto with an
            unsupported period, or a Tiingo source without a token.
    """
    if source is Source.TIINGO and period != Period.DAILY.value:
        raise ConfigError(
            "invalid period for tiingo, must be 'd'",
            context={"field": "period", "value": str(period)},
        )
    if source is Source.TIINGO_CRYPTO and str(period) not in _TIINGO_CRYPTO_NAMES:
        allowed = ", ".join(f"'{p}'" for p in sorted(TIINGO_CRYPTO_PERIODS, key=lambda p: p.seconds))
        raise ConfigError(
            f"invalid period for tiingo-crypto, must be one of {allowed}",
            context={"field": "period", "value": str(period)},
        )
    if source.needs_token and not token:
        raise ConfigError(
            f"missing token for {source}, must be passed or TIINGO_API_TOKEN must be set",
            context={"field": "token", "value": None},
        )


def create_provider(
    source: Source,
    config: QuoteConfig,
    client: httpx.Client | None = None,
    token: str | None = None,
) -> HttpProvider:
    """Build the provider for ``source``.

    ``token`` overrides the configured Tiingo token.
    """
    token = token or config.tiingo_token
    if source is Source.TIINGO:
        return TiingoDailyProvider(token, config.http, client)
    if source is Source.TIINGO_CRYPTO:
        return TiingoCryptoProvider(token, config.http, client)
    if source is Source.COINBASE:
        return CoinbaseProvider(config.http, client)
    if source is Source.KRAKEN:
        return KrakenProvider(config.http, client)
    return HuobiProvider(config.http, client)
