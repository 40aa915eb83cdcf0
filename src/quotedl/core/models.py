"""Pydantic data models: the OHLCV record every provider and format shares."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from enum import StrEnum

from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

# --- Constants ---

# Placeholder timestamp for pre-sized records and unparseable dates.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

DATETIME_FORMAT = "%Y-%m-%d %H:%M"
_DATE_TEMPLATE = "0000-01-01 00:00"

_CRYPTO_MARKERS = ("BTC", "ETH", "USD")

# --- Enumerations ---

_PERIOD_ALIASES = {"1d": "d", "1w": "w", "1M": "m"}

_PERIOD_SECONDS = {
    "1m": 60,
    "3m": 3 * 60,
    "5m": 5 * 60,
    "15m": 15 * 60,
    "30m": 30 * 60,
    "1h": 60 * 60,
    "2h": 2 * 60 * 60,
    "4h": 4 * 60 * 60,
    "6h": 6 * 60 * 60,
    "8h": 8 * 60 * 60,
    "12h": 12 * 60 * 60,
    "d": 24 * 60 * 60,
    "3d": 3 * 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
    "m": 30 * 24 * 60 * 60,
}


class Period(StrEnum):
    """Bar granularities, named by their command-line spelling."""

    MIN1 = "1m"
    MIN3 = "3m"
    MIN5 = "5m"
    MIN15 = "15m"
    MIN30 = "30m"
    MIN60 = "1h"
    HOUR2 = "2h"
    HOUR4 = "4h"
    HOUR6 = "6h"
    HOUR8 = "8h"
    HOUR12 = "12h"
    DAILY = "d"
    DAY3 = "3d"
    WEEKLY = "w"
    MONTHLY = "m"

    @classmethod
    def parse(cls, text: str) -> Period:
        """Resolve a period string, falling back to DAILY when unknown."""
        text = _PERIOD_ALIASES.get(text, text)
        try:
            return cls(text)
        except ValueError:
            return cls.DAILY

    @property
    def seconds(self) -> int:
        """Length of one bar in seconds (a month counts as 30 days)."""
        return _PERIOD_SECONDS[self.value]


# --- Helpers ---


def precision_for(symbol: str) -> int:
    """Decimal places used when formatting prices for ``symbol``.

    Crypto-like symbols (anything mentioning BTC, ETH or USD) get 8 places,
    everything else gets 2.
    """
    upper = symbol.upper()
    if any(marker in upper for marker in _CRYPTO_MARKERS):
        return 8
    return 2


def parse_date_string(text: str) -> datetime:
    """Parse a possibly partial ``yyyy[-mm[-dd[ hh:mm]]]`` string as UTC.

    Missing trailing components are taken from ``0000-01-01 00:00``, so
    ``"2021"`` means 2021-01-01 00:00. An empty string means now.

    Raises:
        ValueError: If the padded string is not a valid date.
    """
    text = text.strip()
    if not text:
        return datetime.now(timezone.utc)
    padded = text + _DATE_TEMPLATE[len(text):]
    return datetime.strptime(padded, DATETIME_FORMAT).replace(tzinfo=timezone.utc)


def date_range(start: str, end: str, years: int) -> tuple[datetime, datetime]:
    """Resolve the download window from CLI-style start/end/years inputs."""
    to = parse_date_string(end)
    if start:
        return parse_date_string(start), to
    return to - timedelta(days=365 * years), to


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# --- Records ---


class Quote(BaseModel):
    """Price history for one symbol as parallel OHLCV sequences.

    Bars are in ascending chronological order and every sequence has the
    same length as ``date``. Records are built in one pass by an adapter or
    parser; use ``with_bars`` to allocate a pre-sized record that can be
    filled by index.
    """

    symbol: str = ""
    date: list[datetime] = Field(default_factory=list)
    open: list[float] = Field(default_factory=list)
    high: list[float] = Field(default_factory=list)
    low: list[float] = Field(default_factory=list)
    close: list[float] = Field(default_factory=list)
    volume: list[float] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def dates_to_utc(cls, v: list[datetime]) -> list[datetime]:
        return [_as_utc(d) for d in v]

    @model_validator(mode="after")
    def sequences_aligned(self) -> Quote:
        lengths = {
            name: len(getattr(self, name))
            for name in ("date", "open", "high", "low", "close", "volume")
        }
        if len(set(lengths.values())) > 1:
            raise ValueError(f"OHLCV sequences must have equal length, got {lengths}")
        return self

    @classmethod
    def with_bars(cls, symbol: str, bars: int) -> Quote:
        """Allocate a record with ``bars`` zeroed slots in every sequence."""
        return cls(
            symbol=symbol,
            date=[ZERO_TIME] * bars,
            open=[0.0] * bars,
            high=[0.0] * bars,
            low=[0.0] * bars,
            close=[0.0] * bars,
            volume=[0.0] * bars,
        )

    @property
    def precision(self) -> int:
        return precision_for(self.symbol)

    def __len__(self) -> int:
        return len(self.date)

    def extend(self, other: Quote) -> None:
        """Append another record's bars (used to join paged downloads)."""
        self.date.extend(other.date)
        self.open.extend(other.open)
        self.high.extend(other.high)
        self.low.extend(other.low)
        self.close.extend(other.close)
        self.volume.extend(other.volume)


class Quotes(RootModel[list[Quote]]):
    """Ordered collection of records, one per symbol in insertion order."""

    root: list[Quote] = Field(default_factory=list)

    def __iter__(self) -> Iterator[Quote]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Quote:
        return self.root[index]

    def append(self, quote: Quote) -> None:
        self.root.append(quote)

    @property
    def symbols(self) -> list[str]:
        return [q.symbol for q in self.root]
