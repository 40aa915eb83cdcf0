"""Highstock chart format (write-only).

One record renders as an array of ``[epoch_millis,open,high,low,close,volume]``
rows, one row per line. A collection renders as an object keyed by symbol.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from quotedl.core.models import Quote, Quotes
from quotedl.formats.csv_format import format_bar

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def epoch_millis(value: datetime) -> int:
    return (value - _EPOCH) // _MILLISECOND


def _rows(quote: Quote) -> list[str]:
    precision = quote.precision
    rows = []
    last = len(quote) - 1
    for bar in range(len(quote)):
        comma = "" if bar == last else ","
        rows.append(
            f"[{epoch_millis(quote.date[bar])},{format_bar(quote, bar, precision)}]{comma}\n"
        )
    return rows


def quote_to_highstock(quote: Quote) -> str:
    return "[\n" + "".join(_rows(quote)) + "]\n"


def quotes_to_highstock(quotes: Quotes) -> str:
    parts = ["{"]
    last = len(quotes) - 1
    for index, quote in enumerate(quotes):
        parts.append(f'"{quote.symbol}":[\n')
        parts.extend(_rows(quote))
        parts.append("]\n" if index == last else "],\n")
    parts.append("}")
    return "".join(parts)
