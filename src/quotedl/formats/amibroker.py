"""Amibroker-flavoured CSV (write-only): date and time in separate columns."""

from __future__ import annotations

from quotedl.core.models import Quote, Quotes
from quotedl.formats.csv_format import format_bar

QUOTE_HEADER = "date,time,open,high,low,close,volume"
QUOTES_HEADER = "symbol,date,time,open,high,low,close,volume"


def _stamp(quote: Quote, bar: int) -> str:
    when = quote.date[bar]
    return f"{when:%Y-%m-%d},{when:%H:%M}"


def quote_to_amibroker(quote: Quote) -> str:
    precision = quote.precision
    lines = [QUOTE_HEADER]
    for bar in range(len(quote)):
        lines.append(f"{_stamp(quote, bar)},{format_bar(quote, bar, precision)}")
    return "\n".join(lines) + "\n"


def quotes_to_amibroker(quotes: Quotes) -> str:
    lines = [QUOTES_HEADER]
    for quote in quotes:
        precision = quote.precision
        for bar in range(len(quote)):
            lines.append(
                f"{quote.symbol},{_stamp(quote, bar)},{format_bar(quote, bar, precision)}"
            )
    return "\n".join(lines) + "\n"
