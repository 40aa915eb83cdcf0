"""CSV encoding and decoding for quotes.

Single record layout::

    datetime,open,high,low,close,volume
    2021-01-04 00:00,1.00,2.00,0.50,1.50,100.00

Collections prefix every row with the symbol. Parsing is lenient:
unparseable numbers become 0.0 and unparseable dates become the zero time.
The first row with the wrong number of columns ends the parse without
raising.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from quotedl.core.models import DATETIME_FORMAT, ZERO_TIME, Quote, Quotes

logger = logging.getLogger(__name__)

QUOTE_HEADER = "datetime,open,high,low,close,volume"
QUOTES_HEADER = "symbol,datetime,open,high,low,close,volume"


def format_bar(quote: Quote, bar: int, precision: int) -> str:
    """Format the five numeric fields of one bar as comma-separated text."""
    return ",".join(
        f"{series[bar]:.{precision}f}"
        for series in (quote.open, quote.high, quote.low, quote.close, quote.volume)
    )


def quote_to_csv(quote: Quote) -> str:
    precision = quote.precision
    lines = [QUOTE_HEADER]
    for bar in range(len(quote)):
        stamp = quote.date[bar].strftime(DATETIME_FORMAT)
        lines.append(f"{stamp},{format_bar(quote, bar, precision)}")
    return "\n".join(lines) + "\n"


def quotes_to_csv(quotes: Quotes) -> str:
    lines = [QUOTES_HEADER]
    for quote in quotes:
        precision = quote.precision
        for bar in range(len(quote)):
            stamp = quote.date[bar].strftime(DATETIME_FORMAT)
            lines.append(f"{quote.symbol},{stamp},{format_bar(quote, bar, precision)}")
    return "\n".join(lines) + "\n"


def _parse_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return 0.0


def _parse_datetime(text: str, date_format: str) -> datetime:
    try:
        return datetime.strptime(text, date_format).replace(tzinfo=timezone.utc)
    except ValueError:
        return ZERO_TIME


def _fill_bar(quote: Quote, bar: int, fields: list[str], date_format: str) -> None:
    quote.date[bar] = _parse_datetime(fields[0], date_format)
    quote.open[bar] = _parse_float(fields[1])
    quote.high[bar] = _parse_float(fields[2])
    quote.low[bar] = _parse_float(fields[3])
    quote.close[bar] = _parse_float(fields[4])
    quote.volume[bar] = _parse_float(fields[5])


def _data_rows(text: str, columns: int) -> list[list[str]]:
    """Split the body (after the header) into rows, stopping at the first bad one."""
    rows: list[list[str]] = []
    for line in text.split("\n")[1:]:
        fields = line.rstrip("\r").split(",")
        if len(fields) != columns:
            if line.strip():
                logger.debug("CSV parse stopped at malformed row: %r", line)
            break
        rows.append(fields)
    return rows


def quote_from_csv(symbol: str, text: str, date_format: str = DATETIME_FORMAT) -> Quote:
    """Parse single-record CSV text into a Quote.

    Args:
        symbol: Symbol to assign to the record.
        text: CSV text including the header row.
        date_format: strptime format of the first column.

    Returns:
        A Quote holding every row up to the first malformed one.
    """
    rows = _data_rows(text, 6)
    quote = Quote.with_bars(symbol, len(rows))
    for bar, fields in enumerate(rows):
        _fill_bar(quote, bar, fields, date_format)
    return quote


def quotes_from_csv(text: str, date_format: str = DATETIME_FORMAT) -> Quotes:
    """Parse collection CSV text into Quotes.

    Rows for one symbol need not be contiguous. A first pass counts rows per
    symbol so each record can be allocated at its final size; the second
    pass fills them in file order. Records appear in order of each symbol's
    first row, and repeated symbols coalesce into one record.
    """
    rows = _data_rows(text, 7)

    counts: dict[str, int] = {}
    for fields in rows:
        counts[fields[0]] = counts.get(fields[0], 0) + 1

    records = {symbol: Quote.with_bars(symbol, n) for symbol, n in counts.items()}
    cursor = dict.fromkeys(counts, 0)
    for fields in rows:
        symbol = fields[0]
        _fill_bar(records[symbol], cursor[symbol], fields[1:], date_format)
        cursor[symbol] += 1

    return Quotes(list(records.values()))


def quote_from_csv_file(
    symbol: str, filepath: str | Path, date_format: str = DATETIME_FORMAT
) -> Quote:
    """Load a single-record CSV file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {filepath}")
    return quote_from_csv(symbol, path.read_text(encoding="utf-8"), date_format)


def quotes_from_csv_file(filepath: str | Path, date_format: str = DATETIME_FORMAT) -> Quotes:
    """Load a collection CSV file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {filepath}")
    return quotes_from_csv(path.read_text(encoding="utf-8"), date_format)
