"""Format dispatch and file output."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from quotedl.core.models import Quote, Quotes
from quotedl.formats.amibroker import quote_to_amibroker, quotes_to_amibroker
from quotedl.formats.csv_format import quote_to_csv, quotes_to_csv
from quotedl.formats.highstock import quote_to_highstock, quotes_to_highstock
from quotedl.formats.json_format import quote_to_json, quotes_to_json

logger = logging.getLogger(__name__)


class OutputFormat(StrEnum):
    """Supported output formats, named by their command-line spelling."""

    CSV = "csv"
    JSON = "json"
    HIGHSTOCK = "hs"
    AMIBROKER = "ami"

    @property
    def extension(self) -> str:
        if self in (OutputFormat.JSON, OutputFormat.HIGHSTOCK):
            return ".json"
        return ".csv"


def default_filename(fmt: OutputFormat, symbol: str | None = None) -> str:
    """Filename used when the caller gives none.

    ``<symbol>.csv``/``<symbol>.json`` for a named record, ``quote.*`` for
    an unnamed one and ``quotes.*`` for a collection (``symbol=None``).
    """
    if symbol is None:
        return "quotes" + fmt.extension
    return (symbol or "quote") + fmt.extension


def render_quote(quote: Quote, fmt: OutputFormat, indent: bool = False) -> str:
    if fmt is OutputFormat.CSV:
        return quote_to_csv(quote)
    if fmt is OutputFormat.JSON:
        return quote_to_json(quote, indent)
    if fmt is OutputFormat.HIGHSTOCK:
        return quote_to_highstock(quote)
    return quote_to_amibroker(quote)


def render_quotes(quotes: Quotes, fmt: OutputFormat, indent: bool = False) -> str:
    if fmt is OutputFormat.CSV:
        return quotes_to_csv(quotes)
    if fmt is OutputFormat.JSON:
        return quotes_to_json(quotes, indent)
    if fmt is OutputFormat.HIGHSTOCK:
        return quotes_to_highstock(quotes)
    return quotes_to_amibroker(quotes)


def write_quote(
    quote: Quote,
    fmt: OutputFormat = OutputFormat.CSV,
    filename: str | Path | None = None,
    indent: bool = False,
) -> Path:
    """Write one record to ``filename`` (or its default name) and return the path."""
    path = Path(filename or default_filename(fmt, quote.symbol))
    path.write_text(render_quote(quote, fmt, indent), encoding="utf-8")
    logger.debug("Wrote %d bars for %s to %s", len(quote), quote.symbol, path)
    return path


def write_quotes(
    quotes: Quotes,
    fmt: OutputFormat = OutputFormat.CSV,
    filename: str | Path | None = None,
    indent: bool = False,
) -> Path:
    """Write a collection to one file and return the path."""
    path = Path(filename or default_filename(fmt))
    path.write_text(render_quotes(quotes, fmt, indent), encoding="utf-8")
    logger.debug("Wrote %d symbols to %s", len(quotes), path)
    return path
