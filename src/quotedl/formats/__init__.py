"""Serializers for Quote and Quotes.

- CSV and JSON are two-way (writers and parsers).
- Highstock and Amibroker are write-only.
- ``write_quote``/``write_quotes`` pick the encoder from an ``OutputFormat``
  and fall back to a default filename derived from the symbol.
"""

from quotedl.formats.amibroker import quote_to_amibroker, quotes_to_amibroker
from quotedl.formats.csv_format import (
    quote_from_csv,
    quote_from_csv_file,
    quote_to_csv,
    quotes_from_csv,
    quotes_from_csv_file,
    quotes_to_csv,
)
from quotedl.formats.highstock import quote_to_highstock, quotes_to_highstock
from quotedl.formats.json_format import (
    quote_from_json,
    quote_from_json_file,
    quote_to_json,
    quotes_from_json,
    quotes_from_json_file,
    quotes_to_json,
)
from quotedl.formats.writer import (
    OutputFormat,
    default_filename,
    render_quote,
    render_quotes,
    write_quote,
    write_quotes,
)

__all__ = [
    # CSV
    "quote_to_csv",
    "quotes_to_csv",
    "quote_from_csv",
    "quotes_from_csv",
    "quote_from_csv_file",
    "quotes_from_csv_file",
    # JSON
    "quote_to_json",
    "quotes_to_json",
    "quote_from_json",
    "quotes_from_json",
    "quote_from_json_file",
    "quotes_from_json_file",
    # Write-only
    "quote_to_highstock",
    "quotes_to_highstock",
    "quote_to_amibroker",
    "quotes_to_amibroker",
    # Output
    "OutputFormat",
    "default_filename",
    "render_quote",
    "render_quotes",
    "write_quote",
    "write_quotes",
]
