"""JSON encoding and decoding for quotes.

The JSON layout mirrors the model directly::

    {"symbol": "AAPL", "date": ["2021-01-04T00:00:00Z", ...],
     "open": [...], "high": [...], "low": [...], "close": [...], "volume": [...]}

A collection is a JSON array of such objects.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError

from quotedl.core.exceptions import ParseError
from quotedl.core.models import Quote, Quotes


def quote_to_json(quote: Quote, indent: bool = False) -> str:
    return quote.model_dump_json(indent=2 if indent else None)


def quotes_to_json(quotes: Quotes, indent: bool = False) -> str:
    return quotes.model_dump_json(indent=2 if indent else None)


def quote_from_json(text: str | bytes) -> Quote:
    """Parse a JSON object into a Quote.

    Raises:
        ParseError: If the text is not valid JSON or does not match the
            record layout (including mismatched sequence lengths).
    """
    try:
        return Quote.model_validate_json(text)
    except ValidationError as e:
        raise ParseError(
            f"Invalid quote JSON: {e.error_count()} error(s)",
            context={"reason": str(e)},
        ) from e


def quotes_from_json(text: str | bytes) -> Quotes:
    """Parse a JSON array into Quotes.

    Raises:
        ParseError: If the text is not a valid array of records.
    """
    try:
        return Quotes.model_validate_json(text)
    except ValidationError as e:
        raise ParseError(
            f"Invalid quotes JSON: {e.error_count()} error(s)",
            context={"reason": str(e)},
        ) from e


def quote_from_json_file(filepath: str | Path) -> Quote:
    return quote_from_json(Path(filepath).read_bytes())


def quotes_from_json_file(filepath: str | Path) -> Quotes:
    return quotes_from_json(Path(filepath).read_bytes())
