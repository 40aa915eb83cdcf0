"""Custom exception hierarchy for quotedl."""

from typing import Any


class QuoteError(Exception):
    """Base exception for all quotedl errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(QuoteError):
    """Invalid or missing configuration.

    Raised before any network activity: unsupported source/period
    combinations, missing credentials, conflicting output flags, or an
    unreadable config file. The CLI reports it with the usage text.

    Context keys:
        field (str): the setting that failed validation
        value (Any): the invalid value (redacted for secrets)
    """


class UnknownMarketError(ConfigError):
    """A market name that has no symbol list endpoint.

    Context keys:
        market (str): the rejected market name
    """


class FetchError(QuoteError):
    """Failed to download data from a provider.

    Policy: log and skip the symbol or market. Do not abort the batch.

    Context keys:
        symbol (str): the symbol being fetched, if any
        url (str): the URL that was being fetched
        status_code (int | None): HTTP status when the server answered
    """


class ParseError(FetchError):
    """A provider answered with a payload that does not match its wire shape.

    Policy: same as FetchError. The affected symbol yields no data.

    Context keys:
        symbol (str): the symbol being parsed
        reason (str): what was wrong with the payload
    """
