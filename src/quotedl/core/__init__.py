"""quotedl.core: foundation types, config, and exceptions."""

from quotedl.core.config import (
    HttpConfig,
    LogConfig,
    QuoteConfig,
    TiingoConfig,
    load_config,
)
from quotedl.core.exceptions import (
    ConfigError,
    FetchError,
    ParseError,
    QuoteError,
    UnknownMarketError,
)
from quotedl.core.models import (
    ZERO_TIME,
    Period,
    Quote,
    Quotes,
    date_range,
    parse_date_string,
    precision_for,
)

__all__ = [
    # Models
    "Period",
    "Quote",
    "Quotes",
    "ZERO_TIME",
    "date_range",
    "parse_date_string",
    "precision_for",
    # Config
    "QuoteConfig",
    "HttpConfig",
    "TiingoConfig",
    "LogConfig",
    "load_config",
    # Exceptions
    "QuoteError",
    "ConfigError",
    "UnknownMarketError",
    "FetchError",
    "ParseError",
]
