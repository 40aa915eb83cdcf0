"""Market symbol list downloads."""

from quotedl.markets.ftp import fetch_anonymous_ftp
from quotedl.markets.lists import (
    VALID_MARKETS,
    MarketClient,
    is_market,
    validate_market,
    write_market_file,
)

__all__ = [
    "VALID_MARKETS",
    "MarketClient",
    "fetch_anonymous_ftp",
    "is_market",
    "validate_market",
    "write_market_file",
]
