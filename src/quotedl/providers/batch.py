"""Sequential multi-symbol download."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime

from quotedl.core.exceptions import QuoteError
from quotedl.core.models import Period, Quotes
from quotedl.providers.base import QuoteProvider

logger = logging.getLogger(__name__)


def fetch_all(
    provider: QuoteProvider,
    symbols: Iterable[str],
    start: datetime,
    end: datetime,
    period: Period = Period.DAILY,
    delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
    on_symbol: Callable[[str], None] | None = None,
) -> Quotes:
    """Download every symbol in order and collect the results.

    A symbol whose download fails is logged and left out; the batch itself
    never fails because of individual symbols. ``delay`` seconds are slept
    after every request to throttle the request rate.

    Args:
        provider: Provider used for each symbol.
        symbols: Symbols in the order they should appear in the result.
        start: First bar time.
        end: Last bar time.
        period: Bar size.
        delay: Seconds between requests.
        sleep: Sleep function (replaceable in tests).
        on_symbol: Called with each symbol after it has been attempted.

    Returns:
        One Quote per successfully downloaded symbol.
    """
    quotes = Quotes()
    for symbol in symbols:
        try:
            quotes.append(provider.get_quote(symbol, start, end, period))
        except (QuoteError, ValueError) as e:
            logger.error("error downloading %s: %s", symbol, e)
        if on_symbol is not None:
            on_symbol(symbol)
        sleep(delay)
    logger.info("downloaded %d of %s symbols", len(quotes), _count(symbols))
    return quotes


def _count(symbols: Iterable[str]) -> int | str:
    try:
        return len(symbols)  # type: ignore[arg-type]
    except TypeError:
        return "?"
