"""Provider and adapter protocols plus the shared HTTP plumbing.

Architecture
------------
Each data source is split in two:

    HTTP response → QuoteAdapter → Quote → QuoteProvider → caller

- **QuoteAdapter** maps one provider's wire shape (decoded through private
  pydantic models local to the provider module) into the canonical
  ``Quote``, restoring ascending date order when the provider sends bars
  newest first.

- **QuoteProvider** owns the HTTP request(s) for one symbol and hands the
  decoded payload to its adapter. Provider field names never leave the
  provider module.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx
from pydantic import TypeAdapter, ValidationError

from quotedl.core.config import HttpConfig
from quotedl.core.exceptions import FetchError, ParseError
from quotedl.core.models import Period, Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class QuoteAdapter(Protocol):
    """Transforms a decoded provider payload into a Quote.

    Returns
    -------
    Quote
        Bars sorted by date ascending.
    """

    def adapt(self, raw_data: Any, symbol: str) -> Quote: ...


@runtime_checkable
class QuoteProvider(Protocol):
    """Consumer-facing interface for downloading one symbol's history."""

    name: str

    def get_quote(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        period: Period = Period.DAILY,
    ) -> Quote:
        """Fetch bars for ``symbol`` between ``start`` and ``end``.

        Returns an empty Quote when the provider does not know the symbol.

        Raises
        ------
        FetchError
            Transport failure or non-success HTTP status.
        ParseError
            The provider answered with an unexpected payload.
        """
        ...


def require_symbol(symbol: str) -> str:
    """Return the stripped symbol, rejecting empty input."""
    cleaned = symbol.strip()
    if not cleaned:
        raise ValueError("symbol must not be empty")
    return cleaned


def date_param(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def ensure_ascending(quote: Quote) -> Quote:
    """Return ``quote`` with bars in ascending date order.

    Providers documented as oldest-first pass through untouched; anything
    else is reordered by a stable sort on the timestamps.
    """
    dates = quote.date
    if all(a <= b for a, b in zip(dates, dates[1:])):
        return quote
    order = sorted(range(len(dates)), key=dates.__getitem__)
    return Quote(
        symbol=quote.symbol,
        date=[dates[i] for i in order],
        open=[quote.open[i] for i in order],
        high=[quote.high[i] for i in order],
        low=[quote.low[i] for i in order],
        close=[quote.close[i] for i in order],
        volume=[quote.volume[i] for i in order],
    )


def decode_payload(schema: TypeAdapter[T], raw: Any, source: str, symbol: str) -> T:
    """Validate a decoded JSON payload against a provider's private wire schema.

    Raises:
        ParseError: If the payload does not have the expected shape.
    """
    try:
        return schema.validate_python(raw)
    except ValidationError as e:
        logger.error("%s payload for %s has unexpected shape: %s", source, symbol, e)
        raise ParseError(
            f"{source} payload for {symbol} has unexpected shape",
            context={"symbol": symbol, "reason": str(e)},
        ) from e


class HttpProvider:
    """Base class for providers that talk to a JSON REST API over httpx.

    Parameters
    ----------
    config : HttpConfig | None
        Timeout and user agent. Defaults apply if None.
    client : httpx.Client | None
        Shared client. When given, the provider does not close it.
    """

    name = "http"

    def __init__(
        self,
        config: HttpConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={"User-Agent": self._config.user_agent},
            timeout=httpx.Timeout(self._config.timeout),
            follow_redirects=True,
        )

    def __enter__(self) -> HttpProvider:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            self._client.close()

    def _get_json(
        self,
        url: str,
        symbol: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any | None:
        """GET ``url`` and decode the JSON body.

        Returns None on HTTP 404 (unknown symbol).

        Raises:
            FetchError: Connection failure, timeout or non-success status.
            ParseError: The body is not valid JSON.
        """
        try:
            response = self._client.get(url, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.error("%s request error for %s: %s", self.name, symbol, e)
            raise FetchError(
                f"{self.name} request failed for {symbol}: {e}",
                context={"symbol": symbol, "url": url},
            ) from e

        if response.status_code == 404:
            logger.warning("%s: symbol '%s' not found", self.name, symbol)
            return None

        if not response.is_success:
            logger.error(
                "%s HTTP error for %s: %s %s",
                self.name,
                symbol,
                response.status_code,
                response.text[:200],
            )
            raise FetchError(
                f"HTTP {response.status_code} from {url}",
                context={"symbol": symbol, "url": url, "status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error("%s returned invalid JSON for %s: %s", self.name, symbol, e)
            raise ParseError(
                f"{self.name} returned invalid JSON for {symbol}",
                context={"symbol": symbol, "reason": str(e)},
            ) from e
