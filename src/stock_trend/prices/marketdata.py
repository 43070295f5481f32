"""marketdata.app price provider, a direct HTTP implementation.

Uses the daily candles endpoint with bearer-token authentication:

    GET /v1/stocks/candles/D/{symbol}/?from=YYYY-MM-DD&to=YYYY-MM-DD

The response carries parallel OHLCV arrays (``o``, ``h``, ``l``, ``c``,
``v``, ``t``). Only the closing prices in ``c`` are read.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from aiolimiter import AsyncLimiter

from stock_trend.core.config import ProviderConfig
from stock_trend.core.exceptions import (
    MalformedResponseError,
    ProviderRejectedError,
    ProviderUnavailableError,
)
from stock_trend.core.models import PriceSeries, to_price

logger = logging.getLogger(__name__)

_CANDLES_PATH = "/v1/stocks/candles/D/{symbol}/"
_USER_AGENT = "stock-trend/0.1"
_MAX_BODY_IN_ERROR = 200


class MarketDataAdapter:
    """Extracts closing prices from a marketdata.app candles payload."""

    def adapt(self, raw_data: Any, symbol: str) -> list[Decimal]:
        """Return the ``c`` array as Decimal prices, oldest first.

        Raises:
            MalformedResponseError: If the payload is not an object, the
                close array is missing, null or empty, or any close is not a
                non-negative number.
        """
        if not isinstance(raw_data, dict):
            raise MalformedResponseError(
                f"Expected a JSON object for {symbol}, got {type(raw_data).__name__}",
                context={"symbol": symbol, "reason": "not_an_object"},
            )

        closes = raw_data.get("c")
        if closes is None:
            raise MalformedResponseError(
                f"No closing prices in response for {symbol}",
                context={"symbol": symbol, "reason": "missing_closes"},
            )
        if not isinstance(closes, list) or not closes:
            raise MalformedResponseError(
                f"Empty closing price series for {symbol}",
                context={"symbol": symbol, "reason": "empty_closes"},
            )

        prices: list[Decimal] = []
        for i, value in enumerate(closes):
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise MalformedResponseError(
                    f"Close #{i} for {symbol} is not a number: {value!r}",
                    context={"symbol": symbol, "reason": "non_numeric_close"},
                )
            try:
                price = to_price(value)
            except (InvalidOperation, ValueError) as e:
                raise MalformedResponseError(
                    f"Close #{i} for {symbol} is not a finite number: {value!r}",
                    context={"symbol": symbol, "reason": "non_finite_close"},
                ) from e
            if price < 0:
                raise MalformedResponseError(
                    f"Close #{i} for {symbol} is negative: {value!r}",
                    context={"symbol": symbol, "reason": "negative_close"},
                )
            prices.append(price)
        return prices


class MarketDataProvider:
    """Fetches daily candles from marketdata.app.

    Requests are paced by a token bucket (``config.rate_limit`` per second)
    and bounded by ``config.request_timeout``. Failures are never retried
    here; retry policy belongs to the caller.

    Use via ``async with MarketDataProvider(config) as provider:`` or call
    ``close()`` when done.
    """

    def __init__(
        self,
        config: ProviderConfig,
        adapter: MarketDataAdapter | None = None,
    ) -> None:
        self._config = config
        self._adapter = adapter or MarketDataAdapter()
        self._limiter = AsyncLimiter(max_rate=config.rate_limit, time_period=1.0)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.api_token}",
                "Accept": "application/json",
                "User-Agent": _USER_AGENT,
            },
            timeout=httpx.Timeout(config.request_timeout),
        )

    async def __aenter__(self) -> MarketDataProvider:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client. Called automatically by __aexit__."""
        await self._client.aclose()

    async def fetch_recent_prices(
        self, symbol: str, start: date, end: date
    ) -> PriceSeries:
        """Fetch daily closes for ``symbol`` between ``start`` and ``end``."""
        path = _CANDLES_PATH.format(symbol=symbol)
        params = {
            "from": start.isoformat(),
            "to": end.isoformat(),
            "format": "json",
            "adjusted": "true" if self._config.adjusted else "false",
        }
        url = f"{self._config.base_url}{path}"

        try:
            await self._limiter.acquire()
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"Timed out fetching prices for {symbol}",
                context={"symbol": symbol, "url": url, "error": str(e)},
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailableError(
                f"Request failed fetching prices for {symbol}: {e}",
                context={"symbol": symbol, "url": url, "error": str(e)},
            ) from e

        if not response.is_success:
            raise ProviderRejectedError(
                f"HTTP {response.status_code} fetching prices for {symbol}",
                context={
                    "symbol": symbol,
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:_MAX_BODY_IN_ERROR],
                },
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Response for {symbol} is not valid JSON",
                context={"symbol": symbol, "url": url, "reason": "invalid_json"},
            ) from e

        # API-level error envelope: {"s": "error", "errmsg": "..."}
        if isinstance(data, dict) and data.get("s") == "error":
            raise ProviderRejectedError(
                f"Provider rejected request for {symbol}: {data.get('errmsg')}",
                context={
                    "symbol": symbol,
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": str(data.get("errmsg"))[:_MAX_BODY_IN_ERROR],
                },
            )

        closes = self._adapter.adapt(data, symbol)
        logger.debug("Fetched %d closes for %s (%s..%s)", len(closes), symbol, start, end)
        return PriceSeries(symbol=symbol, start=start, end=end, closes=closes)
