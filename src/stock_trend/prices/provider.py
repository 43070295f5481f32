"""Price provider protocol — the source-agnostic interface layer.

Ingestion depends only on ``PriceProvider``. A concrete provider owns the
transport, authentication and payload format of one market-data source and
hands back a ``PriceSeries`` of closing prices, oldest first.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from stock_trend.core.models import PriceSeries


@runtime_checkable
class PriceProvider(Protocol):
    """Consumer-facing interface for fetching a recent daily price window."""

    async def fetch_recent_prices(
        self, symbol: str, start: date, end: date
    ) -> PriceSeries:
        """Fetch daily closing prices for ``symbol`` in ``[start, end]``.

        The symbol is expected to be normalized by the caller.

        Raises
        ------
        ProviderUnavailableError
            Network failure or timeout.
        ProviderRejectedError
            The provider answered with a non-success status.
        MalformedResponseError
            The payload could not be parsed or held no closing prices.
        """
        ...

    async def close(self) -> None:
        """Release any transport resources."""
        ...
