"""Per-symbol ingestion: check, fetch, persist, analyze."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

from stock_trend.core.exceptions import DuplicateSymbolError
from stock_trend.core.models import IngestionStatus, PricePoint
from stock_trend.prices.provider import PriceProvider
from stock_trend.prices.store import PriceStore
from stock_trend.trends.analyzer import TrendAnalyzer

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def assign_trading_dates(
    symbol: str, closes: Sequence[Decimal], today: date
) -> list[PricePoint]:
    """Date closes by counting back from ``today``, one calendar day each.

    The last close lands on ``today``; close ``i`` of ``n`` lands on
    ``today - (n - i - 1)`` days. Provider timestamps are ignored, so
    weekends and holidays are not accounted for.
    """
    n = len(closes)
    return [
        PricePoint(
            symbol=symbol,
            price=price,
            trading_date=today - timedelta(days=n - i - 1),
        )
        for i, price in enumerate(closes)
    ]


class IngestionCoordinator:
    """One-time ingestion of a symbol's recent price window.

    Stateless across symbols. A symbol that already exists in the store is
    never fetched again; that existence check is what makes repeated
    ingestion a no-op.

    Parameters
    ----------
    provider : PriceProvider
        Source of closing prices.
    store : PriceStore
        Persistence for symbols, prices and conditions.
    analyzer : TrendAnalyzer
        Run after prices are stored.
    window_days : int
        Length of the trailing fetch window ending today.
    today : Callable[[], date]
        Calendar source; injectable for tests.
    """

    def __init__(
        self,
        provider: PriceProvider,
        store: PriceStore,
        analyzer: TrendAnalyzer,
        window_days: int = DEFAULT_WINDOW_DAYS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider = provider
        self._store = store
        self._analyzer = analyzer
        self._window_days = window_days
        self._today = today

    async def ingest(self, symbol: str) -> IngestionStatus:
        """Ingest a normalized symbol unless it is already stored.

        Raises:
            ProviderError: Fetch failed. Nothing was written.
            StorageError: Persisting or analyzing failed. Writes committed
                before the failure remain.
        """
        if await self._store.find_symbol(symbol) is not None:
            logger.debug("%s already ingested, skipping", symbol)
            return IngestionStatus.SKIPPED

        today = self._today()
        start = today - timedelta(days=self._window_days)
        series = await self._provider.fetch_recent_prices(symbol, start, today)

        try:
            stored = await self._store.create_symbol(symbol)
        except DuplicateSymbolError:
            logger.info("%s was created concurrently, leaving it to the first writer", symbol)
            return IngestionStatus.SKIPPED

        points = assign_trading_dates(symbol, series.closes, today)
        await self._store.append_prices(stored, points)
        await self._analyzer.analyze_and_record(stored)

        logger.info("Ingested %s: %d prices", symbol, len(points))
        return IngestionStatus.INGESTED
