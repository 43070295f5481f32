"""TrendService: the facade presentation layers talk to.

Two error channels:

- ``preload_all`` is a batch operation. Each symbol's failure is logged and
  recorded in the returned ``PreloadReport``; the batch always completes.
- ``get_trend`` / ``lookup`` answer one interactive query. If the symbol is
  unknown it is ingested on the spot; if that fails the answer degrades to
  the ``DATA_UNAVAILABLE`` sentinel instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from stock_trend.core.config import StockTrendConfig
from stock_trend.core.exceptions import InvalidSymbolError, StockTrendError
from stock_trend.core.models import (
    IngestionStatus,
    LookupStatus,
    PreloadReport,
    TrendLookup,
    normalize_symbol,
)
from stock_trend.prices.marketdata import MarketDataProvider
from stock_trend.prices.store import PriceStore, create_store
from stock_trend.trends.analyzer import TrendAnalyzer
from stock_trend.trends.coordinator import IngestionCoordinator

logger = logging.getLogger(__name__)


class TrendService:
    """Preloads symbols and answers trend queries.

    Parameters
    ----------
    coordinator : IngestionCoordinator
        Performs the per-symbol ingestion.
    store : PriceStore
        Read side for symbols and recorded conditions.
    concurrency : int
        Number of symbols ``preload_all`` ingests at once. 1 (the default)
        processes the batch strictly in order.
    """

    def __init__(
        self,
        coordinator: IngestionCoordinator,
        store: PriceStore,
        concurrency: int = 1,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._coordinator = coordinator
        self._store = store
        self._concurrency = concurrency

    @property
    def store(self) -> PriceStore:
        return self._store

    # --- Batch ---

    async def preload_all(self, symbols: Iterable[str]) -> PreloadReport:
        """Ingest every symbol in ``symbols``; never raises for a single failure."""
        report = PreloadReport()
        queue: list[str] = []
        seen: set[str] = set()

        for raw in symbols:
            if raw is None or not raw.strip():
                continue
            report.requested += 1
            try:
                name = normalize_symbol(raw)
            except InvalidSymbolError as e:
                logger.warning("Skipping invalid symbol %r: %s", raw, e)
                report.failed[raw.strip().upper()] = str(e)
                continue
            if name in seen:
                continue
            seen.add(name)
            queue.append(name)

        if self._concurrency == 1:
            for name in queue:
                await self._preload_one(name, report)
        else:
            semaphore = asyncio.Semaphore(self._concurrency)

            async def _bounded(name: str) -> None:
                async with semaphore:
                    await self._preload_one(name, report)

            await asyncio.gather(*(_bounded(name) for name in queue))

        logger.info(
            "Preload finished: %d ingested, %d skipped, %d failed",
            len(report.ingested),
            len(report.skipped),
            len(report.failed),
        )
        return report

    async def _preload_one(self, name: str, report: PreloadReport) -> None:
        try:
            status = await self._coordinator.ingest(name)
        except StockTrendError as e:
            logger.warning("Preload failed for %s: %s", name, e)
            report.failed[name] = str(e)
            return
        except Exception as e:
            logger.exception("Unexpected error preloading %s", name)
            report.failed[name] = str(e)
            return

        if status == IngestionStatus.INGESTED:
            report.ingested.append(name)
        else:
            report.skipped.append(name)

    # --- Interactive ---

    async def get_trend(self, symbol: str) -> str:
        """Return the current classification or a sentinel string.

        Raises:
            InvalidSymbolError: If ``symbol`` is blank or too long.
        """
        result = await self.lookup(symbol)
        return result.label

    async def lookup(self, symbol: str) -> TrendLookup:
        """Structured form of ``get_trend``.

        Raises:
            InvalidSymbolError: If ``symbol`` is blank or too long.
            StorageError: If reading an already-known symbol fails.
        """
        name = normalize_symbol(symbol)

        stored = await self._store.find_symbol(name)
        if stored is None:
            try:
                await self._coordinator.ingest(name)
                stored = await self._store.find_symbol(name)
            except Exception as e:
                logger.warning("On-demand ingestion failed for %s: %s", name, e)
                return TrendLookup(
                    symbol=name, status=LookupStatus.UNAVAILABLE, detail=str(e)
                )

        if stored is None:
            return TrendLookup(symbol=name, status=LookupStatus.NOT_FOUND)

        condition = await self._store.latest_condition(stored)
        if condition is None:
            return TrendLookup(symbol=name, status=LookupStatus.NO_DATA)

        return TrendLookup(
            symbol=name,
            status=LookupStatus.OK,
            trend=condition.trend,
            observed_at=condition.observed_at,
        )


@asynccontextmanager
async def open_service(config: StockTrendConfig) -> AsyncIterator[TrendService]:
    """Wire store, provider, analyzer and coordinator from configuration."""
    store = await create_store(config.storage)
    provider = MarketDataProvider(config.provider)
    try:
        analyzer = TrendAnalyzer(store)
        coordinator = IngestionCoordinator(
            provider,
            store,
            analyzer,
            window_days=config.ingestion.window_days,
        )
        yield TrendService(
            coordinator, store, concurrency=config.ingestion.preload_concurrency
        )
    finally:
        await provider.close()
        await store.close()
