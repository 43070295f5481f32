"""Day-over-day trend classification from stored price history."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from stock_trend.core.models import DailyCondition, Symbol, Trend
from stock_trend.prices.store import PriceStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def classify(newest: Decimal, previous: Decimal) -> Trend:
    """Compare the two most recent closes. Equality is exact, no tolerance."""
    if newest > previous:
        return Trend.INCREASED
    if newest < previous:
        return Trend.DECREASED
    return Trend.STABLE


class TrendAnalyzer:
    """Reads the two newest prices of a symbol and appends a DailyCondition."""

    def __init__(self, store: PriceStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def analyze_and_record(self, symbol: Symbol) -> DailyCondition | None:
        """Classify the latest move and record it.

        Returns None without writing anything when fewer than two prices
        are stored; that is a normal state, not an error.
        """
        points = await self._store.latest_two_prices(symbol)
        if len(points) < 2:
            logger.info(
                "Not enough prices to classify %s (%d stored)", symbol.name, len(points)
            )
            return None

        newest, previous = points[0], points[1]
        trend = classify(newest.price, previous.price)
        condition = await self._store.append_condition(symbol, trend, self._clock())
        logger.info(
            "%s %s: %s -> %s", symbol.name, trend, previous.price, newest.price
        )
        return condition
