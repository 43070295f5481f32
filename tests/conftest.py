"""Shared pytest fixtures for stock-trend."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from stock_trend.core.config import ProviderConfig, StorageConfig
from stock_trend.core.exceptions import ProviderUnavailableError
from stock_trend.core.models import PriceSeries, StorageBackend
from stock_trend.prices.store import SqlitePriceStore
from stock_trend.trends.analyzer import TrendAnalyzer
from stock_trend.trends.coordinator import IngestionCoordinator
from stock_trend.trends.service import TrendService

TODAY = date(2024, 3, 15)
NOW = datetime(2024, 3, 15, 21, 0, 0, tzinfo=timezone.utc)


class FakeProvider:
    """In-memory PriceProvider.

    ``series`` maps symbol -> closes (oldest first); ``errors`` maps
    symbol -> exception to raise. Unknown symbols raise
    ProviderUnavailableError.
    """

    def __init__(
        self,
        series: dict[str, list] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.series = {k: [Decimal(str(v)) for v in vs] for k, vs in (series or {}).items()}
        self.errors = errors or {}
        self.calls: list[tuple[str, date, date]] = []
        self.closed = False

    async def fetch_recent_prices(self, symbol: str, start: date, end: date) -> PriceSeries:
        self.calls.append((symbol, start, end))
        if symbol in self.errors:
            raise self.errors[symbol]
        if symbol not in self.series:
            raise ProviderUnavailableError(f"no route to {symbol}", context={"symbol": symbol})
        return PriceSeries(symbol=symbol, start=start, end=end, closes=self.series[symbol])

    async def close(self) -> None:
        self.closed = True

    def calls_for(self, symbol: str) -> int:
        return sum(1 for call in self.calls if call[0] == symbol)


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(api_token="test-token", request_timeout=5, rate_limit=50)


@pytest.fixture
async def store():
    """An in-memory SqlitePriceStore."""
    config = StorageConfig(backend=StorageBackend.SQLITE, sqlite_path=":memory:")
    s = SqlitePriceStore(config)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider(
        series={
            "AAPL": [100, 105],
            "MSFT": [410.5, 402.25, 399.1],
            "FLAT": [100, 100],
            "ONE": [42],
        }
    )


@pytest.fixture
def analyzer(store) -> TrendAnalyzer:
    return TrendAnalyzer(store, clock=lambda: NOW)


@pytest.fixture
def coordinator(fake_provider, store, analyzer) -> IngestionCoordinator:
    return IngestionCoordinator(fake_provider, store, analyzer, today=lambda: TODAY)


@pytest.fixture
def service(coordinator, store) -> TrendService:
    return TrendService(coordinator, store)


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances with custom series/errors."""
    return FakeProvider


@pytest.fixture
def today() -> date:
    """The fixed calendar date used by the coordinator fixture."""
    return TODAY


@pytest.fixture
def now() -> datetime:
    """The fixed timestamp used by the analyzer fixture."""
    return NOW
