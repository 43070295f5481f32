"""Tests for stock_trend.trends.analyzer."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from stock_trend.core.models import PricePoint, Trend
from stock_trend.trends.analyzer import TrendAnalyzer, classify


class TestClassify:
    @pytest.mark.parametrize(
        "newest, previous, expected",
        [
            ("105.00", "100.00", Trend.INCREASED),
            ("99.99", "100.00", Trend.DECREASED),
            ("100.00", "100.00", Trend.STABLE),
            ("100.01", "100.00", Trend.INCREASED),
            ("0.00", "0.00", Trend.STABLE),
        ],
    )
    def test_classification(self, newest, previous, expected):
        assert classify(Decimal(newest), Decimal(previous)) is expected

    def test_trailing_zeros_are_equal(self):
        assert classify(Decimal("100"), Decimal("100.00")) is Trend.STABLE


async def _seed(store, name: str, prices: list[str]):
    symbol = await store.create_symbol(name)
    first = date(2024, 3, 1)
    await store.append_prices(
        symbol,
        [
            PricePoint(symbol=name, price=Decimal(p), trading_date=first + timedelta(days=i))
            for i, p in enumerate(prices)
        ],
    )
    return symbol


class TestTrendAnalyzer:
    async def test_records_increase(self, store, analyzer, now):
        aapl = await _seed(store, "AAPL", ["100", "105"])
        condition = await analyzer.analyze_and_record(aapl)

        assert condition.trend == Trend.INCREASED
        assert condition.observed_at == now
        assert await store.latest_condition(aapl) == condition

    async def test_uses_only_two_newest(self, store, analyzer):
        msft = await _seed(store, "MSFT", ["500", "402.25", "399.10"])
        condition = await analyzer.analyze_and_record(msft)
        assert condition.trend == Trend.DECREASED

    async def test_equal_prices_are_stable(self, store, analyzer):
        flat = await _seed(store, "FLAT", ["100", "100"])
        assert (await analyzer.analyze_and_record(flat)).trend == Trend.STABLE

    async def test_single_price_writes_nothing(self, store, analyzer):
        one = await _seed(store, "ONE", ["42"])
        assert await analyzer.analyze_and_record(one) is None
        assert await store.get_conditions(one) == []

    async def test_no_prices_writes_nothing(self, store, analyzer):
        empty = await store.create_symbol("EMPTY")
        assert await analyzer.analyze_and_record(empty) is None
        assert await store.latest_condition(empty) is None

    async def test_repeated_analysis_appends(self, store, now):
        ticks = iter([now - timedelta(hours=1), now])
        analyzer = TrendAnalyzer(store, clock=lambda: next(ticks))
        aapl = await _seed(store, "AAPL", ["100", "105"])

        await analyzer.analyze_and_record(aapl)
        await analyzer.analyze_and_record(aapl)

        history = await store.get_conditions(aapl)
        assert len(history) == 2
        assert history[0].observed_at == now
