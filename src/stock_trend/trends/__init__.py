"""Trend pipeline: ingestion coordinator, analyzer, service facade."""

from stock_trend.trends.analyzer import TrendAnalyzer, classify
from stock_trend.trends.coordinator import IngestionCoordinator, assign_trading_dates
from stock_trend.trends.service import TrendService, open_service
from stock_trend.trends.universe import FileSymbolSource, StaticSymbolSource, SymbolSource

__all__ = [
    "TrendAnalyzer",
    "classify",
    "IngestionCoordinator",
    "assign_trading_dates",
    "TrendService",
    "open_service",
    "SymbolSource",
    "StaticSymbolSource",
    "FileSymbolSource",
]
