"""Price acquisition and persistence.

Architecture
------------

    marketdata.app → MarketDataAdapter → PriceSeries → IngestionCoordinator → PriceStore

Key abstractions:

- ``PriceProvider``: Consumer-facing async interface for fetching a recent
  window of daily closes.
- ``PriceStore``: Persistence protocol for symbols, price history and
  recorded trend conditions.

Built-in implementations:

- ``MarketDataProvider``: Fetches from the marketdata.app candles API.
- ``MarketDataAdapter``: Extracts closing prices from its JSON payload.
- ``SqlitePriceStore``: SQLite-backed store with migrations.
"""

from stock_trend.prices.marketdata import MarketDataAdapter, MarketDataProvider
from stock_trend.prices.provider import PriceProvider
from stock_trend.prices.store import PriceStore, SqlitePriceStore, create_store

__all__ = [
    # Protocols
    "PriceProvider",
    "PriceStore",
    # marketdata.app
    "MarketDataAdapter",
    "MarketDataProvider",
    # SQLite
    "SqlitePriceStore",
    "create_store",
]
