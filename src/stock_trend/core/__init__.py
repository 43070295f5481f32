"""stock_trend.core — Foundation types, config, and exceptions."""

from stock_trend.core.config import (
    APIConfig,
    IngestionConfig,
    ProviderConfig,
    StockTrendConfig,
    StorageConfig,
    load_config,
)
from stock_trend.core.exceptions import (
    ConfigError,
    DuplicateSymbolError,
    InvalidSymbolError,
    MalformedResponseError,
    ProviderError,
    ProviderRejectedError,
    ProviderUnavailableError,
    StockTrendError,
    StorageError,
    SymbolSourceError,
)
from stock_trend.core.models import (
    DATA_UNAVAILABLE,
    MAX_SYMBOL_LENGTH,
    NO_DATA,
    SYMBOL_NOT_FOUND,
    DailyCondition,
    IngestionStatus,
    LookupStatus,
    PreloadReport,
    PricePoint,
    PriceSeries,
    StorageBackend,
    Symbol,
    SymbolName,
    Trend,
    TrendLookup,
    normalize_symbol,
    to_price,
)

__all__ = [
    # Type aliases and constants
    "SymbolName",
    "MAX_SYMBOL_LENGTH",
    "NO_DATA",
    "DATA_UNAVAILABLE",
    "SYMBOL_NOT_FOUND",
    # Enums
    "Trend",
    "StorageBackend",
    "IngestionStatus",
    "LookupStatus",
    # Models
    "Symbol",
    "PricePoint",
    "DailyCondition",
    "PriceSeries",
    "PreloadReport",
    "TrendLookup",
    # Helpers
    "normalize_symbol",
    "to_price",
    # Config
    "StockTrendConfig",
    "ProviderConfig",
    "StorageConfig",
    "IngestionConfig",
    "APIConfig",
    "load_config",
    # Exceptions
    "StockTrendError",
    "ConfigError",
    "InvalidSymbolError",
    "SymbolSourceError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderRejectedError",
    "MalformedResponseError",
    "StorageError",
    "DuplicateSymbolError",
]
