"""Pydantic data models — the system's type contracts."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from stock_trend.core.exceptions import InvalidSymbolError

# --- Type Aliases ---

SymbolName = str

MAX_SYMBOL_LENGTH = 10

# Prices are stored with two decimal places, like a decimal(18,2) column.
PRICE_QUANTUM = Decimal("0.01")

# --- Enumerations ---


class Trend(StrEnum):
    """Day-over-day price movement between the two most recent closes."""

    INCREASED = "increased"
    DECREASED = "decreased"
    STABLE = "stable"


class StorageBackend(StrEnum):
    """Supported storage backends."""

    SQLITE = "sqlite"


class IngestionStatus(StrEnum):
    """Outcome of ingesting a single symbol."""

    INGESTED = "ingested"
    SKIPPED = "skipped"


class LookupStatus(StrEnum):
    """Outcome of an interactive trend lookup."""

    OK = "ok"
    NO_DATA = "no_data"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"


# --- Helpers ---


def normalize_symbol(raw: str) -> SymbolName:
    """Trim and upper-case a ticker symbol.

    Raises:
        InvalidSymbolError: If the result is blank or longer than
            MAX_SYMBOL_LENGTH characters.
    """
    name = (raw or "").strip().upper()
    if not name:
        raise InvalidSymbolError("Symbol must not be blank", context={"symbol": raw})
    if len(name) > MAX_SYMBOL_LENGTH:
        raise InvalidSymbolError(
            f"Symbol {name!r} is longer than {MAX_SYMBOL_LENGTH} characters",
            context={"symbol": raw},
        )
    return name


def to_price(value: object) -> Decimal:
    """Convert a provider number to a fixed-point price."""
    if isinstance(value, bool):
        raise ValueError(f"price must be numeric, got {value!r}")
    if isinstance(value, float):
        value = repr(value)
    price = Decimal(value)
    if not price.is_finite():
        raise ValueError(f"price must be finite, got {value!r}")
    return price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


# --- Domain Models ---


class Symbol(BaseModel):
    """A stored ticker symbol."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: SymbolName

    @field_validator("name")
    @classmethod
    def name_normalized(cls, v: str) -> str:
        try:
            return normalize_symbol(v)
        except InvalidSymbolError as e:
            raise ValueError(str(e)) from e


class PricePoint(BaseModel):
    """One daily closing price for a symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: SymbolName
    price: Decimal
    trading_date: date

    @field_validator("price")
    @classmethod
    def price_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError(f"price must be >= 0, got {v}")
        return v.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


class DailyCondition(BaseModel):
    """A recorded trend classification. The newest one is the current trend."""

    model_config = ConfigDict(frozen=True)

    symbol: SymbolName
    trend: Trend
    observed_at: datetime


class PriceSeries(BaseModel):
    """Closing prices returned by a provider, oldest first."""

    model_config = ConfigDict(frozen=True)

    symbol: SymbolName
    start: date
    end: date
    closes: list[Decimal]

    @model_validator(mode="after")
    def end_not_before_start(self) -> PriceSeries:
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must not be before start ({self.start})")
        return self


class PreloadReport(BaseModel):
    """Summary of a preload batch. Failures map symbol -> error message."""

    requested: int = 0
    ingested: list[SymbolName] = []
    skipped: list[SymbolName] = []
    failed: dict[SymbolName, str] = {}

    @property
    def ok(self) -> bool:
        return not self.failed


class TrendLookup(BaseModel):
    """Structured answer to a trend query."""

    model_config = ConfigDict(frozen=True)

    symbol: SymbolName
    status: LookupStatus
    trend: Trend | None = None
    observed_at: datetime | None = None
    detail: str | None = None

    @property
    def label(self) -> str:
        """The classification, or the sentinel text for the status."""
        if self.trend is not None:
            return self.trend.value
        return _SENTINELS.get(self.status, NO_DATA)


NO_DATA = "no data"
DATA_UNAVAILABLE = "could not fetch"
SYMBOL_NOT_FOUND = "symbol not found"

_SENTINELS: dict[LookupStatus, str] = {
    LookupStatus.NO_DATA: NO_DATA,
    LookupStatus.UNAVAILABLE: DATA_UNAVAILABLE,
    LookupStatus.NOT_FOUND: SYMBOL_NOT_FOUND,
}
