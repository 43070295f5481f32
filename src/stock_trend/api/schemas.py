"""API-specific request/response schemas (Pydantic v2)."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str
    version: str
    storage_backend: str
    total_symbols: int
    total_conditions: int


class TrendResponse(BaseModel):
    """Answer to a trend query. ``result`` is the classification or sentinel."""

    symbol: str
    status: str
    result: str
    trend: str | None = None
    observed_at: datetime | None = None
    detail: str | None = None


class SymbolListResponse(BaseModel):
    total: int
    items: list[str]


class PricePointResponse(BaseModel):
    trading_date: date
    price: Decimal


class PriceHistoryResponse(BaseModel):
    symbol: str
    items: list[PricePointResponse]


class PreloadRequest(BaseModel):
    """Body for POST /preload. An empty list means "use the symbol file"."""

    symbols: list[str] = Field(default_factory=list)


class PreloadResponse(BaseModel):
    requested: int
    ingested: list[str]
    skipped: list[str]
    failed: dict[str, str]
