"""FastAPI route definitions for the stock-trend API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

import stock_trend
from stock_trend.api.deps import get_config, get_service, get_store
from stock_trend.api.schemas import (
    HealthResponse,
    PreloadRequest,
    PreloadResponse,
    PriceHistoryResponse,
    PricePointResponse,
    SymbolListResponse,
    TrendResponse,
)
from stock_trend.core.config import StockTrendConfig
from stock_trend.core.models import normalize_symbol
from stock_trend.prices.store import PriceStore
from stock_trend.trends.service import TrendService
from stock_trend.trends.universe import FileSymbolSource

router = APIRouter()


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: PriceStore = Depends(get_store),
    config: StockTrendConfig = Depends(get_config),
):
    """System health and basic statistics."""
    stats = await store.get_statistics()
    return HealthResponse(
        status="ok" if await store.health_check() else "degraded",
        version=stock_trend.__version__,
        storage_backend=str(config.storage.backend.value),
        total_symbols=stats["total_symbols"],
        total_conditions=stats["total_conditions"],
    )


# -- Trends --


@router.get("/trends/{symbol}", response_model=TrendResponse)
async def get_trend(
    symbol: str,
    service: TrendService = Depends(get_service),
):
    """Current trend for a symbol, fetching it first if it is unknown.

    Always 200: missing data is reported through ``status``/``result``.
    """
    lookup = await service.lookup(symbol)
    return TrendResponse(
        symbol=lookup.symbol,
        status=str(lookup.status),
        result=lookup.label,
        trend=str(lookup.trend) if lookup.trend is not None else None,
        observed_at=lookup.observed_at,
        detail=lookup.detail,
    )


# -- Symbols --


@router.get("/symbols", response_model=SymbolListResponse)
async def list_symbols(store: PriceStore = Depends(get_store)):
    """All ingested symbols."""
    symbols = await store.list_symbols()
    return SymbolListResponse(total=len(symbols), items=[s.name for s in symbols])


@router.get("/symbols/{symbol}/prices", response_model=PriceHistoryResponse)
async def get_price_history(
    symbol: str,
    store: PriceStore = Depends(get_store),
):
    """Stored price history, oldest first. Never triggers a fetch."""
    name = normalize_symbol(symbol)
    stored = await store.find_symbol(name)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Symbol {name} has not been ingested")
    points = await store.get_prices(stored)
    return PriceHistoryResponse(
        symbol=name,
        items=[
            PricePointResponse(trading_date=p.trading_date, price=p.price)
            for p in points
        ],
    )


# -- Preload --


@router.post("/preload", response_model=PreloadResponse)
async def preload(
    request: PreloadRequest,
    service: TrendService = Depends(get_service),
    config: StockTrendConfig = Depends(get_config),
):
    """Ingest a batch of symbols; per-symbol failures are listed, not raised."""
    symbols = request.symbols
    if not symbols:
        symbols = FileSymbolSource(config.ingestion.symbols_file).get_symbols()
    report = await service.preload_all(symbols)
    return PreloadResponse(
        requested=report.requested,
        ingested=report.ingested,
        skipped=report.skipped,
        failed=report.failed,
    )
