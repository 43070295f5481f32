"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stock_trend.api.deps import AppState, api_key_middleware
from stock_trend.api.routes import router
from stock_trend.api.schemas import ErrorResponse
from stock_trend.core.config import StockTrendConfig, load_config
from stock_trend.core.exceptions import (
    ConfigError,
    InvalidSymbolError,
    StockTrendError,
    StorageError,
    SymbolSourceError,
)
from stock_trend.trends.service import open_service
from stock_trend.trends.universe import FileSymbolSource

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config = app.state._pending_config or load_config()

    async with open_service(config) as service:
        app.state.app_state = AppState(config=config, service=service)

        if config.api.preload_on_startup:
            try:
                symbols = FileSymbolSource(config.ingestion.symbols_file).get_symbols()
            except SymbolSourceError as e:
                logger.error("Startup preload skipped: %s", e)
            else:
                await service.preload_all(symbols)

        yield


def create_app(config: StockTrendConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    import stock_trend

    app = FastAPI(
        title="Stock Trend API",
        description="Daily price ingestion and day-over-day trend lookup",
        version=stock_trend.__version__,
        lifespan=lifespan,
    )

    # Stash config so lifespan can retrieve it
    app.state._pending_config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # No-op unless api.api_key is set; the key is read from the resolved config
    app.middleware("http")(api_key_middleware)

    app.include_router(router, prefix="/api")

    @app.exception_handler(StockTrendError)
    async def stock_trend_exception_handler(request: Request, exc: StockTrendError):
        status_map = {
            ConfigError: 400,
            InvalidSymbolError: 422,
            SymbolSourceError: 400,
            StorageError: 500,
        }
        status = status_map.get(type(exc), 500)
        return JSONResponse(
            status_code=status,
            content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
        )

    return app
