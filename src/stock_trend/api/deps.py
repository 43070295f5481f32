"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse

from stock_trend.api.schemas import ErrorResponse
from stock_trend.core.config import StockTrendConfig
from stock_trend.prices.store import PriceStore
from stock_trend.trends.service import TrendService


@dataclass
class AppState:
    """Shared application state, attached to app.state during lifespan."""

    config: StockTrendConfig
    service: TrendService


def get_app_state(request: Request) -> AppState:
    """Dependency: retrieve AppState from the request."""
    return request.app.state.app_state


def get_config(request: Request) -> StockTrendConfig:
    """Dependency: retrieve config."""
    return request.app.state.app_state.config


def get_service(request: Request) -> TrendService:
    """Dependency: retrieve the trend service."""
    return request.app.state.app_state.service


def get_store(request: Request) -> PriceStore:
    """Dependency: retrieve storage backend."""
    return request.app.state.app_state.service.store


EXEMPT_PATHS = {"/api/health"}


async def api_key_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware: validate X-API-Key header when authentication is enabled."""
    if request.url.path in EXEMPT_PATHS:
        return await call_next(request)

    config = request.app.state.app_state.config
    if config.api.api_key:
        api_key = request.headers.get("X-API-Key")
        if api_key != config.api.api_key:
            return JSONResponse(
                status_code=401,
                content=ErrorResponse(
                    error="Unauthorized", detail="Invalid or missing API key"
                ).model_dump(),
            )
    return await call_next(request)
