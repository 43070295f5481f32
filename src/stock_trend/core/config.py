"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from stock_trend.core.exceptions import ConfigError
from stock_trend.core.models import StorageBackend


class ProviderConfig(BaseModel):
    """Market-data provider access configuration."""

    model_config = ConfigDict(frozen=True)

    api_token: str
    base_url: str = "https://api.marketdata.app"
    request_timeout: int = 30
    rate_limit: int = 10
    adjusted: bool = True

    @field_validator("api_token")
    @classmethod
    def api_token_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("api_token must not be blank")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_https(cls, v: str) -> str:
        if not v.startswith("https://"):
            raise ValueError("base_url must use HTTPS")
        return v.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def timeout_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("request_timeout must be >= 1")
        return v

    @field_validator("rate_limit")
    @classmethod
    def rate_limit_in_range(cls, v: int) -> int:
        if v < 1 or v > 50:
            raise ValueError("rate_limit must be between 1 and 50")
        return v


class StorageConfig(BaseModel):
    """Storage backend configuration."""

    model_config = ConfigDict(frozen=True)

    backend: StorageBackend = StorageBackend.SQLITE
    sqlite_path: str = "./data/stock_trend.db"


class IngestionConfig(BaseModel):
    """Price ingestion and preload settings."""

    model_config = ConfigDict(frozen=True)

    window_days: int = 30
    symbols_file: str = "ticker.txt"
    preload_concurrency: int = 1

    @field_validator("window_days")
    @classmethod
    def window_within_one_month(cls, v: int) -> int:
        if v < 1 or v > 31:
            raise ValueError("window_days must be between 1 and 31")
        return v

    @field_validator("preload_concurrency")
    @classmethod
    def concurrency_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("preload_concurrency must be >= 1")
        return v


class APIConfig(BaseModel):
    """FastAPI server configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8000
    api_key: str | None = None
    preload_on_startup: bool = False


class StockTrendConfig(BaseModel):
    """Root configuration for the entire stock-trend system."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderConfig
    storage: StorageConfig = StorageConfig()
    ingestion: IngestionConfig = IngestionConfig()
    api: APIConfig = APIConfig()


def load_config(
    config_path: str | None = None,
    env_prefix: str = "STOCK_TREND_",
) -> StockTrendConfig:
    """Load configuration from environment + YAML file + defaults.

    Resolution order (highest priority first):
    1. Environment variables (STOCK_TREND_PROVIDER__API_TOKEN, etc.)
    2. YAML file at config_path
    3. Built-in defaults

    Nested keys use double-underscore in env vars:
        STOCK_TREND_INGESTION__WINDOW_DAYS=20  ->  ingestion.window_days = 20
    """
    try:
        yaml_path = _resolve_config_path(config_path)
        base: dict = {}
        if yaml_path is not None:
            base = _load_yaml(yaml_path)

        merged = _merge_env_vars(base, env_prefix)
        return StockTrendConfig.model_validate(merged)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(str(e), context={"source": "load_config"}) from e


def _resolve_config_path(explicit: str | None) -> Path | None:
    """Determine config file path."""
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(
                f"Config file not found: {explicit}",
                context={"field": "config_path", "value": explicit},
            )
        return p

    env_path = os.environ.get("STOCK_TREND_CONFIG")
    if env_path:
        p = Path(env_path)
        if not p.exists():
            raise ConfigError(
                f"Config file from STOCK_TREND_CONFIG not found: {env_path}",
                context={"field": "STOCK_TREND_CONFIG", "value": env_path},
            )
        return p

    default = Path("stock-trend.yml")
    if default.exists():
        return default

    return None


def _load_yaml(path: Path) -> dict:
    """Load and parse YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"YAML config must be a mapping, got {type(data).__name__}",
                context={"field": "config_file", "value": str(path)},
            )
        return data
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse YAML config: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e


def _merge_env_vars(base: dict, prefix: str) -> dict:
    """Overlay environment variables onto base config dict.

    Double-underscore separates nesting levels.
    Values are auto-cast: "true"/"false" -> bool, numeric strings -> int.
    """
    result = dict(base)

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        parts = [p.lower() for p in remainder.split("__")]

        # Skip the CONFIG env var itself
        if parts == ["config"]:
            continue

        # Tokens are opaque strings; never cast them
        if parts[-1] in _STRING_FIELDS:
            cast_value: str | int | float | bool = value
        else:
            cast_value = _auto_cast(value)

        target = result
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        target[parts[-1]] = cast_value

    return result


_STRING_FIELDS = frozenset({"api_token", "api_key"})


def _auto_cast(value: str) -> str | int | float | bool:
    """Auto-cast string values from environment variables."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value
