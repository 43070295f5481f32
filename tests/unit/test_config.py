"""Tests for stock_trend.core.config."""

import os

import pytest
from pydantic import ValidationError

from stock_trend.core.config import (
    IngestionConfig,
    ProviderConfig,
    StockTrendConfig,
    StorageConfig,
    _auto_cast,
    _merge_env_vars,
    load_config,
)
from stock_trend.core.exceptions import ConfigError
from stock_trend.core.models import StorageBackend


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("STOCK_TREND_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestProviderConfig:
    def test_valid_construction(self):
        c = ProviderConfig(api_token="abc")
        assert c.base_url == "https://api.marketdata.app"
        assert c.request_timeout == 30
        assert c.adjusted is True

    def test_blank_token_rejected(self):
        with pytest.raises(ValidationError, match="api_token must not be blank"):
            ProviderConfig(api_token="   ")

    def test_http_base_url_rejected(self):
        with pytest.raises(ValidationError, match="HTTPS"):
            ProviderConfig(api_token="abc", base_url="http://api.marketdata.app")

    def test_trailing_slash_stripped(self):
        c = ProviderConfig(api_token="abc", base_url="https://example.test/")
        assert c.base_url == "https://example.test"

    def test_rate_limit_bounds(self):
        with pytest.raises(ValidationError, match="between 1 and 50"):
            ProviderConfig(api_token="abc", rate_limit=0)
        with pytest.raises(ValidationError, match="between 1 and 50"):
            ProviderConfig(api_token="abc", rate_limit=51)

    def test_timeout_positive(self):
        with pytest.raises(ValidationError, match="request_timeout"):
            ProviderConfig(api_token="abc", request_timeout=0)


class TestStorageConfig:
    def test_defaults_to_sqlite(self):
        c = StorageConfig()
        assert c.backend == StorageBackend.SQLITE
        assert c.sqlite_path.endswith("stock_trend.db")


class TestIngestionConfig:
    def test_defaults(self):
        c = IngestionConfig()
        assert c.window_days == 30
        assert c.symbols_file == "ticker.txt"
        assert c.preload_concurrency == 1

    def test_window_capped_at_one_month(self):
        with pytest.raises(ValidationError, match="between 1 and 31"):
            IngestionConfig(window_days=90)

    def test_concurrency_positive(self):
        with pytest.raises(ValidationError, match="preload_concurrency"):
            IngestionConfig(preload_concurrency=0)


class TestLoadConfig:
    def test_token_from_env(self, clean_env):
        clean_env.setenv("STOCK_TREND_PROVIDER__API_TOKEN", "env-token")
        config = load_config()
        assert config.provider.api_token == "env-token"
        assert config.storage.backend == StorageBackend.SQLITE

    def test_numeric_token_stays_string(self, clean_env):
        clean_env.setenv("STOCK_TREND_PROVIDER__API_TOKEN", "123456")
        config = load_config()
        assert config.provider.api_token == "123456"

    def test_yaml_loading(self, tmp_path, clean_env):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text(
            "provider:\n  api_token: 'yaml-token'\n  request_timeout: 10\n"
            "ingestion:\n  window_days: 20\n"
        )
        config = load_config(config_path=str(yaml_file))
        assert config.provider.api_token == "yaml-token"
        assert config.provider.request_timeout == 10
        assert config.ingestion.window_days == 20

    def test_env_overrides_yaml(self, tmp_path, clean_env):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("provider:\n  api_token: 'yaml-token'\n  rate_limit: 5\n")
        clean_env.setenv("STOCK_TREND_PROVIDER__RATE_LIMIT", "8")
        config = load_config(config_path=str(yaml_file))
        assert config.provider.rate_limit == 8

    def test_config_env_var_path(self, tmp_path, clean_env):
        yaml_file = tmp_path / "st.yml"
        yaml_file.write_text("provider:\n  api_token: 'from-env-path'\n")
        clean_env.setenv("STOCK_TREND_CONFIG", str(yaml_file))
        config = load_config()
        assert config.provider.api_token == "from-env-path"

    def test_missing_token_raises(self, clean_env, tmp_path):
        clean_env.chdir(tmp_path)
        with pytest.raises(ConfigError):
            load_config()

    def test_missing_config_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config(config_path="/nonexistent/file.yml")

    def test_non_mapping_yaml_raises(self, tmp_path, clean_env):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(config_path=str(yaml_file))

    def test_invalid_yaml_raises(self, tmp_path, clean_env):
        yaml_file = tmp_path / "config.yml"
        yaml_file.write_text("provider: [unclosed\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_config(config_path=str(yaml_file))

    def test_config_is_frozen(self, clean_env):
        clean_env.setenv("STOCK_TREND_PROVIDER__API_TOKEN", "t")
        config = load_config()
        assert isinstance(config, StockTrendConfig)
        with pytest.raises(ValidationError):
            config.provider = None


class TestAutoCast:
    def test_true(self):
        assert _auto_cast("true") is True
        assert _auto_cast("TRUE") is True

    def test_false(self):
        assert _auto_cast("false") is False

    def test_int(self):
        assert _auto_cast("42") == 42

    def test_float(self):
        assert _auto_cast("3.14") == 3.14

    def test_string(self):
        assert _auto_cast("hello") == "hello"


class TestMergeEnvVars:
    def test_simple_override(self, monkeypatch):
        monkeypatch.setenv("TEST_INGESTION__WINDOW_DAYS", "5")
        result = _merge_env_vars({"ingestion": {"window_days": 30}}, "TEST_")
        assert result["ingestion"]["window_days"] == 5

    def test_creates_nested_structure(self, monkeypatch):
        monkeypatch.setenv("TEST_API__PRELOAD_ON_STARTUP", "true")
        result = _merge_env_vars({}, "TEST_")
        assert result["api"]["preload_on_startup"] is True

    def test_skips_config_key(self, monkeypatch):
        monkeypatch.setenv("TEST_CONFIG", "/some/path")
        result = _merge_env_vars({}, "TEST_")
        assert "config" not in result

    def test_api_key_not_cast(self, monkeypatch):
        monkeypatch.setenv("TEST_API__API_KEY", "true")
        result = _merge_env_vars({}, "TEST_")
        assert result["api"]["api_key"] == "true"
