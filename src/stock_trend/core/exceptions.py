"""Custom exception hierarchy for stock-trend."""

from typing import Any


class StockTrendError(Exception):
    """Base exception for all stock-trend errors.

    All exceptions carry an optional `context` dict for structured error
    metadata that can be logged or serialized without parsing the message.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigError(StockTrendError):
    """Invalid or missing configuration.

    Raised by load_config() during startup. Should be treated as fatal.

    Context keys:
        field: str — the config field that failed validation
        value: Any — the invalid value (redacted for secrets)
    """


class InvalidSymbolError(StockTrendError):
    """A ticker symbol is blank or longer than the allowed length.

    Policy: reject the input. Nothing is fetched or stored.

    Context keys:
        symbol: str — the raw input
    """


class SymbolSourceError(StockTrendError):
    """The symbol list could not be read.

    Context keys:
        path: str — the file that was being read
    """


class ProviderError(StockTrendError):
    """Failed to obtain prices from the market-data provider.

    Policy: not retried here. Preload logs and skips the symbol; the
    interactive trend lookup degrades to a sentinel answer.

    Context keys:
        symbol: str — the symbol being fetched
        url: str — the URL that was being fetched
    """


class ProviderUnavailableError(ProviderError):
    """Transport failure or timeout talking to the provider."""


class ProviderRejectedError(ProviderError):
    """Provider answered with a non-success status.

    Context keys:
        status_code: int — HTTP status code
        response_body: str | None — truncated response for debugging
    """


class MalformedResponseError(ProviderError):
    """Provider payload could not be parsed or carried no closing prices.

    Context keys:
        reason: str — what was wrong with the payload
    """


class StorageError(StockTrendError):
    """Database operation failed.

    Policy: raise immediately and abort the enclosing operation. The failed
    call's transaction is rolled back; earlier calls stay committed.

    Context keys:
        operation: str — "insert", "query", "migrate", etc.
        table: str — the table involved
    """


class DuplicateSymbolError(StorageError):
    """A symbol with the same name already exists.

    Policy: during ingestion this is a lost creation race and counts as
    success (first writer wins).

    Context keys:
        symbol: str — the duplicate name
    """
