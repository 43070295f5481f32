"""stock-trend: daily price ingestion and day-over-day trend classification."""

__version__ = "0.1.0"
