"""Storage backend: Protocol definition, SQLite implementation, factory."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import ClassVar, Protocol, runtime_checkable

import aiosqlite

from stock_trend.core.config import StorageConfig
from stock_trend.core.exceptions import DuplicateSymbolError, StorageError
from stock_trend.core.models import (
    MAX_SYMBOL_LENGTH,
    DailyCondition,
    PricePoint,
    StorageBackend,
    Symbol,
    Trend,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class PriceStore(Protocol):
    """Persistence interface for symbols, price history and trend records.

    Every call is its own transaction. Lookups return None when nothing
    matches.
    """

    async def find_symbol(self, name: str) -> Symbol | None: ...
    async def create_symbol(self, name: str) -> Symbol: ...
    async def append_prices(
        self, symbol: Symbol, points: Sequence[PricePoint]
    ) -> int: ...
    async def latest_two_prices(self, symbol: Symbol) -> list[PricePoint]: ...
    async def append_condition(
        self, symbol: Symbol, trend: Trend, observed_at: datetime
    ) -> DailyCondition: ...
    async def latest_condition(self, symbol: Symbol) -> DailyCondition | None: ...
    async def list_symbols(self) -> list[Symbol]: ...
    async def get_prices(self, symbol: Symbol) -> list[PricePoint]: ...
    async def get_conditions(self, symbol: Symbol) -> list[DailyCondition]: ...
    async def get_statistics(self) -> dict: ...
    async def initialize(self) -> None: ...
    async def close(self) -> None: ...
    async def health_check(self) -> bool: ...


class SqlitePriceStore:
    """SQLite implementation of the PriceStore protocol.

    Uses aiosqlite for async access, WAL mode for concurrent reads,
    and a version-tracked migration system. Writes on the shared connection
    are serialized so each call commits or rolls back on its own.
    """

    _MIGRATIONS: ClassVar[dict[int, tuple[str, list[str]]]] = {
        1: (
            "Initial schema",
            [
                """CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT DEFAULT (datetime('now'))
                )""",
                f"""CREATE TABLE IF NOT EXISTS symbols (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE
                        CHECK (length(name) BETWEEN 1 AND {MAX_SYMBOL_LENGTH}),
                    created_at TEXT DEFAULT (datetime('now'))
                )""",
                """CREATE TABLE IF NOT EXISTS price_points (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol_id INTEGER NOT NULL REFERENCES symbols(id),
                    price TEXT NOT NULL,
                    trading_date TEXT NOT NULL
                )""",
                """CREATE TABLE IF NOT EXISTS daily_conditions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol_id INTEGER NOT NULL REFERENCES symbols(id),
                    state TEXT NOT NULL,
                    observed_at TEXT NOT NULL
                )""",
                # Indexes
                "CREATE INDEX IF NOT EXISTS idx_prices_symbol_date ON price_points(symbol_id, trading_date)",
                "CREATE INDEX IF NOT EXISTS idx_conditions_symbol_observed ON daily_conditions(symbol_id, observed_at)",
            ],
        ),
    }

    def __init__(self, config: StorageConfig) -> None:
        self._path = config.sqlite_path
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open connection, enable WAL + FK, run migrations."""
        try:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(self._path)
            self._db.row_factory = aiosqlite.Row
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute("PRAGMA foreign_keys=ON")
            current = await self._get_schema_version()
            await self._apply_migrations(current)
            await self._db.commit()
        except Exception as e:
            raise StorageError(
                f"Failed to initialize SQLite store: {e}",
                context={"operation": "initialize", "path": self._path},
            ) from e

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def health_check(self) -> bool:
        if self._db is None:
            return False
        try:
            async with self._db.execute("SELECT 1") as cursor:
                row = await cursor.fetchone()
            return row is not None
        except Exception:
            return False

    # --- Schema Migration ---

    async def _get_schema_version(self) -> int:
        try:
            async with self._db.execute(
                "SELECT MAX(version) FROM schema_version"
            ) as cursor:
                row = await cursor.fetchone()
            return row[0] if row[0] is not None else 0
        except aiosqlite.OperationalError:
            return 0

    async def _apply_migrations(self, current_version: int) -> None:
        for version in sorted(self._MIGRATIONS.keys()):
            if version <= current_version:
                continue
            desc, statements = self._MIGRATIONS[version]
            logger.info("Applying migration %d: %s", version, desc)
            for sql in statements:
                await self._db.execute(sql)
            await self._db.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageError(
                "Store is not initialized",
                context={"operation": "connect", "path": self._path},
            )
        return self._db

    # --- Symbol Operations ---

    async def find_symbol(self, name: str) -> Symbol | None:
        try:
            async with self._connection().execute(
                "SELECT id, name FROM symbols WHERE name = ?", (name,)
            ) as cursor:
                row = await cursor.fetchone()
            return self._row_to_symbol(row) if row is not None else None
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to find symbol: {e}",
                context={"operation": "query", "table": "symbols", "symbol": name},
            ) from e

    async def create_symbol(self, name: str) -> Symbol:
        db = self._connection()
        async with self._write_lock:
            try:
                cursor = await db.execute(
                    "INSERT INTO symbols (name) VALUES (?)", (name,)
                )
                symbol_id = cursor.lastrowid
                await cursor.close()
                await db.commit()
            except sqlite3.IntegrityError as e:
                await db.rollback()
                if "UNIQUE" in str(e):
                    raise DuplicateSymbolError(
                        f"Symbol already exists: {name}",
                        context={"operation": "insert", "table": "symbols", "symbol": name},
                    ) from e
                raise StorageError(
                    f"Failed to create symbol: {e}",
                    context={"operation": "insert", "table": "symbols", "symbol": name},
                ) from e
            except Exception as e:
                await db.rollback()
                raise StorageError(
                    f"Failed to create symbol: {e}",
                    context={"operation": "insert", "table": "symbols", "symbol": name},
                ) from e
        logger.debug("Created symbol %s (id=%d)", name, symbol_id)
        return Symbol(id=symbol_id, name=name)

    async def list_symbols(self) -> list[Symbol]:
        try:
            async with self._connection().execute(
                "SELECT id, name FROM symbols ORDER BY name"
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._row_to_symbol(r) for r in rows]
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to list symbols: {e}",
                context={"operation": "query", "table": "symbols"},
            ) from e

    # --- Price Operations ---

    async def append_prices(
        self, symbol: Symbol, points: Sequence[PricePoint]
    ) -> int:
        """Insert every point as given. Dates are not deduplicated."""
        if not points:
            return 0
        db = self._connection()
        rows = [
            (symbol.id, str(p.price), p.trading_date.isoformat()) for p in points
        ]
        async with self._write_lock:
            try:
                await db.executemany(
                    """INSERT INTO price_points (symbol_id, price, trading_date)
                       VALUES (?, ?, ?)""",
                    rows,
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                raise StorageError(
                    f"Failed to append prices: {e}",
                    context={
                        "operation": "insert",
                        "table": "price_points",
                        "symbol": symbol.name,
                    },
                ) from e
        logger.info("Stored %d price points for %s", len(rows), symbol.name)
        return len(rows)

    async def latest_two_prices(self, symbol: Symbol) -> list[PricePoint]:
        """Newest first by trading date; the later insert wins a date tie."""
        try:
            async with self._connection().execute(
                """SELECT price, trading_date FROM price_points
                   WHERE symbol_id = ?
                   ORDER BY trading_date DESC, id DESC
                   LIMIT 2""",
                (symbol.id,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._row_to_price_point(r, symbol.name) for r in rows]
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to get latest prices: {e}",
                context={"operation": "query", "table": "price_points"},
            ) from e

    async def get_prices(self, symbol: Symbol) -> list[PricePoint]:
        """Full stored history, oldest first."""
        try:
            async with self._connection().execute(
                """SELECT price, trading_date FROM price_points
                   WHERE symbol_id = ?
                   ORDER BY trading_date ASC, id ASC""",
                (symbol.id,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._row_to_price_point(r, symbol.name) for r in rows]
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to get prices: {e}",
                context={"operation": "query", "table": "price_points"},
            ) from e

    # --- Condition Operations ---

    async def append_condition(
        self, symbol: Symbol, trend: Trend, observed_at: datetime
    ) -> DailyCondition:
        db = self._connection()
        # Stored as UTC text so lexical order matches time order
        observed_at = observed_at.astimezone(timezone.utc)
        async with self._write_lock:
            try:
                await db.execute(
                    """INSERT INTO daily_conditions (symbol_id, state, observed_at)
                       VALUES (?, ?, ?)""",
                    (symbol.id, str(trend), observed_at.isoformat()),
                )
                await db.commit()
            except Exception as e:
                await db.rollback()
                raise StorageError(
                    f"Failed to append condition: {e}",
                    context={
                        "operation": "insert",
                        "table": "daily_conditions",
                        "symbol": symbol.name,
                    },
                ) from e
        return DailyCondition(symbol=symbol.name, trend=trend, observed_at=observed_at)

    async def latest_condition(self, symbol: Symbol) -> DailyCondition | None:
        try:
            async with self._connection().execute(
                """SELECT state, observed_at FROM daily_conditions
                   WHERE symbol_id = ?
                   ORDER BY observed_at DESC, id DESC
                   LIMIT 1""",
                (symbol.id,),
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_condition(row, symbol.name)
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to get latest condition: {e}",
                context={"operation": "query", "table": "daily_conditions"},
            ) from e

    async def get_conditions(self, symbol: Symbol) -> list[DailyCondition]:
        """Recorded trend history, newest first."""
        try:
            async with self._connection().execute(
                """SELECT state, observed_at FROM daily_conditions
                   WHERE symbol_id = ?
                   ORDER BY observed_at DESC, id DESC""",
                (symbol.id,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._row_to_condition(r, symbol.name) for r in rows]
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to get conditions: {e}",
                context={"operation": "query", "table": "daily_conditions"},
            ) from e

    # --- Statistics ---

    async def get_statistics(self) -> dict:
        """Row counts and date coverage for status displays."""
        try:
            db = self._connection()
            async with db.execute("SELECT COUNT(*) FROM symbols") as cursor:
                symbols = (await cursor.fetchone())[0]
            async with db.execute(
                "SELECT COUNT(*), MIN(trading_date), MAX(trading_date) FROM price_points"
            ) as cursor:
                prices, earliest, latest = await cursor.fetchone()
            async with db.execute(
                "SELECT COUNT(*), MAX(observed_at) FROM daily_conditions"
            ) as cursor:
                conditions, last_observed = await cursor.fetchone()
        except Exception as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(
                f"Failed to gather statistics: {e}",
                context={"operation": "query", "table": "*"},
            ) from e
        return {
            "total_symbols": symbols,
            "total_prices": prices,
            "earliest_price_date": earliest,
            "latest_price_date": latest,
            "total_conditions": conditions,
            "latest_observation": last_observed,
        }

    # --- Row Mapping Helpers ---

    @staticmethod
    def _row_to_symbol(row: aiosqlite.Row) -> Symbol:
        return Symbol(id=row["id"], name=row["name"])

    @staticmethod
    def _row_to_price_point(row: aiosqlite.Row, symbol: str) -> PricePoint:
        return PricePoint(
            symbol=symbol,
            price=Decimal(row["price"]),
            trading_date=date.fromisoformat(row["trading_date"]),
        )

    @staticmethod
    def _row_to_condition(row: aiosqlite.Row, symbol: str) -> DailyCondition:
        return DailyCondition(
            symbol=symbol,
            trend=Trend(row["state"]),
            observed_at=datetime.fromisoformat(row["observed_at"]),
        )


async def create_store(config: StorageConfig) -> SqlitePriceStore:
    """Create and initialize a storage backend based on configuration."""
    if config.backend == StorageBackend.SQLITE:
        store = SqlitePriceStore(config)
        await store.initialize()
        return store
    raise StorageError(
        f"Unsupported storage backend: {config.backend}",
        context={"operation": "create_store", "backend": str(config.backend)},
    )
