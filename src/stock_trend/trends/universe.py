"""Symbol sources for preloading.

A ``SymbolSource`` answers one question: *which symbols should be
preloaded?*  Entries are returned raw; trimming, upper-casing and skipping
blanks is the service's job.

Usage
-----
Fixed list::

    source = StaticSymbolSource(["AAPL", "MSFT"])

Text file, one symbol per line (the classic ``ticker.txt``)::

    source = FileSymbolSource("ticker.txt")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from stock_trend.core.exceptions import SymbolSourceError

logger = logging.getLogger(__name__)


@runtime_checkable
class SymbolSource(Protocol):
    """Protocol for anything that yields an ordered list of raw symbols."""

    def get_symbols(self) -> list[str]: ...  # pragma: no cover


class StaticSymbolSource:
    """Returns a copy of the list passed to the constructor."""

    def __init__(self, symbols: list[str]) -> None:
        self._symbols = list(symbols)

    def get_symbols(self) -> list[str]:
        return list(self._symbols)


class FileSymbolSource:
    """Reads symbols from a text file, one per line. Blank lines are dropped.

    Parameters
    ----------
    path : str | Path
        Location of the file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_symbols(self) -> list[str]:
        """Return the non-blank lines in file order.

        Raises:
            SymbolSourceError: If the file does not exist or cannot be read.
        """
        if not self._path.is_file():
            raise SymbolSourceError(
                f"Symbol file not found: {self._path}",
                context={"path": str(self._path)},
            )
        try:
            text = self._path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SymbolSourceError(
                f"Could not read symbol file {self._path}: {e}",
                context={"path": str(self._path)},
            ) from e

        symbols = [line for line in text.splitlines() if line.strip()]
        logger.info("Read %d symbols from %s", len(symbols), self._path)
        return symbols
