"""Tests for stock_trend.trends.universe."""

import pytest

from stock_trend.core.exceptions import SymbolSourceError
from stock_trend.trends.universe import FileSymbolSource, StaticSymbolSource, SymbolSource


class TestStaticSymbolSource:
    def test_returns_symbols(self):
        assert StaticSymbolSource(["AAPL", "MSFT"]).get_symbols() == ["AAPL", "MSFT"]

    def test_returns_copy(self):
        source = StaticSymbolSource(["AAPL"])
        source.get_symbols().append("MSFT")
        assert source.get_symbols() == ["AAPL"]

    def test_satisfies_protocol(self):
        assert isinstance(StaticSymbolSource([]), SymbolSource)


class TestFileSymbolSource:
    def test_reads_lines_in_order(self, tmp_path):
        path = tmp_path / "ticker.txt"
        path.write_text("AAPL\nMSFT\nGOOG\n")
        assert FileSymbolSource(path).get_symbols() == ["AAPL", "MSFT", "GOOG"]

    def test_blank_lines_dropped_entries_kept_raw(self, tmp_path):
        path = tmp_path / "ticker.txt"
        path.write_text("aapl\n\n   \n msft \r\n")
        assert FileSymbolSource(path).get_symbols() == ["aapl", " msft "]

    def test_byte_order_mark_stripped(self, tmp_path):
        path = tmp_path / "ticker.txt"
        path.write_bytes("\ufeffAAPL\nMSFT\n".encode("utf-8"))
        assert FileSymbolSource(path).get_symbols() == ["AAPL", "MSFT"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ticker.txt"
        path.write_text("")
        assert FileSymbolSource(path).get_symbols() == []

    def test_missing_file_raises(self, tmp_path):
        path = tmp_path / "missing.txt"
        with pytest.raises(SymbolSourceError, match="not found") as exc_info:
            FileSymbolSource(path).get_symbols()
        assert exc_info.value.context["path"] == str(path)

    def test_directory_raises(self, tmp_path):
        with pytest.raises(SymbolSourceError):
            FileSymbolSource(tmp_path).get_symbols()

    def test_path_property(self, tmp_path):
        assert FileSymbolSource(str(tmp_path / "t.txt")).path == tmp_path / "t.txt"

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileSymbolSource(tmp_path / "t.txt"), SymbolSource)
