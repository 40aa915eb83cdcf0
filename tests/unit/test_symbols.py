"""Tests for quotedl.symbols."""

from pathlib import Path

import pytest

from quotedl.symbols import load_symbol_files, load_symbols


class TestLoadSymbols:
    def test_lowercases_and_skips_blank_lines(self, tmp_path: Path):
        path = tmp_path / "symbols.txt"
        path.write_text("AAPL\n\nMsft\n   \nspy\n")
        assert load_symbols(path) == ["aapl", "msft", "spy"]

    def test_strips_whitespace_and_crlf(self, tmp_path: Path):
        path = tmp_path / "symbols.txt"
        path.write_text(" BTC-USD \r\nETH-USD\r\n")
        assert load_symbols(path) == ["btc-usd", "eth-usd"]

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.txt"
        path.write_text("")
        assert load_symbols(path) == []

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_symbols(tmp_path / "missing.txt")


class TestLoadSymbolFiles:
    def test_plain_path(self, tmp_path: Path):
        path = tmp_path / "one.txt"
        path.write_text("AAPL\n")
        assert load_symbol_files(str(path)) == ["aapl"]

    def test_glob_concatenates_in_sorted_order(self, tmp_path: Path):
        (tmp_path / "b.txt").write_text("MSFT\n")
        (tmp_path / "a.txt").write_text("AAPL\nIBM\n")
        (tmp_path / "c.csv").write_text("SPY\n")
        assert load_symbol_files(str(tmp_path / "*.txt")) == ["aapl", "ibm", "msft"]

    def test_question_mark_glob(self, tmp_path: Path):
        (tmp_path / "l1.txt").write_text("a\n")
        (tmp_path / "l2.txt").write_text("b\n")
        assert load_symbol_files(str(tmp_path / "l?.txt")) == ["a", "b"]

    def test_glob_without_matches(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="no symbol files match"):
            load_symbol_files(str(tmp_path / "*.txt"))

    def test_missing_plain_path(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_symbol_files(str(tmp_path / "missing.txt"))
