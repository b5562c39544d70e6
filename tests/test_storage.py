"""
Tests for the text storage helpers
"""

import pytest
from decimal import Decimal

from fx_ledger.errors import FormatError, LedgerIOError
from fx_ledger.storage import TokenReader, format_decimal, open_for_read, open_for_write


class TestTokenReader:
    """Test positional token reading"""

    def test_tokens_ignore_line_structure(self):
        """Test tokens are read across lines and runs of whitespace"""
        reader = TokenReader("1 Alice\n  2\n\tUSD 1.00\n")

        assert reader.next_int("id") == 1
        assert reader.next_token("owner") == "Alice"
        assert reader.next_int("count") == 2
        assert reader.next_token("code") == "USD"
        assert reader.next_decimal("rate") == Decimal("1.00")
        assert reader.at_end()
        assert reader.position == 5

    def test_empty_input(self):
        """Test blank input is immediately at end"""
        assert TokenReader("").at_end()
        assert TokenReader(" \n\n\t").at_end()

    def test_end_of_input(self):
        """Test reading past the end names the missing field"""
        reader = TokenReader("USD")
        reader.next_token("code")
        with pytest.raises(FormatError, match="rate"):
            reader.next_decimal("rate")

    @pytest.mark.parametrize("token", ["1.5", "abc", "1e3", "1_0", "0x10", "١٢"])
    def test_bad_integer(self, token):
        """Test non-integer tokens are rejected"""
        with pytest.raises(FormatError):
            TokenReader(token).next_int("count")

    @pytest.mark.parametrize("token", ["abc", "nan", "inf", "-Infinity", "1_000.50", "1.0_0", "٣.٥"])
    def test_bad_decimal(self, token):
        """Test non-numeric and non-finite tokens are rejected"""
        with pytest.raises(FormatError):
            TokenReader(token).next_decimal("balance")

    @pytest.mark.parametrize("token,expected", [
        ("+7", Decimal("7")),
        ("-0.50", Decimal("-0.50")),
        (".5", Decimal("0.5")),
        ("2.", Decimal("2")),
        ("1E+3", Decimal("1000")),
    ])
    def test_plain_decimal_forms(self, token, expected):
        """Test the plain numeric spellings still parse"""
        assert TokenReader(token).next_decimal("balance") == expected

    def test_from_file(self, tmp_path):
        """Test reading a whole file"""
        path = tmp_path / "tokens.txt"
        path.write_text("7 Carol 0\n")

        reader = TokenReader.from_file(path)
        assert reader.next_int("id") == 7

    def test_from_missing_file(self, tmp_path):
        """Test a missing file raises LedgerIOError"""
        with pytest.raises(LedgerIOError):
            TokenReader.from_file(tmp_path / "missing.txt")


class TestFileHandles:
    """Test scoped file handles"""

    def test_handle_closed_on_error(self, tmp_path):
        """Test the handle is closed when the body raises"""
        path = tmp_path / "out.txt"
        with pytest.raises(RuntimeError):
            with open_for_write(path) as handle:
                handle.write("partial\n")
                raise RuntimeError("boom")

        assert handle.closed
        assert path.read_text() == "partial\n"

    def test_read_handle_closed(self, tmp_path):
        """Test the read handle is closed after the block"""
        path = tmp_path / "in.txt"
        path.write_text("data")
        with open_for_read(path) as handle:
            assert handle.read() == "data"
        assert handle.closed

    def test_write_failure(self, tmp_path):
        """Test directories cannot be opened for writing"""
        with pytest.raises(LedgerIOError):
            with open_for_write(tmp_path):
                pass


class TestFormatDecimal:
    """Test fixed two-decimal rendering"""

    @pytest.mark.parametrize("value,expected", [
        ("0", "0.00"),
        ("800.0", "800.00"),
        ("0.4329", "0.43"),
        ("0.005", "0.01"),
        ("1.125", "1.13"),
        ("1E+3", "1000.00"),
    ])
    def test_format(self, value, expected):
        """Test rounding half up to two places"""
        assert format_decimal(Decimal(value)) == expected
