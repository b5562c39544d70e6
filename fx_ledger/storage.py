"""
Storage Backend Module

Flat text persistence for the ledger. Records are whitespace-separated
tokens read positionally, so the reader works on a token stream rather
than on lines. All monetary values are written as fixed 2-decimal strings
and parsed back into Decimal.
"""

from contextlib import contextmanager
import re
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Iterator, List, TextIO, Union

from .errors import FormatError, LedgerIOError


PathLike = Union[str, Path]

TWO_PLACES = Decimal("0.01")

INT_TOKEN = re.compile(r"[+-]?[0-9]+")
DECIMAL_TOKEN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class TokenReader:
    """Positional token stream over persisted ledger text"""

    def __init__(self, text: str):
        self._tokens: List[str] = text.split()
        self._pos = 0

    @classmethod
    def from_file(cls, path: PathLike, encoding: str = "utf-8") -> "TokenReader":
        """Read a whole ledger file; the handle is closed before parsing starts"""
        with open_for_read(path, encoding=encoding) as handle:
            return cls(handle.read())

    @property
    def position(self) -> int:
        return self._pos

    def at_end(self) -> bool:
        """True when no tokens remain"""
        return self._pos >= len(self._tokens)

    def next_token(self, field: str) -> str:
        if self.at_end():
            raise FormatError(f"Unexpected end of input while reading {field}")
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def next_int(self, field: str) -> int:
        token = self.next_token(field)
        if not INT_TOKEN.fullmatch(token):
            raise FormatError(f"Expected integer for {field}, got {token!r}")
        return int(token)

    def next_decimal(self, field: str) -> Decimal:
        token = self.next_token(field)
        if not DECIMAL_TOKEN.fullmatch(token):
            raise FormatError(f"Expected number for {field}, got {token!r}")
        return Decimal(token)


@contextmanager
def open_for_read(path: PathLike, encoding: str = "utf-8") -> Iterator[TextIO]:
    """Open a ledger file for reading, translating OS failures to LedgerIOError"""
    try:
        handle = open(path, "r", encoding=encoding)
    except OSError as e:
        raise LedgerIOError(f"Unable to open file for reading: {path}", str(path)) from e
    with handle:
        yield handle


@contextmanager
def open_for_write(path: PathLike, encoding: str = "utf-8") -> Iterator[TextIO]:
    """Open (and truncate) a ledger file for writing, translating OS failures to LedgerIOError"""
    try:
        handle = open(path, "w", encoding=encoding)
    except OSError as e:
        raise LedgerIOError(f"Unable to open file for writing: {path}", str(path)) from e
    with handle:
        yield handle


def format_decimal(value: Decimal) -> str:
    """Render a value the way the file format stores it (fixed 2 decimals)"""
    return f"{value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP):f}"


def is_zero_when_stored(value: Decimal) -> bool:
    """True when a positive value would be written as 0.00"""
    return abs(value) < TWO_PLACES / 2
