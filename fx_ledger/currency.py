"""
Multi-Currency Support Module

Currency codes with their conversion factor to the ledger's base unit.
All arithmetic is done with Decimal; values given as int, float or str
are normalized through their string form.
"""

from decimal import Decimal, InvalidOperation, getcontext
from dataclasses import dataclass
from typing import Union

from .errors import FormatError, InvalidRateError
from .storage import TokenReader, format_decimal, is_zero_when_stored

# Set global decimal context for financial precision
getcontext().prec = 28

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric input to Decimal without binary float artifacts

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to Decimal")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Cannot convert {value!r} to Decimal") from None
    if not value.is_finite():
        raise ValueError(f"Value must be finite, got {value!r}")
    return value


@dataclass(frozen=True)
class CurrencyRate:
    """
    Immutable currency code and conversion factor:
    1 unit of this currency = rate_to_base units of the base currency.
    """
    code: str
    rate_to_base: Decimal

    def __post_init__(self):
        if not isinstance(self.code, str) or not self.code or any(c.isspace() for c in self.code):
            raise InvalidRateError(f"Currency code must be a non-empty token without whitespace: {self.code!r}")

        try:
            rate = to_decimal(self.rate_to_base)
        except ValueError as e:
            raise InvalidRateError(str(e)) from None
        if rate <= Decimal('0'):
            raise InvalidRateError(f"Rate for {self.code} must be positive, got {rate}")
        if is_zero_when_stored(rate):
            raise InvalidRateError(f"Rate for {self.code} is stored as 0.00 and would not reload, got {rate}")
        object.__setattr__(self, 'rate_to_base', rate)

    def convert_to_base(self, amount: Numeric) -> Decimal:
        """Convert an amount in this currency to base units"""
        return to_decimal(amount) * self.rate_to_base

    def convert_from_base(self, amount: Numeric) -> Decimal:
        """Convert base units to an amount in this currency"""
        return to_decimal(amount) / self.rate_to_base

    def serialize(self) -> str:
        """Single-line record: '<code> <rate with 2 decimals>'"""
        return f"{self.code} {format_decimal(self.rate_to_base)}"

    @classmethod
    def deserialize(cls, record: str) -> 'CurrencyRate':
        """
        Parse a record produced by serialize()

        Raises:
            FormatError: If the record is not exactly '<token> <number>'
        """
        reader = TokenReader(record)
        rate = cls.read_from(reader)
        if not reader.at_end():
            raise FormatError(f"Trailing data in currency record: {record!r}")
        return rate

    @classmethod
    def read_from(cls, reader: TokenReader) -> 'CurrencyRate':
        """Read one currency record from a token stream"""
        code = reader.next_token("currency code")
        rate = reader.next_decimal(f"rate of {code}")
        try:
            return cls(code, rate)
        except InvalidRateError as e:
            raise FormatError(str(e)) from e

    def __str__(self) -> str:
        return self.serialize()
