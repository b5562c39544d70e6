"""
Ledger Exception Hierarchy

Domain-specific errors for currency, account and ledger operations.
Every failure is raised to the caller; nothing is swallowed or retried.
"""

from decimal import Decimal
from typing import List, Optional


class LedgerError(Exception):
    """Base class for all ledger errors"""
    pass


class InvalidAmountError(LedgerError, ValueError):
    """
    Raised when a transaction amount is zero or negative.
    """
    pass


class InvalidRateError(LedgerError, ValueError):
    """Raised when a currency rate is non-positive or its code is malformed"""
    pass


class InvalidOwnerError(LedgerError, ValueError):
    """Raised when an owner name cannot be stored as a single token"""
    pass


class InsufficientFundsError(LedgerError):
    """
    Raised when a withdrawal (or the withdraw leg of a transfer) exceeds
    the balance held in the requested currency.
    """

    def __init__(self, message: str, requested: Decimal, available: Decimal):
        super().__init__(message)
        self.requested = requested
        self.available = available


class CurrencyNotFoundError(LedgerError, KeyError):
    """Raised when an account holds no currency with the requested code"""

    def __init__(self, code: str, account_id: Optional[int] = None):
        super().__init__(code)
        self.code = code
        self.account_id = account_id

    def __str__(self) -> str:
        if self.account_id is None:
            return f"Currency {self.code} not found"
        return f"Currency {self.code} not found in account {self.account_id}"


class AccountNotFoundError(LedgerError, KeyError):
    """Raised when a ledger holds no account with the requested id"""

    def __init__(self, account_id: int):
        super().__init__(account_id)
        self.account_id = account_id

    def __str__(self) -> str:
        return f"Account {self.account_id} not found"


class ConflictError(LedgerError):
    """
    Raised on a duplicate currency code in an account or duplicate account id in a ledger.

    When raised during a bulk load, `loaded_accounts` lists the accounts added before it.
    """

    def __init__(self, message: str, loaded_accounts: Optional[List] = None):
        super().__init__(message)
        self.loaded_accounts = list(loaded_accounts or [])


class CapacityExceededError(LedgerError):
    """Raised when adding an account to a ledger that is already full"""

    def __init__(self, capacity: int, loaded_accounts: Optional[List] = None):
        super().__init__(f"Maximum accounts reached ({capacity})")
        self.capacity = capacity
        self.loaded_accounts = list(loaded_accounts or [])


class LedgerIOError(LedgerError, OSError):
    """Raised when a ledger file cannot be opened for reading or writing"""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class FormatError(LedgerError, ValueError):
    """
    Raised when a persisted record is malformed or truncated.

    When raised during a bulk load, ``loaded_accounts`` holds the accounts
    that were parsed and added before the bad record. They are not rolled
    back; callers decide whether to discard them.
    """

    def __init__(self, message: str, loaded_accounts: Optional[List] = None):
        super().__init__(message)
        self.loaded_accounts = list(loaded_accounts or [])

    @property
    def loaded_count(self) -> int:
        return len(self.loaded_accounts)


class TransferIncompleteError(LedgerError):
    """
    Raised when the deposit leg of a transfer fails after the withdraw leg
    succeeded. The source account has already been debited by
    ``withdrawn_base`` base units and no compensation was applied.
    """

    def __init__(self, message: str, withdrawn_base: Decimal, cause: Exception):
        super().__init__(message)
        self.withdrawn_base = withdrawn_base
        self.cause = cause
