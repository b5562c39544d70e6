"""
Account Management Module

A multi-currency account keeps one balance slot per attached currency.
Every balance is held in base units whatever currency the slot belongs to;
amounts are converted on the way in and out using the slot's CurrencyRate.
"""

from decimal import Decimal
from dataclasses import dataclass
from threading import RLock
from typing import List, Optional, Tuple

from .currency import CurrencyRate, Numeric, to_decimal
from .errors import (
    ConflictError, CurrencyNotFoundError, FormatError, InsufficientFundsError,
    InvalidAmountError, InvalidOwnerError, TransferIncompleteError
)
from .logging_config import get_logger, log_action
from .storage import TokenReader, format_decimal


logger = get_logger("fx_ledger.accounts")


@dataclass
class CurrencyBalance:
    """Balance slot for one currency, expressed in base units"""
    rate: CurrencyRate
    balance: Decimal = Decimal('0')

    @property
    def code(self) -> str:
        return self.rate.code


def _positive_amount(amount: Numeric, operation: str) -> Decimal:
    """Normalize an amount and reject zero or negative values"""
    try:
        value = to_decimal(amount)
    except ValueError as e:
        raise InvalidAmountError(f"{operation} amount is not a valid number: {e}") from None
    if value <= Decimal('0'):
        raise InvalidAmountError(f"{operation} amount must be positive")
    return value


class Account:
    """
    Bank account holding balances in several currencies
    """

    def __init__(self, account_id: int, owner: str):
        if isinstance(account_id, bool) or not isinstance(account_id, int):
            raise TypeError(f"Account id must be an integer, got {account_id!r}")
        if not isinstance(owner, str) or not owner or any(c.isspace() for c in owner):
            raise InvalidOwnerError(f"Owner must be a single non-empty token: {owner!r}")

        self.id = account_id
        self.owner = owner
        self._slots: List[CurrencyBalance] = []
        self._lock = RLock()

    def __repr__(self) -> str:
        return f"Account(id={self.id}, owner={self.owner!r}, currencies={self.currency_codes})"

    @property
    def currency_codes(self) -> Tuple[str, ...]:
        """Attached currency codes in attachment order"""
        with self._lock:
            return tuple(slot.code for slot in self._slots)

    @property
    def balances(self) -> Tuple[CurrencyBalance, ...]:
        """Snapshot of (rate, base balance) slots in attachment order"""
        with self._lock:
            return tuple(CurrencyBalance(slot.rate, slot.balance) for slot in self._slots)

    def _find(self, code: str) -> Optional[CurrencyBalance]:
        for slot in self._slots:
            if slot.code == code:
                return slot
        return None

    def _require(self, code: str, action: str = "lookup") -> CurrencyBalance:
        slot = self._find(code)
        if slot is None:
            log_action(
                logger, "warning", f"Currency {code} not found in account {self.id}",
                account_id=self.id, action=action, resource=code
            )
            raise CurrencyNotFoundError(code, self.id)
        return slot

    def _validated_amount(self, amount: Numeric, action: str) -> Decimal:
        try:
            return _positive_amount(amount, action.capitalize())
        except InvalidAmountError as e:
            log_action(
                logger, "warning", f"Rejected {action} on account {self.id}: {e}",
                account_id=self.id, action=action, extra={"amount": str(amount)}
            )
            raise

    def add_currency(self, rate: CurrencyRate) -> None:
        """
        Attach a currency with a zero balance

        Raises:
            ConflictError: If a currency with the same code is already attached
        """
        with self._lock:
            if self._find(rate.code) is not None:
                raise ConflictError(f"Currency {rate.code} already attached to account {self.id}")
            self._slots.append(CurrencyBalance(rate))

        logger.debug(f"Attached {rate.code} to account {self.id}")

    def get_base_balance(self, code: str) -> Decimal:
        """Balance of a currency slot in base units"""
        with self._lock:
            return self._require(code).balance

    def get_balance(self, code: str) -> Decimal:
        """Balance of a currency slot in that currency's units"""
        with self._lock:
            slot = self._require(code)
            return slot.rate.convert_from_base(slot.balance)

    def deposit(self, amount: Numeric, code: str) -> None:
        """
        Deposit an amount given in the units of `code`

        Raises:
            InvalidAmountError: If amount <= 0
            CurrencyNotFoundError: If the account holds no such currency
        """
        value = self._validated_amount(amount, "deposit")
        with self._lock:
            slot = self._require(code, "deposit")
            base_amount = slot.rate.convert_to_base(value)
            slot.balance += base_amount

        log_action(
            logger, "info", f"Deposited {value} {code} into account {self.id}",
            account_id=self.id, action="deposit", resource=code,
            extra={"amount": str(value), "base_amount": str(base_amount)}
        )

    def withdraw(self, amount: Numeric, code: str) -> Decimal:
        """
        Withdraw an amount given in the units of `code`

        The currency is looked up before the amount is validated, and
        positivity is checked before sufficiency.

        Returns:
            The base amount removed from the balance

        Raises:
            CurrencyNotFoundError: If the account holds no such currency
            InvalidAmountError: If amount <= 0
            InsufficientFundsError: If the base equivalent exceeds the balance
        """
        with self._lock:
            slot = self._require(code, "withdraw")
            value = self._validated_amount(amount, "withdraw")
            base_amount = slot.rate.convert_to_base(value)
            if slot.balance < base_amount:
                log_action(
                    logger, "warning", f"Insufficient funds in account {self.id}",
                    account_id=self.id, action="withdraw", resource=code,
                    extra={"requested": str(base_amount), "available": str(slot.balance)}
                )
                raise InsufficientFundsError(
                    f"Insufficient funds in {code}: requested {base_amount}, available {slot.balance}",
                    requested=base_amount, available=slot.balance
                )
            slot.balance -= base_amount

        log_action(
            logger, "info", f"Withdrew {value} {code} from account {self.id}",
            account_id=self.id, action="withdraw", resource=code,
            extra={"amount": str(value), "base_amount": str(base_amount)}
        )
        return base_amount

    def transfer(self, to_account: 'Account', amount: Numeric,
                 from_code: str, to_code: str) -> None:
        """
        Withdraw `amount` of `from_code` here, then deposit `amount` of
        `to_code` into `to_account`.

        The two legs are not atomic. If the deposit fails after the
        withdraw succeeded, the source stays debited and
        TransferIncompleteError is raised with the withdrawn base amount.

        Raises:
            InvalidAmountError: If amount <= 0
            CurrencyNotFoundError: If the source holds no `from_code`
            InsufficientFundsError: If the source cannot cover the withdraw
            TransferIncompleteError: If the deposit leg failed
        """
        value = self._validated_amount(amount, "transfer")
        withdrawn = self.withdraw(value, from_code)

        try:
            to_account.deposit(value, to_code)
        except Exception as e:
            log_action(
                logger, "error",
                f"Transfer from account {self.id} to account {to_account.id} incomplete: {e}",
                account_id=self.id, action="transfer", resource=to_code,
                extra={"to_account_id": to_account.id, "withdrawn_base": str(withdrawn)}
            )
            raise TransferIncompleteError(
                f"Deposit into account {to_account.id} failed after withdrawing "
                f"{withdrawn} base units from account {self.id}: {e}",
                withdrawn_base=withdrawn, cause=e
            ) from e

        log_action(
            logger, "info", f"Transferred {value} from account {self.id} to account {to_account.id}",
            account_id=self.id, action="transfer",
            extra={"to_account_id": to_account.id, "from_code": from_code, "to_code": to_code}
        )

    def display(self) -> List[str]:
        """Header line followed by one balance line per currency, in attachment order"""
        with self._lock:
            lines = [f"Account ID: {self.id} | Owner: {self.owner}"]
            for slot in self._slots:
                amount = slot.rate.convert_from_base(slot.balance)
                lines.append(f"Balance in {slot.code}: {float(amount):g}")
        return lines

    def serialize(self) -> str:
        """
        Text record: '<id> <owner> <count>' then, per currency, its rate
        record and its base balance with 2 decimals, one per line.
        """
        with self._lock:
            lines = [f"{self.id} {self.owner} {len(self._slots)}"]
            for slot in self._slots:
                lines.append(slot.rate.serialize())
                lines.append(format_decimal(slot.balance))
        return "\n".join(lines) + "\n"

    @classmethod
    def deserialize(cls, record: str) -> 'Account':
        """
        Parse a record produced by serialize()

        Raises:
            FormatError: On any missing, extra or malformed field
        """
        reader = TokenReader(record)
        account = cls.read_from(reader)
        if not reader.at_end():
            raise FormatError(f"Trailing data after account {account.id}")
        return account

    @classmethod
    def read_from(cls, reader: TokenReader) -> 'Account':
        """Read one account record from a token stream"""
        account_id = reader.next_int("account id")
        owner = reader.next_token(f"owner of account {account_id}")
        count = reader.next_int(f"currency count of account {account_id}")
        if count < 0:
            raise FormatError(f"Negative currency count {count} for account {account_id}")

        account = cls(account_id, owner)
        for _ in range(count):
            rate = CurrencyRate.read_from(reader)
            balance = reader.next_decimal(f"balance of {rate.code} in account {account_id}")
            if balance < Decimal('0'):
                raise FormatError(f"Negative balance {balance} for {rate.code} in account {account_id}")
            try:
                account.add_currency(rate)
            except ConflictError as e:
                raise FormatError(str(e)) from e
            account._slots[-1].balance = balance
        return account
