"""
Ledger Module

Owns a bounded, ordered collection of accounts and persists the whole
collection to a flat text file. Individual transactions go through the
accounts directly; the ledger only aggregates display and bulk save/load.
"""

import sys
from threading import RLock
from typing import Iterator, List, Optional, TextIO, Tuple

from .accounts import Account
from .config import get_config
from .errors import (
    AccountNotFoundError, CapacityExceededError, ConflictError, FormatError
)
from .logging_config import get_logger, log_action
from .storage import PathLike, TokenReader, open_for_write


class Ledger:
    """
    Manages a bounded set of accounts in insertion order
    """

    def __init__(self, capacity: Optional[int] = None, encoding: Optional[str] = None):
        settings = get_config()
        self.capacity = settings.max_accounts if capacity is None else capacity
        if self.capacity < 0:
            raise ValueError(f"Capacity must not be negative, got {self.capacity}")
        self.encoding = encoding or settings.file_encoding

        self._accounts: List[Account] = []
        self._lock = RLock()
        self.logger = get_logger("fx_ledger.ledger")

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts)

    @property
    def accounts(self) -> Tuple[Account, ...]:
        """Snapshot of accounts in insertion order"""
        with self._lock:
            return tuple(self._accounts)

    def add_account(self, account: Account) -> None:
        """
        Append an account to the ledger

        Raises:
            CapacityExceededError: If the ledger is already full
            ConflictError: If an account with the same id is already held
        """
        with self._lock:
            if len(self._accounts) >= self.capacity:
                raise CapacityExceededError(self.capacity)
            if any(existing.id == account.id for existing in self._accounts):
                raise ConflictError(f"Account {account.id} already exists in ledger")
            self._accounts.append(account)

        self.logger.debug(f"Added account {account.id} ({account.owner})")

    def get_account(self, account_id: int) -> Account:
        """
        Look up an account by id

        Raises:
            AccountNotFoundError: If no account has that id
        """
        with self._lock:
            for account in self._accounts:
                if account.id == account_id:
                    return account
        raise AccountNotFoundError(account_id)

    def display_all_accounts(self, out: Optional[TextIO] = None) -> List[str]:
        """
        Write every account's display lines, in insertion order

        Args:
            out: Stream to write to (defaults to sys.stdout)

        Returns:
            All lines written
        """
        stream = out if out is not None else sys.stdout
        with self._lock:
            lines = [line for account in self._accounts for line in account.display()]
        for line in lines:
            stream.write(line + "\n")
        return lines

    def save_accounts_to_file(self, path: PathLike) -> None:
        """
        Write every account record to `path`, truncating existing content

        Raises:
            LedgerIOError: If the file cannot be opened for writing
        """
        with self._lock:
            with open_for_write(path, encoding=self.encoding) as handle:
                for account in self._accounts:
                    handle.write(account.serialize())
            count = len(self._accounts)

        log_action(
            self.logger, "info", f"Saved {count} accounts",
            action="save", resource=str(path), extra={"count": count}
        )

    def load_accounts_from_file(self, path: PathLike) -> List[Account]:
        """
        Read account records from `path` and append them to the ledger

        Reading stops when the input is exhausted at a record boundary, so
        a trailing newline never produces an empty record.

        Returns:
            The accounts added by this call

        Raises:
            LedgerIOError: If the file cannot be opened for reading
            FormatError: If a record is truncated or malformed. Accounts
                loaded before it stay in the ledger and are listed in
                the error's `loaded_accounts`.
            CapacityExceededError, ConflictError: If the ledger fills up or
                an id repeats; `loaded_accounts` is set the same way.
        """
        reader = TokenReader.from_file(path, encoding=self.encoding)
        loaded: List[Account] = []

        with self._lock:
            while not reader.at_end():
                try:
                    account = Account.read_from(reader)
                    self.add_account(account)
                except FormatError as e:
                    self._log_partial_load(path, loaded, e)
                    raise FormatError(
                        f"Malformed record in {path} after {len(loaded)} accounts: {e}",
                        loaded_accounts=loaded
                    ) from e
                except (CapacityExceededError, ConflictError) as e:
                    self._log_partial_load(path, loaded, e)
                    e.loaded_accounts = list(loaded)
                    raise
                loaded.append(account)

        log_action(
            self.logger, "info", f"Loaded {len(loaded)} accounts",
            action="load", resource=str(path), extra={"count": len(loaded)}
        )
        return loaded

    def _log_partial_load(self, path: PathLike, loaded: List[Account], error: Exception) -> None:
        log_action(
            self.logger, "warning", f"Load stopped after {len(loaded)} accounts: {error}",
            action="load", resource=str(path),
            extra={"loaded_ids": [account.id for account in loaded]}
        )


# Name used by callers that know the ledger as an account manager
AccountManager = Ledger
