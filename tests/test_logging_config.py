"""
Tests for structured logging
"""

import json
import logging
import sys

import pytest

from fx_ledger.accounts import Account
from fx_ledger.currency import CurrencyRate
from fx_ledger.errors import (
    CurrencyNotFoundError, InsufficientFundsError, InvalidAmountError, TransferIncompleteError
)
from fx_ledger.logging_config import JSONFormatter, get_logger, log_action, setup_logging


class ListHandler(logging.Handler):
    """Collects records in memory"""

    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a collecting handler to the fx_ledger logger tree"""
    logger = logging.getLogger("fx_ledger")
    handler = ListHandler()
    old_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler
    logger.removeHandler(handler)
    logger.setLevel(old_level)


class TestJSONFormatter:
    """Test JSON log line shape"""

    def test_structured_fields(self):
        """Test custom fields are included and empty ones dropped"""
        logger = logging.getLogger("test.fx_ledger.formatter")
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "Deposited %s", ("10",), None)
        record.account_id = 7
        record.action = "deposit"

        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "test.fx_ledger.formatter"
        assert entry["message"] == "Deposited 10"
        assert entry["account_id"] == 7
        assert entry["action"] == "deposit"
        assert "resource" not in entry
        assert "timestamp" in entry

    def test_exception_included(self):
        """Test exception info is rendered"""
        logger = logging.getLogger("test.fx_ledger.formatter")
        try:
            raise ValueError("bad")
        except ValueError:
            record = logger.makeRecord(logger.name, logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]


class TestSetupLogging:
    """Test logger configuration"""

    def test_setup_is_idempotent(self):
        """Test repeated setup keeps a single handler"""
        name = "test.fx_ledger.setup"
        setup_logging("DEBUG", logger_name=name)
        logger = setup_logging("WARNING", logger_name=name)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_text_format(self):
        """Test the plain text formatter option"""
        logger = setup_logging("INFO", logger_name="test.fx_ledger.text", log_format="text")
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_get_logger(self):
        """Test loggers are shared by name"""
        assert get_logger("fx_ledger.ledger") is logging.getLogger("fx_ledger.ledger")


class TestLogAction:
    """Test structured action logging"""

    def setup_method(self):
        self.logger = logging.getLogger("test.fx_ledger.actions")
        self.logger.propagate = False
        self.handler = ListHandler()
        self.logger.handlers = [self.handler]

    def test_fields_attached(self):
        """Test structured fields end up on the record"""
        self.logger.setLevel(logging.INFO)
        log_action(self.logger, "info", "Saved 2 accounts",
                   action="save", resource="accounts.txt", extra={"count": 2})

        record = self.handler.records[0]
        assert record.getMessage() == "Saved 2 accounts"
        assert record.action == "save"
        assert record.resource == "accounts.txt"
        assert record.extra == {"count": 2}
        assert not hasattr(record, "account_id")

    def test_account_id_zero_kept(self):
        """Test account id 0 is not dropped as falsy"""
        self.logger.setLevel(logging.INFO)
        log_action(self.logger, "info", "Deposited", account_id=0)
        assert self.handler.records[0].account_id == 0

    def test_below_level_skipped(self):
        """Test records under the logger level are not emitted"""
        self.logger.setLevel(logging.WARNING)
        log_action(self.logger, "info", "quiet")
        assert self.handler.records == []


class TestOperationLogging:
    """Test ledger operations emit structured records"""

    def test_deposit_and_rejection_logged(self, captured):
        """Test a deposit logs at INFO and a rejected withdraw at WARNING"""
        account = Account(5, "Eve")
        account.add_currency(CurrencyRate("USD", 1))
        account.deposit(10, "USD")
        with pytest.raises(InsufficientFundsError):
            account.withdraw(20, "USD")

        actions = [(r.levelname, getattr(r, "action", None)) for r in captured.records]
        assert ("INFO", "deposit") in actions
        assert ("WARNING", "withdraw") in actions
        assert all(getattr(r, "account_id", 5) == 5 for r in captured.records)

    def test_invalid_amount_logged(self, captured):
        """Test zero and negative amounts log a warning for each operation"""
        account = Account(5, "Eve")
        account.add_currency(CurrencyRate("USD", 1))
        other = Account(6, "Frank")
        other.add_currency(CurrencyRate("USD", 1))

        with pytest.raises(InvalidAmountError):
            account.deposit(0, "USD")
        with pytest.raises(InvalidAmountError):
            account.withdraw(-1, "USD")
        with pytest.raises(InvalidAmountError):
            account.transfer(other, 0, "USD", "USD")

        warnings = [getattr(r, "action", None) for r in captured.records if r.levelname == "WARNING"]
        assert warnings == ["deposit", "withdraw", "transfer"]

    def test_unknown_currency_logged(self, captured):
        """Test a missing currency logs a warning naming the code"""
        account = Account(5, "Eve")
        account.add_currency(CurrencyRate("USD", 1))

        with pytest.raises(CurrencyNotFoundError):
            account.deposit(5, "EUR")
        with pytest.raises(CurrencyNotFoundError):
            account.withdraw(5, "GBP")

        warnings = [(r.action, r.resource) for r in captured.records if r.levelname == "WARNING"]
        assert warnings == [("deposit", "EUR"), ("withdraw", "GBP")]

    def test_incomplete_transfer_logged(self, captured):
        """Test a failed deposit leg logs at ERROR"""
        alice = Account(1, "Alice")
        alice.add_currency(CurrencyRate("USD", 1))
        alice.deposit(100, "USD")
        bob = Account(2, "Bob")

        with pytest.raises(TransferIncompleteError):
            alice.transfer(bob, 10, "USD", "USD")

        errors = [r for r in captured.records if r.levelname == "ERROR"]
        assert len(errors) == 1
        assert errors[0].action == "transfer"
        assert errors[0].extra["withdrawn_base"] == "10"
