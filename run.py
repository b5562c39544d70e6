#!/usr/bin/env python3
"""
Multi-Currency Ledger Demo

Builds two sample accounts, runs a few transactions, saves the ledger to
a text file and reloads it into a fresh ledger.
"""

import sys

from fx_ledger.accounts import Account
from fx_ledger.config import get_config
from fx_ledger.currency import CurrencyRate
from fx_ledger.errors import LedgerError
from fx_ledger.ledger import Ledger
from fx_ledger.logging_config import setup_logging


def run_demo(path: str) -> Ledger:
    usd = CurrencyRate("USD", "1.0")   # Base currency
    eur = CurrencyRate("EUR", "1.1")   # 1 EUR = 1.1 USD
    gbp = CurrencyRate("GBP", "1.3")   # 1 GBP = 1.3 USD

    ledger = Ledger()

    alice = Account(1, "Alice")
    bob = Account(2, "Bob")
    alice.add_currency(usd)
    alice.add_currency(eur)
    bob.add_currency(usd)
    bob.add_currency(gbp)

    ledger.add_account(alice)
    ledger.add_account(bob)

    transactions = [
        ("deposit 1000 USD", lambda: alice.deposit(1000, "USD")),
        ("withdraw 100 EUR", lambda: alice.withdraw(100, "EUR")),
        ("transfer 200 USD -> GBP", lambda: alice.transfer(bob, 200, "USD", "GBP")),
    ]
    for label, operation in transactions:
        try:
            operation()
        except LedgerError as e:
            print(f"{label} failed: {e}")

    ledger.display_all_accounts()
    ledger.save_accounts_to_file(path)

    reloaded = Ledger()
    reloaded.load_accounts_from_file(path)
    print("Reloaded from", path)
    reloaded.display_all_accounts()
    return reloaded


if __name__ == "__main__":
    settings = get_config()
    setup_logging(settings.log_level, log_format=settings.log_format)

    try:
        run_demo(sys.argv[1] if len(sys.argv) > 1 else settings.ledger_file)
    except LedgerError as e:
        print(f"Error: {e}")
        sys.exit(1)
