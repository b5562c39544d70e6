"""
Multi-Currency Ledger

Accounts holding balances in several currencies, converted through a
common base unit, with flat text-file persistence for the whole ledger.
"""

__version__ = "1.0.0"
