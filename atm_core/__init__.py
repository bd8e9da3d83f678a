"""
ATM Core

An in-memory automated teller service: accounts with PIN authentication,
deposits, withdrawals, transfers and mini-statements. All money uses Decimal
and every account is safe to drive from many threads at once.
"""

__version__ = "1.0.0"
