"""
Test suite for transaction records

Tests immutability, validation and the text rendering shown on
mini-statements.
"""

import pytest
from dataclasses import FrozenInstanceError
from decimal import Decimal
from datetime import datetime, timezone

from atm_core.currency import Currency
from atm_core.transactions import TransactionKind, TransactionRecord


WHEN = datetime(2024, 3, 15, 14, 7, 42, tzinfo=timezone.utc)


class TestTransactionKind:
    """Test transaction kinds"""

    def test_labels(self):
        """Test display labels"""
        assert TransactionKind.ACCOUNT_OPENED.label == "Account Opened"
        assert TransactionKind.TRANSFER_OUT.label == "Transfer Out"

    def test_credit_kinds(self):
        """Test which kinds add to the balance"""
        assert TransactionKind.DEPOSIT.is_credit
        assert TransactionKind.TRANSFER_IN.is_credit
        assert TransactionKind.ACCOUNT_OPENED.is_credit
        assert not TransactionKind.WITHDRAWAL.is_credit
        assert not TransactionKind.TRANSFER_OUT.is_credit


class TestTransactionRecord:
    """Test TransactionRecord behaviour"""

    def test_record_is_immutable(self):
        """Test records cannot be changed after creation"""
        record = TransactionRecord(TransactionKind.DEPOSIT, Decimal('10.00'), Decimal('110.00'), WHEN)
        with pytest.raises(FrozenInstanceError):
            record.amount = Decimal('20.00')

    def test_amounts_coerced_to_decimal(self):
        """Test non-Decimal amounts are converted via str"""
        record = TransactionRecord(TransactionKind.DEPOSIT, "10.10", 110, WHEN)
        assert record.amount == Decimal('10.10')
        assert record.balance_after == Decimal('110')

    def test_non_positive_amount_rejected(self):
        """Test balance events must move a positive amount"""
        with pytest.raises(ValueError, match="must be positive"):
            TransactionRecord(TransactionKind.WITHDRAWAL, Decimal('0'), Decimal('10.00'), WHEN)

    def test_opening_record_may_be_zero(self):
        """Test an empty account can be opened"""
        record = TransactionRecord(TransactionKind.ACCOUNT_OPENED, Decimal('0'), Decimal('0'), WHEN)
        assert record.signed_amount == Decimal('0')

    def test_negative_balance_rejected(self):
        """Test no record can describe a negative balance"""
        with pytest.raises(ValueError, match="cannot be negative"):
            TransactionRecord(TransactionKind.WITHDRAWAL, Decimal('5'), Decimal('-1'), WHEN)

    def test_signed_amount(self):
        """Test debit kinds carry a negative signed amount"""
        out = TransactionRecord(TransactionKind.TRANSFER_OUT, Decimal('100'), Decimal('900'), WHEN)
        assert out.signed_amount == Decimal('-100')

    def test_render(self):
        """Test the mini-statement line format"""
        record = TransactionRecord(
            TransactionKind.TRANSFER_OUT, Decimal('100'), Decimal('900'), WHEN, note="To 1002"
        )
        assert str(record) == "2024-03-15 14:07 | Transfer Out | 100.00 | Balance: 900.00 | To 1002"

    def test_render_empty_note_and_precision(self):
        """Test rendering with no note and a zero-precision currency"""
        record = TransactionRecord(TransactionKind.DEPOSIT, Decimal('500'), Decimal('1500'), WHEN)
        assert record.render(Currency.JPY) == "2024-03-15 14:07 | Deposit | 500 | Balance: 1500 | "
        assert record.render(timestamp_format="%H:%M:%S").startswith("14:07:42 | Deposit")

    def test_to_dict(self):
        """Test JSON-friendly serialization"""
        record = TransactionRecord(
            TransactionKind.TRANSFER_IN, Decimal('25.50'), Decimal('525.50'), WHEN, note="From 1001"
        )
        assert record.to_dict() == {
            "kind": "TRANSFER_IN",
            "amount": "25.50",
            "balance_after": "525.50",
            "timestamp": "2024-03-15T14:07:42+00:00",
            "note": "From 1001",
        }
