"""
Transaction Record Module

Immutable log entries describing one balance-affecting event on an account.
Records are created once, appended to their account's log and never changed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from .currency import Currency, format_amount


DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


class TransactionKind(Enum):
    """Kinds of balance-affecting events"""
    ACCOUNT_OPENED = "Account Opened"
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    TRANSFER_OUT = "Transfer Out"
    TRANSFER_IN = "Transfer In"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_credit(self) -> bool:
        """Kinds that add to the balance (the opening record included)"""
        return self in (
            TransactionKind.ACCOUNT_OPENED,
            TransactionKind.DEPOSIT,
            TransactionKind.TRANSFER_IN,
        )


@dataclass(frozen=True)
class TransactionRecord:
    """
    One entry in an account's transaction log.

    balance_after is the owning account's balance immediately after the event.
    """
    kind: TransactionKind
    amount: Decimal
    balance_after: Decimal
    timestamp: datetime
    note: str = ""

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if not isinstance(self.balance_after, Decimal):
            object.__setattr__(self, 'balance_after', Decimal(str(self.balance_after)))

        if self.kind == TransactionKind.ACCOUNT_OPENED:
            if self.amount < Decimal('0'):
                raise ValueError("Opening amount cannot be negative")
        elif self.amount <= Decimal('0'):
            raise ValueError("Transaction amount must be positive")

        if self.balance_after < Decimal('0'):
            raise ValueError("Balance after a transaction cannot be negative")

    @property
    def signed_amount(self) -> Decimal:
        """Amount as it affects the balance: negative for debits"""
        return self.amount if self.kind.is_credit else -self.amount

    def render(
        self,
        currency: Currency = Currency.USD,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    ) -> str:
        """Render as '<time> | <kind> | <amount> | Balance: <balance> | <note>'"""
        return " | ".join([
            self.timestamp.strftime(timestamp_format),
            self.kind.label,
            format_amount(self.amount, currency),
            f"Balance: {format_amount(self.balance_after, currency)}",
            self.note,
        ])

    def __str__(self) -> str:
        return self.render()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary"""
        return {
            "kind": self.kind.name,
            "amount": str(self.amount),
            "balance_after": str(self.balance_after),
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
        }
