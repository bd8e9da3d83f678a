"""
ATM Error Types

Business-rule failures raised by the core. Every error is local to a single
requested operation and leaves account state untouched; the driver catches
them and shows the message to the user.
"""


class AtmError(ValueError):
    """Base class for ATM business-rule failures"""

    default_message = "ATM operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class InvalidAmount(AtmError):
    """Amount is zero, negative or not a number"""
    default_message = "Amount must be positive"


class InsufficientFunds(AtmError):
    """Withdrawal or transfer exceeds the available balance"""
    default_message = "Insufficient funds"


class InvalidPin(AtmError):
    """New PIN is missing or too short"""
    default_message = "PIN must be at least 4 digits"


class AccountNotFound(AtmError):
    """Target account id is not in the ledger"""
    default_message = "No such account"


class AuthFailure(AtmError):
    """
    Login rejected.

    Raised for both an unknown account and a wrong PIN so callers
    cannot tell which part was wrong.
    """
    default_message = "Invalid account number or PIN"


class InvalidTransfer(AtmError):
    """Structurally invalid transfer, e.g. to the same account"""
    default_message = "Cannot transfer to the same account"
