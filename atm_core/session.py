"""
ATM Session Module

The handle a driver holds after login. Each call is independently
authorised by the account the session was opened for; the core keeps no
other session state.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from .accounts import Account
from .config import AtmConfig, get_config
from .errors import AtmError
from .ledger import Ledger
from .logging_config import get_logger, log_action
from .transactions import TransactionRecord


class AtmSession:
    """Operations available to an authenticated account holder"""

    def __init__(self, ledger: Ledger, account: Account, config: Optional[AtmConfig] = None):
        self.ledger = ledger
        self.account = account
        self.config = config or get_config()
        self.logger = get_logger("atm.session")

    @classmethod
    def login(
        cls,
        ledger: Ledger,
        account_id: str,
        pin: str,
        config: Optional[AtmConfig] = None
    ) -> 'AtmSession':
        """
        Raises:
            AuthFailure: If the account id or PIN is wrong
        """
        return cls(ledger, ledger.authenticate(account_id, pin), config)

    @property
    def account_id(self) -> str:
        return self.account.account_id

    def get_balance(self) -> Decimal:
        return self.account.balance

    def deposit(self, amount) -> TransactionRecord:
        try:
            return self.account.deposit(amount)
        except AtmError as e:
            self._log_rejected("deposit", e)
            raise

    def withdraw(self, amount) -> TransactionRecord:
        try:
            return self.account.withdraw(amount)
        except AtmError as e:
            self._log_rejected("withdraw", e)
            raise

    def transfer(self, dest_id: str, amount) -> Tuple[TransactionRecord, TransactionRecord]:
        try:
            return self.ledger.transfer(self.account_id, dest_id, amount)
        except AtmError as e:
            self._log_rejected("transfer", e, target=dest_id)
            raise

    def mini_statement(self, max_items: Optional[int] = None) -> List[TransactionRecord]:
        if max_items is None:
            max_items = self.config.mini_statement_size
        return self.account.mini_statement(max_items)

    def change_pin(self, new_pin: str) -> None:
        try:
            self.account.change_pin(new_pin)
        except AtmError as e:
            self._log_rejected("change_pin", e)
            raise

    def _log_rejected(self, action: str, error: AtmError, target: Optional[str] = None) -> None:
        extra = {"error": type(error).__name__, "reason": error.message}
        if target:
            extra["target"] = target
        log_action(
            self.logger, "warning", f"Operation rejected: {action}",
            user_id=self.account_id, action=action,
            resource=f"account:{self.account_id}", extra=extra
        )
