"""
Ledger Module

Directory of all accounts plus the orchestration that spans two of them.
Transfers take both account locks in ascending account_id order, so two
transfers moving money in opposite directions between the same pair can
never deadlock.
"""

from contextlib import ExitStack
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .accounts import Account, DEFAULT_MIN_PIN_LENGTH
from .clock import Clock, system_clock
from .config import SeedAccount
from .currency import Currency, to_amount
from .errors import AccountNotFound, AuthFailure, InvalidTransfer
from .logging_config import get_logger, log_action
from .transactions import TransactionRecord


class Ledger:
    """
    Owns the mapping from account id to Account.

    The mapping is filled at startup and only read afterwards, so lookups
    take no lock.
    """

    def __init__(
        self,
        currency: Currency = Currency.USD,
        clock: Optional[Clock] = None,
        min_pin_length: int = DEFAULT_MIN_PIN_LENGTH
    ):
        self.currency = currency
        self.min_pin_length = min_pin_length
        self._clock = clock or system_clock
        self._accounts: Dict[str, Account] = {}
        self.logger = get_logger("atm.ledger")

    @classmethod
    def from_seed(
        cls,
        seed_accounts: Iterable[SeedAccount],
        currency: Currency = Currency.USD,
        clock: Optional[Clock] = None,
        min_pin_length: int = DEFAULT_MIN_PIN_LENGTH
    ) -> 'Ledger':
        """Build a ledger holding the given seed accounts"""
        ledger = cls(currency=currency, clock=clock, min_pin_length=min_pin_length)
        for seed in seed_accounts:
            ledger.open_account(seed.account_id, seed.pin, seed.initial_balance)
        return ledger

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, account_id: str) -> bool:
        return account_id in self._accounts

    def open_account(self, account_id: str, pin: str, initial_balance=Decimal('0')) -> Account:
        """
        Create an account. Only used while seeding.

        Raises:
            ValueError: If the account id already exists
        """
        if account_id in self._accounts:
            raise ValueError(f"Account {account_id} already exists")

        account = Account(
            account_id=account_id,
            pin=pin,
            initial_balance=initial_balance,
            currency=self.currency,
            clock=self._clock,
            min_pin_length=self.min_pin_length,
        )
        self._accounts[account_id] = account

        log_action(
            self.logger, "info", f"Account opened: {account_id}",
            action="open_account", resource=f"account:{account_id}",
            extra={"initial_balance": str(account.initial_balance)}
        )
        return account

    def account_ids(self) -> List[str]:
        return sorted(self._accounts)

    def lookup(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def get_account(self, account_id: str) -> Account:
        """
        Raises:
            AccountNotFound: If no account has this id
        """
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(f"No such account: {account_id}")
        return account

    def authenticate(self, account_id: str, pin: str) -> Account:
        """
        Return the account if the PIN matches.

        Raises:
            AuthFailure: For an unknown account or a wrong PIN alike
        """
        account = self._accounts.get(account_id)
        if account is None or not account.check_pin(pin):
            log_action(
                self.logger, "warning", "Authentication failed",
                user_id=account_id, action="authenticate"
            )
            raise AuthFailure()

        log_action(
            self.logger, "info", "Authentication succeeded",
            user_id=account_id, action="authenticate"
        )
        return account

    def transfer(
        self,
        source_id: str,
        dest_id: str,
        amount
    ) -> Tuple[TransactionRecord, TransactionRecord]:
        """
        Move funds between two accounts as one indivisible unit.

        Both locks are held while the source is debited, the destination is
        credited and both legs are appended to their logs. If the debit fails
        nothing is written.

        Returns:
            (TRANSFER_OUT record on source, TRANSFER_IN record on destination)

        Raises:
            AccountNotFound: If either account is unknown
            InvalidTransfer: If source and destination are the same account
            InvalidAmount: If amount is not positive
            InsufficientFunds: If the source balance is too low
        """
        source = self.get_account(source_id)
        dest = self.get_account(dest_id)
        if source is dest:
            raise InvalidTransfer()
        amt = to_amount(amount, self.currency)

        first, second = sorted((source, dest), key=lambda a: a.account_id)
        with first.locked(), second.locked():
            out_record = source.transfer_out(amt, dest_id)
            in_record = dest.transfer_in(amt, source_id)

        log_action(
            self.logger, "info", "Transfer completed",
            user_id=source_id, action="transfer",
            resource=f"account:{dest_id}",
            extra={
                "amount": str(amt),
                "source_balance": str(out_record.balance_after),
                "dest_balance": str(in_record.balance_after),
            }
        )
        return out_record, in_record

    def total_holdings(self) -> Decimal:
        """Sum of all balances, read while every account lock is held"""
        accounts = [self._accounts[account_id] for account_id in self.account_ids()]
        with ExitStack() as stack:
            for account in accounts:
                stack.enter_context(account.locked())
            return sum((account.balance for account in accounts), Decimal('0'))

    def reconcile(self, account_id: str) -> bool:
        """
        Check an account's log against its balance.

        Replays the log from the opening record and verifies that every
        balance_after matches the running total and that the final total
        equals the current balance.
        """
        account = self.get_account(account_id)
        balance, records = account.snapshot()

        running = Decimal('0')
        for record in records:
            running += record.signed_amount
            if running != record.balance_after:
                log_action(
                    self.logger, "error", "Reconciliation mismatch",
                    action="reconcile", resource=f"account:{account_id}",
                    extra={"expected": str(running), "recorded": str(record.balance_after)}
                )
                return False
        return running == balance
