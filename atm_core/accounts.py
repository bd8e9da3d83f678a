"""
Account Module

A single bank account: balance, PIN and an append-only transaction log.
Balance mutation and log append happen under a per-account RLock, so two
operations on the same account never interleave their read-modify-write.
"""

from contextlib import contextmanager
from decimal import Decimal
from threading import RLock
from typing import Iterator, List, Optional, Tuple

from .clock import Clock, system_clock
from .currency import Currency, to_amount, to_balance
from .errors import InsufficientFunds, InvalidPin
from .logging_config import get_logger, log_action
from .transactions import TransactionKind, TransactionRecord


DEFAULT_MIN_PIN_LENGTH = 4


class Account:
    """
    Bank account with an append-only transaction log.

    The log always starts with an ACCOUNT_OPENED record and every record's
    balance_after equals the balance right after that record's event.
    """

    def __init__(
        self,
        account_id: str,
        pin: str,
        initial_balance=Decimal('0'),
        currency: Currency = Currency.USD,
        clock: Optional[Clock] = None,
        min_pin_length: int = DEFAULT_MIN_PIN_LENGTH
    ):
        if not account_id:
            raise ValueError("Account id is required")

        self.account_id = account_id
        self.currency = currency
        self.min_pin_length = min_pin_length
        self._clock = clock or system_clock
        self._lock = RLock()
        self.logger = get_logger("atm.accounts")

        self._validate_pin(pin)
        self._pin = pin

        self.initial_balance = to_balance(initial_balance, currency)
        self._balance = self.initial_balance
        self._transactions: List[TransactionRecord] = [
            TransactionRecord(
                kind=TransactionKind.ACCOUNT_OPENED,
                amount=self.initial_balance,
                balance_after=self.initial_balance,
                timestamp=self._clock(),
            )
        ]

    def __repr__(self) -> str:
        return f"Account({self.account_id}, balance={self._balance})"

    @property
    def balance(self) -> Decimal:
        with self._lock:
            return self._balance

    @property
    def transactions(self) -> Tuple[TransactionRecord, ...]:
        """Snapshot of the full log in append order"""
        with self._lock:
            return tuple(self._transactions)

    def check_pin(self, candidate: str) -> bool:
        return candidate is not None and self._pin == candidate

    def deposit(self, amount) -> TransactionRecord:
        """
        Add funds and log a DEPOSIT record.

        Raises:
            InvalidAmount: If amount is not positive
        """
        amt = to_amount(amount, self.currency)
        with self._lock:
            self._credit(amt)
            record = self.new_record(TransactionKind.DEPOSIT, amt)
            self._transactions.append(record)

        log_action(
            self.logger, "info", "Deposit completed",
            user_id=self.account_id, action="deposit",
            resource=f"account:{self.account_id}",
            extra={"amount": str(amt), "balance_after": str(record.balance_after)}
        )
        return record

    def withdraw(self, amount) -> TransactionRecord:
        """
        Remove funds and log a WITHDRAWAL record.

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If amount exceeds the balance
        """
        amt = to_amount(amount, self.currency)
        with self._lock:
            self._debit(amt)
            record = self.new_record(TransactionKind.WITHDRAWAL, amt)
            self._transactions.append(record)

        log_action(
            self.logger, "info", "Withdrawal completed",
            user_id=self.account_id, action="withdraw",
            resource=f"account:{self.account_id}",
            extra={"amount": str(amt), "balance_after": str(record.balance_after)}
        )
        return record

    def append_transaction(self, record: TransactionRecord) -> None:
        """
        Attach a pre-built record to the log.

        Used by the ledger for transfer legs after it has moved the funds.
        The record must describe the current state of this account.

        Raises:
            ValueError: If balance_after differs from the current balance or
                the timestamp precedes the last record
        """
        with self._lock:
            if record.balance_after != self._balance:
                raise ValueError(
                    f"Record balance {record.balance_after} does not match "
                    f"account {self.account_id} balance {self._balance}"
                )
            if record.timestamp < self._transactions[-1].timestamp:
                raise ValueError("Record timestamp precedes the last transaction")
            self._transactions.append(record)

    def mini_statement(self, max_items: int) -> List[TransactionRecord]:
        """Last max_items records in append order"""
        if max_items < 0:
            raise ValueError("max_items cannot be negative")
        if max_items == 0:
            return []
        with self._lock:
            return list(self._transactions[-max_items:])

    def change_pin(self, new_pin: str) -> None:
        """
        Replace the PIN. No transaction record is written.

        Raises:
            InvalidPin: If new_pin is missing or too short
        """
        self._validate_pin(new_pin)
        with self._lock:
            self._pin = new_pin

        log_action(
            self.logger, "info", "PIN changed",
            user_id=self.account_id, action="change_pin",
            resource=f"account:{self.account_id}"
        )

    @contextmanager
    def locked(self) -> Iterator['Account']:
        """
        Hold this account's lock across several operations.

        Re-entrant: operations called inside the block take the same lock.
        """
        with self._lock:
            yield self

    def snapshot(self) -> Tuple[Decimal, Tuple[TransactionRecord, ...]]:
        """Balance and log read together under one lock"""
        with self._lock:
            return self._balance, tuple(self._transactions)

    def transfer_out(self, amount, counterparty_id: str) -> TransactionRecord:
        """
        Debit leg of a transfer: remove funds and log TRANSFER_OUT.

        The ledger calls this while holding both accounts' locks.

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If amount exceeds the balance
        """
        amt = to_amount(amount, self.currency)
        with self._lock:
            self._debit(amt)
            record = self.new_record(TransactionKind.TRANSFER_OUT, amt, note=f"To {counterparty_id}")
            self.append_transaction(record)
            return record

    def transfer_in(self, amount, counterparty_id: str) -> TransactionRecord:
        """Credit leg of a transfer: add funds and log TRANSFER_IN"""
        amt = to_amount(amount, self.currency)
        with self._lock:
            self._credit(amt)
            record = self.new_record(TransactionKind.TRANSFER_IN, amt, note=f"From {counterparty_id}")
            self.append_transaction(record)
            return record

    def new_record(self, kind: TransactionKind, amount: Decimal, note: str = "") -> TransactionRecord:
        """
        Build a record stamped with the current balance.

        Timestamps never go backwards within one log: if the clock reads
        earlier than the last record, the last record's time is reused.
        Call with the account lock held.
        """
        with self._lock:
            timestamp = max(self._clock(), self._transactions[-1].timestamp)
            return TransactionRecord(
                kind=kind,
                amount=amount,
                balance_after=self._balance,
                timestamp=timestamp,
                note=note,
            )

    # Balance mutation only; callers hold the lock and append the record.

    def _credit(self, amount: Decimal) -> None:
        with self._lock:
            self._balance = self._balance + amount

    def _debit(self, amount: Decimal) -> None:
        with self._lock:
            if amount > self._balance:
                raise InsufficientFunds()
            self._balance = self._balance - amount

    def _validate_pin(self, pin: Optional[str]) -> None:
        if pin is None or len(pin) < self.min_pin_length:
            raise InvalidPin(f"PIN must be at least {self.min_pin_length} digits")
