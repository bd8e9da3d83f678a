"""
Test suite for ledger module

Tests account directory lookups, authentication and transfer orchestration.
CRITICAL: Validates that transfers are atomic, never deadlock and never
create or destroy money.
"""

import pytest
import random
import threading
from decimal import Decimal

from atm_core.clock import ManualClock
from atm_core.config import SeedAccount, default_seed_accounts
from atm_core.currency import Currency
from atm_core.errors import (
    AccountNotFound, AuthFailure, InsufficientFunds, InvalidAmount, InvalidPin,
    InvalidTransfer
)
from atm_core.ledger import Ledger
from atm_core.transactions import TransactionKind


class TestLedgerDirectory:
    """Test seeding and lookups"""

    def setup_method(self):
        self.ledger = Ledger.from_seed(default_seed_accounts(), clock=ManualClock())

    def test_seeded_accounts(self):
        """Test the default seed creates three accounts"""
        assert len(self.ledger) == 3
        assert self.ledger.account_ids() == ["1001", "1002", "1003"]
        assert self.ledger.lookup("1001").balance == Decimal('1000.00')
        assert self.ledger.lookup("1002").balance == Decimal('500.00')
        assert self.ledger.lookup("1003").balance == Decimal('2000.00')
        assert "1002" in self.ledger

    def test_lookup_unknown(self):
        """Test lookup of an unknown id returns None"""
        assert self.ledger.lookup("9999") is None
        assert "9999" not in self.ledger

    def test_get_account_unknown(self):
        """Test get_account raises AccountNotFound"""
        with pytest.raises(AccountNotFound, match="9999"):
            self.ledger.get_account("9999")

    def test_duplicate_account_rejected(self):
        """Test account ids are unique"""
        with pytest.raises(ValueError, match="already exists"):
            self.ledger.open_account("1001", "0000", Decimal('1.00'))

    def test_accounts_share_ledger_currency(self):
        """Test accounts use the ledger's currency precision"""
        ledger = Ledger.from_seed(
            [SeedAccount(account_id="Y1", pin="1234", initial_balance=Decimal('100.4'))],
            currency=Currency.JPY,
        )
        account = ledger.get_account("Y1")
        assert account.currency == Currency.JPY
        assert account.balance == Decimal('100')


class TestAuthentication:
    """Test login against the ledger"""

    def setup_method(self):
        self.ledger = Ledger.from_seed(default_seed_accounts())

    def test_valid_login(self):
        """Test correct id and PIN return the account"""
        account = self.ledger.authenticate("1001", "1234")
        assert account is self.ledger.lookup("1001")

    def test_unknown_account_and_wrong_pin_look_the_same(self):
        """Test both failure causes give one generic error"""
        with pytest.raises(AuthFailure) as unknown:
            self.ledger.authenticate("9999", "1234")
        with pytest.raises(AuthFailure) as wrong_pin:
            self.ledger.authenticate("1001", "0000")

        assert str(unknown.value) == str(wrong_pin.value)
        assert str(unknown.value) == "Invalid account number or PIN"

    def test_login_after_pin_change(self):
        """Test a changed PIN is required at the next login"""
        self.ledger.lookup("1002").change_pin("5555")
        assert self.ledger.authenticate("1002", "5555").account_id == "1002"
        with pytest.raises(AuthFailure):
            self.ledger.authenticate("1002", "2222")

    def test_failed_pin_change_keeps_old_pin(self):
        """Test a rejected 3-character PIN leaves login unchanged"""
        with pytest.raises(InvalidPin, match="at least 4"):
            self.ledger.lookup("1002").change_pin("123")
        assert self.ledger.authenticate("1002", "2222").account_id == "1002"


class TestTransfer:
    """Test transfer orchestration"""

    def setup_method(self):
        self.clock = ManualClock()
        self.ledger = Ledger.from_seed(default_seed_accounts(), clock=self.clock)
        self.a = self.ledger.lookup("1001")
        self.b = self.ledger.lookup("1002")

    def test_transfer_moves_funds_and_logs_both_legs(self):
        """Test transfer(A, B, 100) from 1000/500"""
        self.clock.advance(minutes=5)
        out_record, in_record = self.ledger.transfer("1001", "1002", Decimal('100'))

        assert self.a.balance == Decimal('900.00')
        assert self.b.balance == Decimal('600.00')

        assert len(self.a.transactions) == 2
        assert self.a.transactions[-1] is out_record
        assert out_record.kind == TransactionKind.TRANSFER_OUT
        assert out_record.amount == Decimal('100.00')
        assert out_record.balance_after == Decimal('900.00')
        assert "1002" in out_record.note
        assert out_record.timestamp == self.clock()

        assert len(self.b.transactions) == 2
        assert self.b.transactions[-1] is in_record
        assert in_record.kind == TransactionKind.TRANSFER_IN
        assert in_record.amount == Decimal('100.00')
        assert in_record.balance_after == Decimal('600.00')
        assert "1001" in in_record.note

    def test_transfer_notes(self):
        """Test transfer notes name the counterparty"""
        out_record, in_record = self.ledger.transfer("1001", "1002", Decimal('1.00'))
        assert out_record.note == "To 1002"
        assert in_record.note == "From 1001"

    def test_insufficient_funds_is_atomic(self):
        """Test a failed withdraw leg leaves both accounts untouched"""
        with pytest.raises(InsufficientFunds):
            self.ledger.transfer("1002", "1001", Decimal('500.01'))

        assert self.a.balance == Decimal('1000.00')
        assert self.b.balance == Decimal('500.00')
        assert len(self.a.transactions) == 1
        assert len(self.b.transactions) == 1

    def test_self_transfer_rejected(self):
        """Test transfer(A, A, 50) fails and leaves A unchanged"""
        with pytest.raises(InvalidTransfer):
            self.ledger.transfer("1001", "1001", Decimal('50'))

        assert self.a.balance == Decimal('1000.00')
        assert len(self.a.transactions) == 1

    def test_unknown_destination(self):
        """Test a missing destination raises AccountNotFound"""
        with pytest.raises(AccountNotFound):
            self.ledger.transfer("1001", "4040", Decimal('10'))
        assert self.a.balance == Decimal('1000.00')

    def test_unknown_source(self):
        """Test a missing source raises AccountNotFound"""
        with pytest.raises(AccountNotFound):
            self.ledger.transfer("4040", "1001", Decimal('10'))

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-10'), "x", "1" + "0" * 30])
    def test_invalid_amount(self, amount):
        """Test non-positive amounts are rejected with no effect"""
        with pytest.raises(InvalidAmount):
            self.ledger.transfer("1001", "1002", amount)
        assert self.a.balance == Decimal('1000.00')
        assert self.b.balance == Decimal('500.00')

    def test_reconcile_after_activity(self):
        """Test logs still reconcile with balances after mixed activity"""
        self.a.deposit(Decimal('10.00'))
        self.ledger.transfer("1001", "1002", Decimal('250.00'))
        self.b.withdraw(Decimal('50.00'))
        self.ledger.transfer("1002", "1003", Decimal('700.00'))

        for account_id in self.ledger.account_ids():
            assert self.ledger.reconcile(account_id)

    def test_total_holdings_conserved(self):
        """Test transfers never change the total held"""
        before = self.ledger.total_holdings()
        self.ledger.transfer("1001", "1002", Decimal('100.00'))
        self.ledger.transfer("1003", "1001", Decimal('42.42'))
        assert self.ledger.total_holdings() == before == Decimal('3500.00')


class TestTransferConcurrency:
    """Test transfers under concurrent load"""

    def _run(self, threads):
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        assert not any(t.is_alive() for t in threads), "transfer threads deadlocked"

    def test_opposite_direction_transfers_do_not_deadlock(self):
        """Test A->B and B->A in parallel finish with exact totals"""
        ledger = Ledger.from_seed([
            SeedAccount(account_id="A", pin="1111", initial_balance=Decimal('10000.00')),
            SeedAccount(account_id="B", pin="2222", initial_balance=Decimal('10000.00')),
        ])
        rounds = 500
        x = Decimal('3.00')
        y = Decimal('2.00')

        def a_to_b():
            for _ in range(rounds):
                ledger.transfer("A", "B", x)

        def b_to_a():
            for _ in range(rounds):
                ledger.transfer("B", "A", y)

        self._run([threading.Thread(target=a_to_b) for _ in range(4)] +
                  [threading.Thread(target=b_to_a) for _ in range(4)])

        net = (x - y) * rounds * 4
        assert ledger.get_account("A").balance == Decimal('10000.00') - net
        assert ledger.get_account("B").balance == Decimal('10000.00') + net
        assert ledger.reconcile("A")
        assert ledger.reconcile("B")
        assert len(ledger.get_account("A").transactions) == 1 + rounds * 8

    def test_mixed_workload_conserves_money(self):
        """Test random transfers plus deposits and withdrawals balance out"""
        ledger = Ledger.from_seed(default_seed_accounts())
        ids = ledger.account_ids()
        deposited = []
        withdrawn = []
        lock = threading.Lock()
        start_total = ledger.total_holdings()

        def worker(seed):
            rng = random.Random(seed)
            for _ in range(300):
                amount = Decimal(rng.randint(1, 5000)).scaleb(-2)
                op = rng.random()
                try:
                    if op < 0.6:
                        src, dst = rng.sample(ids, 2)
                        ledger.transfer(src, dst, amount)
                    elif op < 0.8:
                        ledger.get_account(rng.choice(ids)).deposit(amount)
                        with lock:
                            deposited.append(amount)
                    else:
                        ledger.get_account(rng.choice(ids)).withdraw(amount)
                        with lock:
                            withdrawn.append(amount)
                except InsufficientFunds:
                    pass

        self._run([threading.Thread(target=worker, args=(i,)) for i in range(8)])

        end_total = ledger.total_holdings()
        assert end_total == start_total + sum(deposited, Decimal('0')) - sum(withdrawn, Decimal('0'))
        for account_id in ids:
            account = ledger.get_account(account_id)
            assert account.balance >= Decimal('0')
            assert ledger.reconcile(account_id)
