"""
Interactive ATM menu.

Reads choices line by line, calls the session operations and prints the
results. Business errors are shown as "Error: <message>" and never end the
program. End of input ends the program cleanly.
"""

import argparse
from typing import Callable, List, Optional

from .config import AtmConfig, get_config
from .currency import Currency, decimal_from_string, format_amount
from .errors import AtmError, AuthFailure
from .ledger import Ledger
from .logging_config import get_logger, setup_logging
from .session import AtmSession


USER_MENU = [
    "",
    "--- ATM Menu ---",
    "1) Balance",
    "2) Deposit",
    "3) Withdraw",
    "4) Transfer",
    "5) Mini-Statement",
    "6) Change PIN",
    "7) Logout",
]


class AtmCli:
    """Text menu driver over a ledger"""

    def __init__(
        self,
        ledger: Ledger,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
        config: Optional[AtmConfig] = None
    ):
        self.ledger = ledger
        self.config = config or get_config()
        self.currency = Currency.from_code(self.config.currency)
        self._input = input_func
        self._output = output
        self.logger = get_logger("atm.cli")

    def run(self) -> None:
        self._output("=== Welcome to Simple ATM ===")
        try:
            while True:
                self._output("")
                self._output("1) Login  2) Exit")
                choice = self._prompt("")
                if choice == "1":
                    session = self.login()
                    if session is not None:
                        self.user_menu(session)
                elif choice == "2":
                    self._output("Thank you for using Simple ATM. Goodbye!")
                    break
                else:
                    self._output("Invalid choice.")
        except EOFError:
            self._output("")
            self.logger.info("Input closed, exiting")

    def login(self) -> Optional[AtmSession]:
        account_id = self._prompt("Account number: ")
        pin = self._prompt("PIN: ")
        try:
            session = AtmSession.login(self.ledger, account_id, pin, self.config)
        except AuthFailure as e:
            self._output(f"{e.message}.")
            return None
        self._output("Login successful.")
        return session

    def user_menu(self, session: AtmSession) -> None:
        actions = {
            "1": self._show_balance,
            "2": self._deposit,
            "3": self._withdraw,
            "4": self._transfer,
            "5": self._mini_statement,
            "6": self._change_pin,
        }
        while True:
            for line in USER_MENU:
                self._output(line)
            choice = self._prompt("Choose: ")
            if choice == "7":
                self._output("Logged out.")
                return
            action = actions.get(choice)
            if action is None:
                self._output("Invalid option.")
                continue
            try:
                action(session)
            except (AtmError, ValueError) as e:
                self.logger.debug("Menu action %s failed: %s", choice, e)
                self._output(f"Error: {e}")

    def _show_balance(self, session: AtmSession) -> None:
        self._output(f"Your Balance: {self._money(session.get_balance())}")

    def _deposit(self, session: AtmSession) -> None:
        session.deposit(self._read_amount("Amount to deposit: "))
        self._output("Deposited successfully.")

    def _withdraw(self, session: AtmSession) -> None:
        session.withdraw(self._read_amount("Amount to withdraw: "))
        self._output("Withdrawn successfully.")

    def _transfer(self, session: AtmSession) -> None:
        dest_id = self._prompt("Target account number: ")
        if self.ledger.lookup(dest_id) is None:
            self._output("No such account.")
            return
        session.transfer(dest_id, self._read_amount("Amount to transfer: "))
        self._output("Transfer successful.")

    def _mini_statement(self, session: AtmSession) -> None:
        self._output("Last transactions:")
        for record in session.mini_statement():
            self._output(record.render(self.currency, self.config.timestamp_format))

    def _change_pin(self, session: AtmSession) -> None:
        session.change_pin(self._prompt("New PIN: "))
        self._output("PIN changed successfully.")

    def _read_amount(self, prompt: str):
        raw = self._prompt(prompt)
        try:
            return decimal_from_string(raw)
        except ValueError:
            raise ValueError("Invalid amount")

    def _prompt(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _money(self, value) -> str:
        return format_amount(value, self.currency)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atm",
        description="Simple ATM: in-memory accounts with an interactive menu",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override ATM_LOG_LEVEL",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to this file instead of stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point"""
    args = build_parser().parse_args(argv)
    config = get_config()

    setup_logging(
        level=args.log_level or config.log_level,
        log_format=config.log_format,
        log_file=args.log_file or config.log_file,
    )

    ledger = Ledger.from_seed(
        config.seed_accounts,
        currency=Currency.from_code(config.currency),
        min_pin_length=config.min_pin_length,
    )
    AtmCli(ledger, config=config).run()
    return 0
