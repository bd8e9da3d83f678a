"""
Currency and Amount Handling Module

Handles ISO 4217 currency precision and normalises every monetary value to
Decimal. NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from enum import Enum
import re

from .errors import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

# Largest single amount or opening balance; keeps balances far below the
# context precision so additions are never rounded.
MAX_AMOUNT = Decimal("1000000000.00")

CURRENCY_SYMBOLS = "$€£¥"

_PLAIN_NUMBER = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')
_GROUPED_NUMBER = re.compile(r'^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$')
_DECIMAL_COMMA_NUMBER = re.compile(r'^[+-]?\d+,\d{1,2}$')


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places
    CAD = ("CAD", 2)  # Canadian Dollar, 2 decimal places
    CHF = ("CHF", 2)  # Swiss Franc, 2 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision

    @property
    def quantum(self) -> Decimal:
        """Smallest representable unit, e.g. Decimal('0.01')"""
        return Decimal('0.1') ** self.precision

    @classmethod
    def from_code(cls, code: str) -> 'Currency':
        try:
            return cls[code.upper()]
        except KeyError:
            raise ValueError(f"Unsupported currency: {code}")


def validate_decimal_precision(value: Decimal, currency: Currency) -> Decimal:
    """
    Validate and round decimal to currency precision

    Args:
        value: Decimal to validate
        currency: Currency defining precision

    Returns:
        Properly rounded Decimal
    """
    return value.quantize(currency.quantum, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    Convert Decimal, int or str to Decimal.

    Floats go through str() so 0.1 stays 0.1 rather than its binary expansion.

    Raises:
        InvalidAmount: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r}")
    return result


def to_amount(value, currency: Currency = Currency.USD) -> Decimal:
    """
    Normalise a transaction amount and require it to be positive.

    The value is rounded to the currency precision first, so an amount that
    rounds to zero is rejected as well.

    Raises:
        InvalidAmount: If the amount is not a number, not positive or above
            MAX_AMOUNT
    """
    amount = _bounded(to_decimal(value), currency)
    if amount <= Decimal('0'):
        raise InvalidAmount()
    return amount


def to_balance(value, currency: Currency = Currency.USD) -> Decimal:
    """Normalise an opening balance; zero is allowed, negative is not"""
    balance = _bounded(to_decimal(value), currency)
    if balance < Decimal('0'):
        raise InvalidAmount("Initial balance cannot be negative")
    return balance


def _bounded(value: Decimal, currency: Currency) -> Decimal:
    # Checked before quantize: values needing more digits than the context
    # precision cannot be quantized at all.
    if abs(value) > MAX_AMOUNT:
        raise InvalidAmount(f"Amount must not exceed {MAX_AMOUNT}")
    try:
        return validate_decimal_precision(value, currency)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {value}")


def format_amount(value: Decimal, currency: Currency = Currency.USD) -> str:
    """Format to the currency precision without grouping, e.g. '1000.00'"""
    return f"{value:.{currency.precision}f}"


def decimal_from_string(value: str) -> Decimal:
    """
    Strictly convert user input to Decimal

    Accepts an optional leading currency symbol, comma thousands separators
    ("1,234.56") or a single decimal comma ("123,45"). Exponents, letters and
    any other characters are rejected.

    Args:
        value: String representation of number

    Returns:
        Decimal value

    Raises:
        ValueError: If string cannot be converted to valid Decimal
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = value.strip()
    if clean_value and clean_value[0] in CURRENCY_SYMBOLS:
        clean_value = clean_value[1:].strip()

    if _GROUPED_NUMBER.match(clean_value):
        clean_value = clean_value.replace(',', '')
    elif _DECIMAL_COMMA_NUMBER.match(clean_value):
        clean_value = clean_value.replace(',', '.')

    if not _PLAIN_NUMBER.match(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")
    return Decimal(clean_value)
