"""
Module: ledger_kernel.db.types
Responsibility: Tolerance constants, rounding and the column types
    shared by every model and service.  Centralizes precision, rounding,
    tolerance and currency validation so the same numbers are used everywhere.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - One named constant per tolerance.  BALANCE_TOLERANCE gates engine
      acceptance; DISPLAY_TOLERANCE is the advisory, reporting-level check
      (accounting equation, zero-balance test before account deletion).
    - round_money() is the ONLY sanctioned rounding function.
    - StrictEnum refuses unknown stored values instead of defaulting.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from ledger_kernel.exceptions import UnknownStoredValueError, ValidationFailedError

MONEY_DECIMAL_PLACES = 9
RATE_DECIMAL_PLACES = 18
DEFAULT_ROUNDING = ROUND_HALF_UP

# Engine acceptance: |debits - credits| must be strictly below this.
BALANCE_TOLERANCE = Decimal("1e-9")

# Reporting-level checks (accounting equation, account deletion guard).
DISPLAY_TOLERANCE = Decimal("0.01")

ZERO = Decimal("0")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Coerce an int/str/Decimal to Decimal.

    Floats are rejected: binary floating point cannot represent most
    decimal amounts exactly.
    """
    if isinstance(value, float):
        raise TypeError("Monetary amounts must not be floats; use Decimal or str")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for financial values.
    """
    quantize_str = "1" if decimal_places == 0 else "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def is_zero(value: Decimal, tolerance: Decimal = BALANCE_TOLERANCE) -> bool:
    """True iff abs(value) is strictly below the tolerance."""
    return abs(value) < tolerance


class DecimalText(TypeDecorator):
    """
    Decimal stored as fixed-point text with ``scale`` decimal places.

    pysqlite has no decimal type: a NUMERIC column comes back through a
    binary float and keeps about 15 significant digits.  Text keeps every
    digit.  Money is summed and compared in Python, never in SQL, so the
    column is never used for ordering or arithmetic.
    """

    impl = String(40)
    cache_ok = True

    def __init__(self, scale: int = MONEY_DECIMAL_PLACES):
        super().__init__()
        self.scale = scale

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return format(round_money(to_money(value), self.scale), "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


# ISO 4217 codes accepted for company codes and journal entries.
ISO_4217_CURRENCIES: set[str] = {
    "USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD", "NZD",
    "AED", "BHD", "CNY", "DKK", "EGP", "HKD", "INR", "JOD",
    "KWD", "MAD", "MXN", "NOK", "OMR", "PKR", "PLN", "QAR",
    "SAR", "SEK", "SGD", "TRY", "ZAR",
}


class InvalidCurrencyError(ValidationFailedError):
    """Raised when an unsupported ISO 4217 currency code is provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


def validate_currency(currency: str) -> str:
    """
    Validate a currency code and return it normalized (uppercase, trimmed).

    Raises:
        InvalidCurrencyError: If the currency code is not accepted.
    """
    if not currency or not isinstance(currency, str):
        raise InvalidCurrencyError(str(currency))

    normalized = currency.upper().strip()
    if normalized not in ISO_4217_CURRENCIES:
        raise InvalidCurrencyError(currency)
    return normalized


class StrictEnum(TypeDecorator):
    """
    Enum stored as its string value, parsed strictly on load.

    Contract:
        Binding accepts an enum member or its exact value.  Loading a value
        that is not a member raises UnknownStoredValueError -- there is no
        fallback member, so corrupted rows surface immediately.
    """

    impl = String(30)
    cache_ok = True

    def __init__(self, enum_class: type[Enum], length: int = 30):
        super().__init__(length)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, self.enum_class):
            return value.value
        try:
            return self.enum_class(value).value
        except ValueError:
            raise UnknownStoredValueError(self.enum_class.__name__, str(value)) from None

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return self.enum_class(value)
        except ValueError:
            raise UnknownStoredValueError(self.enum_class.__name__, str(value)) from None
