"""
Input Validation for Ledger Operations

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
surrounding whitespace. Bad input is rejected with LedgerValidationError
before any record is touched.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from debtq.ledger.errors import LedgerValidationError
from debtq.models.debt import TransactionKind


AmountLike = Union[Decimal, int, float, str]
DateLike = Union[date, datetime, str]


def to_amount(
    value: AmountLike,
    field: str = "amount",
    allow_zero: bool = False,
) -> Decimal:
    """
    Convert user input to a Decimal amount.

    Floats go through str() so 0.1 stays 0.1 rather than its binary expansion.
    """
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be a number, got {value!r}", field=field)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise LedgerValidationError(f"{field} is not a number: {value!r}", field=field)
    else:
        raise LedgerValidationError(f"{field} must be a number, got {type(value).__name__}", field=field)

    if not amount.is_finite():
        raise LedgerValidationError(f"{field} must be a finite number", field=field)
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "zero or greater" if allow_zero else "greater than zero"
        raise LedgerValidationError(f"{field} must be {qualifier}, got {amount}", field=field)
    return amount


def parse_kind(value: Union[TransactionKind, str]) -> TransactionKind:
    """Accept an enum member or its value ("borrowed" / "lent")."""
    if isinstance(value, TransactionKind):
        return value
    if isinstance(value, str):
        try:
            return TransactionKind(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(k.value for k in TransactionKind)
    raise LedgerValidationError(
        f"Unknown transaction kind: {value!r} (expected one of: {allowed})",
        field="kind",
    )


def parse_date(value: Optional[DateLike], field: str = "date") -> Optional[date]:
    """Accept a date, a datetime (its date part) or an ISO string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise LedgerValidationError(f"{field} is not a valid date (YYYY-MM-DD): {value!r}", field=field)
    raise LedgerValidationError(f"{field} must be a date, got {type(value).__name__}", field=field)


def clean_person(name: str) -> str:
    """Person names are exact-match keys; only surrounding whitespace is trimmed."""
    if not isinstance(name, str) or not name.strip():
        raise LedgerValidationError("Person name is required", field="person")
    return name.strip()


NOTE_MAX_LENGTH = 1000


def clean_note(note: Optional[str]) -> Optional[str]:
    """Settlement notes are optional free text, stored as given after trimming."""
    if note is None:
        return None
    if not isinstance(note, str):
        raise LedgerValidationError(f"note must be text, got {type(note).__name__}", field="note")
    note = note.strip()
    if len(note) > NOTE_MAX_LENGTH:
        raise LedgerValidationError(
            f"note must be at most {NOTE_MAX_LENGTH} characters, got {len(note)}",
            field="note",
        )
    return note or None
