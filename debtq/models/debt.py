"""
Core Data Models for debtq

These models define the strict schemas for the debt ledger.
They are designed to:
1. Enforce the record invariants at load and creation time
2. Provide clear validation error messages
3. Round-trip losslessly through the JSON data document
4. Carry the results of settlement back to callers

DESIGN DECISION: Field names are Pythonic, but each field keeps the key
the data document has always used (`type`, `person_name`, `date`, ...)
as its alias, so existing data files keep loading.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


ZERO = Decimal("0")


def generate_id() -> str:
    """Generate a short opaque transaction id."""
    return uuid4().hex[:8]


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a debt relative to the user."""
    BORROWED = "borrowed"  # The user owes the person
    LENT = "lent"          # The person owes the user

    @property
    def opposite(self) -> "TransactionKind":
        return TransactionKind.LENT if self is TransactionKind.BORROWED else TransactionKind.BORROWED


class BalanceStatus(str, Enum):
    """Which way a person's net balance points."""
    OWES_YOU = "owes_you"
    YOU_OWE = "you_owe"
    SETTLED = "settled"


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class DebtTransaction(BaseModel):
    """
    Money borrowed from or lent to a person.

    `amount` is the CURRENTLY OUTSTANDING amount. Settlement shrinks it;
    it never reaches zero while the record is unsettled.

    CRITICAL: Once `settled` is True the record is terminal.
    No settlement operation may touch it again.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    # Identity
    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Opaque unique id, never changes"
    )
    kind: TransactionKind = Field(
        ...,
        alias="type",
        description="Borrowed or lent"
    )
    person: str = Field(
        ...,
        alias="person_name",
        min_length=1,
        max_length=200,
        description="Counterparty name (exact-match grouping key)"
    )

    # Money
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Outstanding amount"
    )
    description: str = Field(
        default="",
        max_length=1000,
        description="What the money was for"
    )

    # Dates
    transaction_date: date = Field(
        ...,
        alias="date",
        description="Date the money changed hands"
    )
    due_date: Optional[date] = Field(
        default=None,
        description="Reminder date, not used by settlement"
    )

    # Settlement
    settled: bool = Field(
        default=False,
        alias="is_settled",
    )
    settled_date: Optional[datetime] = None
    settlement_amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Amount actually settled"
    )
    settlement_note: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="How or why the settlement happened"
    )

    # Audit
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the record was created"
    )

    @model_validator(mode='after')
    def validate_settlement_state(self) -> 'DebtTransaction':
        """A settled record has a settled date, an open one does not."""
        if self.settled and self.settled_date is None:
            raise ValueError("Settled transaction must have a settled date")
        if not self.settled and self.settled_date is not None:
            raise ValueError("Unsettled transaction cannot have a settled date")
        return self

    @property
    def is_open(self) -> bool:
        return not self.settled

    def mark_settled(
        self,
        at: datetime,
        note: Optional[str] = None,
    ) -> None:
        """Settle the whole outstanding amount in place."""
        self.settled_date = at
        self.settled = True
        self.settlement_amount = self.amount
        self.settlement_note = note


class LedgerData(BaseModel):
    """
    The whole persisted document.

    Only `debt_transactions` belongs to the ledger. Any other top-level
    section (expenses, investments, savings...) is kept as-is so a
    load/save cycle never drops data owned by other tools.
    """
    model_config = ConfigDict(extra="allow")

    debt_transactions: list[DebtTransaction] = Field(default_factory=list)


# =============================================================================
# READ MODELS
# =============================================================================

class PersonGroup(BaseModel):
    """Unsettled transactions of one person with their aggregates."""

    person: str
    total_lent: Decimal = ZERO
    total_borrowed: Decimal = ZERO
    lent: list[DebtTransaction] = Field(default_factory=list)
    borrowed: list[DebtTransaction] = Field(default_factory=list)

    @property
    def net_balance(self) -> Decimal:
        """Positive: they owe the user. Negative: the user owes them."""
        return self.total_lent - self.total_borrowed

    @property
    def status(self) -> BalanceStatus:
        if self.net_balance > 0:
            return BalanceStatus.OWES_YOU
        if self.net_balance < 0:
            return BalanceStatus.YOU_OWE
        return BalanceStatus.SETTLED

    @property
    def transactions(self) -> list[DebtTransaction]:
        return self.lent + self.borrowed


class LedgerTotals(BaseModel):
    """Global aggregates over all unsettled transactions."""

    total_lent: Decimal = ZERO
    total_borrowed: Decimal = ZERO
    open_count: int = Field(default=0, ge=0)
    person_count: int = Field(default=0, ge=0)

    @property
    def net_position(self) -> Decimal:
        return self.total_lent - self.total_borrowed


class TransactionSettlement(BaseModel):
    """Outcome of settling one transaction by id."""

    transaction: DebtTransaction = Field(
        ...,
        description="The targeted record after settlement"
    )
    split: Optional[DebtTransaction] = Field(
        default=None,
        description="New settled record created by a partial settlement"
    )

    @property
    def is_split(self) -> bool:
        return self.split is not None

    @property
    def settled_amount(self) -> Decimal:
        if self.split is not None:
            return self.split.amount
        return self.transaction.settlement_amount or ZERO


class PersonSettlement(BaseModel):
    """Outcome of settling an amount against a person's net position."""

    person: str
    dominant_kind: Optional[TransactionKind] = Field(
        default=None,
        description="Side matching the sign of the net balance (None when net was zero)"
    )
    settled_amount: Decimal = Field(
        default=ZERO,
        description="Amount settled on the dominant side"
    )
    net_settled: Decimal = Field(
        default=ZERO,
        description="Requested amount after clamping to the net balance"
    )
    offset_amount: Decimal = Field(
        default=ZERO,
        description="Amount settled on the opposite side"
    )
    settled_ids: list[str] = Field(default_factory=list)
    reduced_ids: list[str] = Field(default_factory=list)
    created_ids: list[str] = Field(default_factory=list)
    split_from: dict[str, str] = Field(
        default_factory=dict,
        description="Original record id of each record in created_ids"
    )

    @property
    def changed(self) -> bool:
        return bool(self.settled_ids or self.reduced_ids or self.created_ids)
