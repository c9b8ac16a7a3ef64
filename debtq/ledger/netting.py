"""
Netting Calculator

Side-effect-free aggregation over UNSETTLED transactions.

Net balance = total lent - total borrowed.
Positive: the person owes the user. Negative: the user owes the person.
"""

from decimal import Decimal
from typing import Iterable

from debtq.ledger.store import TransactionStore
from debtq.models.debt import (
    ZERO,
    DebtTransaction,
    LedgerTotals,
    TransactionKind,
)


def sum_amounts(transactions: Iterable[DebtTransaction]) -> Decimal:
    return sum((tx.amount for tx in transactions), ZERO)


class NettingCalculator:
    """Per-person and global balances, derived from the store on every call."""

    def __init__(self, store: TransactionStore):
        self._store = store

    def total_lent(self, person: str) -> Decimal:
        return sum_amounts(self._store.open_of_kind(person, TransactionKind.LENT))

    def total_borrowed(self, person: str) -> Decimal:
        return sum_amounts(self._store.open_of_kind(person, TransactionKind.BORROWED))

    def net_balance(self, person: str) -> Decimal:
        return self.total_lent(person) - self.total_borrowed(person)

    def global_lent(self) -> Decimal:
        return sum_amounts(
            tx for tx in self._store.all_unsettled() if tx.kind == TransactionKind.LENT
        )

    def global_borrowed(self) -> Decimal:
        return sum_amounts(
            tx for tx in self._store.all_unsettled() if tx.kind == TransactionKind.BORROWED
        )

    def net_position(self) -> Decimal:
        return self.global_lent() - self.global_borrowed()

    def totals(self) -> LedgerTotals:
        """Dashboard figures in one pass over the open records."""
        lent = ZERO
        borrowed = ZERO
        unsettled = self._store.all_unsettled()
        for tx in unsettled:
            if tx.kind == TransactionKind.LENT:
                lent += tx.amount
            else:
                borrowed += tx.amount
        return LedgerTotals(
            total_lent=lent,
            total_borrowed=borrowed,
            open_count=len(unsettled),
            person_count=len(self._store.persons()),
        )
