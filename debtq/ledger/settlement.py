"""
Settlement Engine

Two ways to settle debts:

PROTOCOL A - settle one transaction by id:
- amount == outstanding: the record is settled in place
- amount <  outstanding: SPLIT. The record keeps the rest and stays open;
  a new, already-settled record carries the settled portion

PROTOCOL B - settle an amount against a person's net position:
- net balance zero with open records: everything is settled in full
- otherwise the side matching the sign of the net balance is "dominant"
  and the other side is "opposite". The opposite side is offset (up to
  the net balance) and the dominant side is charged the requested amount
  plus whatever was offset, so the net balance moves by exactly the
  requested amount.

CRITICAL: Every check runs before the first record is touched.
A rejected call leaves the store exactly as it was.
Settled records are terminal; neither protocol ever selects one.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from debtq.config.settings import AllocationOrder, PartialStrategy
from debtq.ledger.errors import LedgerValidationError, TransactionAlreadySettledError
from debtq.ledger.netting import NettingCalculator, sum_amounts
from debtq.ledger.store import TransactionStore
from debtq.ledger.validation import AmountLike, clean_note, to_amount
from debtq.models.debt import (
    ZERO,
    DebtTransaction,
    PersonSettlement,
    TransactionKind,
    TransactionSettlement,
    generate_id,
)


DEFAULT_PARTIAL_MARKER = " (partial settlement)"
DESCRIPTION_MAX_LENGTH = 1000


class SettlementEngine:
    """
    Applies both settlement protocols to a TransactionStore.

    The engine mutates records but never saves; the caller persists
    after a successful call.
    """

    def __init__(
        self,
        store: TransactionStore,
        netting: Optional[NettingCalculator] = None,
        partial_strategy: PartialStrategy = PartialStrategy.REDUCE,
        allocation_order: AllocationOrder = AllocationOrder.STORAGE,
        partial_marker: str = DEFAULT_PARTIAL_MARKER,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._netting = netting or NettingCalculator(store)
        self._partial_strategy = partial_strategy
        self._allocation_order = allocation_order
        self._partial_marker = partial_marker
        self._clock = clock

    # =========================================================================
    # PROTOCOL A
    # =========================================================================

    def settle_transaction(
        self,
        transaction_id: str,
        amount: AmountLike,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> TransactionSettlement:
        """
        Settle `amount` of one transaction.

        Raises:
            TransactionNotFoundError: Unknown id
            TransactionAlreadySettledError: The record is already settled
            LedgerValidationError: amount <= 0 or above the outstanding amount,
                or a note longer than 1000 characters
        """
        transaction = self._store.get(transaction_id)
        if transaction.settled:
            raise TransactionAlreadySettledError(transaction_id)

        settle_amount = to_amount(amount)
        note = clean_note(note)
        if settle_amount > transaction.amount:
            raise LedgerValidationError(
                f"Cannot settle {settle_amount}: only {transaction.amount} is outstanding",
                field="amount",
            )

        at = at or self._clock()

        if settle_amount == transaction.amount:
            transaction.mark_settled(at, note)
            return TransactionSettlement(transaction=transaction)

        split = self._split(transaction, settle_amount, note, at)
        return TransactionSettlement(transaction=transaction, split=split)

    # =========================================================================
    # PROTOCOL B
    # =========================================================================

    def settle_for_person(
        self,
        person: str,
        amount: AmountLike = 0,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> PersonSettlement:
        """
        Settle `amount` against a person's net balance (0 = everything).

        A person without open transactions is a no-op, not an error.

        Raises:
            LedgerValidationError: amount < 0 or a note longer than 1000 characters
        """
        requested = to_amount(amount, allow_zero=True)
        note = clean_note(note)
        result = PersonSettlement(person=person)

        open_records = self._store.unsettled_for_person(person)
        if not open_records:
            return result

        at = at or self._clock()
        net = self._netting.net_balance(person)

        if net == 0:
            # Lent and borrowed cancel out exactly: close the whole relationship
            result.settled_amount = sum_amounts(
                tx for tx in open_records if tx.kind == TransactionKind.LENT
            )
            for tx in open_records:
                tx.mark_settled(at, note)
                result.settled_ids.append(tx.id)
            return result

        dominant = TransactionKind.LENT if net > 0 else TransactionKind.BORROWED
        net_abs = abs(net)
        target = net_abs if requested == 0 else min(requested, net_abs)

        offset = self._allocate(person, dominant.opposite, net_abs, note, at, result)
        settled = self._allocate(person, dominant, target + offset, note, at, result)

        result.dominant_kind = dominant
        result.net_settled = target
        result.offset_amount = offset
        result.settled_amount = settled
        return result

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _ordered(self, records: list[DebtTransaction]) -> list[DebtTransaction]:
        if self._allocation_order == AllocationOrder.OLDEST_FIRST:
            # sorted() is stable: same-day records keep insertion order
            return sorted(records, key=lambda tx: tx.transaction_date)
        return records

    def _allocate(
        self,
        person: str,
        kind: TransactionKind,
        budget: Decimal,
        note: Optional[str],
        at: datetime,
        result: PersonSettlement,
    ) -> Decimal:
        """
        Walk one side of a person's open records, settling up to `budget`.

        Returns the amount actually allocated.
        """
        allocated = ZERO
        for tx in self._ordered(self._store.open_of_kind(person, kind)):
            remaining = budget - allocated
            if remaining <= 0:
                break

            if tx.amount <= remaining:
                allocated += tx.amount
                tx.mark_settled(at, note)
                result.settled_ids.append(tx.id)
                continue

            allocated += remaining
            if self._partial_strategy == PartialStrategy.SPLIT:
                split = self._split(tx, remaining, note, at)
                result.created_ids.append(split.id)
                result.split_from[split.id] = tx.id
            else:
                tx.amount -= remaining
            result.reduced_ids.append(tx.id)
            break

        return allocated

    def _split(
        self,
        transaction: DebtTransaction,
        amount: Decimal,
        note: Optional[str],
        at: datetime,
    ) -> DebtTransaction:
        """
        Move `amount` of an open record into a new settled record.

        The new record is built before the original is reduced, so a
        failure here leaves the original untouched.
        """
        base = transaction.description[:DESCRIPTION_MAX_LENGTH - len(self._partial_marker)]
        split = DebtTransaction(
            id=self._new_id(),
            kind=transaction.kind,
            person=transaction.person,
            amount=amount,
            description=f"{base}{self._partial_marker}",
            transaction_date=transaction.transaction_date,
            due_date=transaction.due_date,
            settled=True,
            settled_date=at,
            settlement_amount=amount,
            settlement_note=note,
            created_at=at,
        )
        transaction.amount -= amount
        self._store.add(split)
        return split

    def _new_id(self) -> str:
        new_id = generate_id()
        while new_id in self._store:
            new_id = generate_id()
        return new_id
