"""
Transaction Store

Holds every debt transaction in insertion order and answers the
ledger's lookups by linear scan. Personal ledgers hold at most a few
thousand records, so no indexing beyond an id map is needed.

The store never persists anything. Whoever mutates it saves afterwards.
"""

from typing import Iterator, Optional

from debtq.ledger.errors import TransactionNotFoundError
from debtq.models.debt import DebtTransaction, TransactionKind
from debtq.services.storage.interface import DuplicateError


class TransactionStore:
    """
    Ordered collection of debt transactions.

    Wraps (and mutates) the list it is given, so the owning LedgerData
    document always sees the current records.
    """

    def __init__(self, transactions: Optional[list[DebtTransaction]] = None):
        self._transactions = transactions if transactions is not None else []
        self._by_id: dict[str, DebtTransaction] = {}
        for tx in self._transactions:
            if tx.id in self._by_id:
                raise DuplicateError(f"Duplicate transaction id: {tx.id}")
            self._by_id[tx.id] = tx

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[DebtTransaction]:
        return iter(list(self._transactions))

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._by_id

    def add(self, transaction: DebtTransaction) -> DebtTransaction:
        """Append a transaction. Ids must be unique."""
        if transaction.id in self._by_id:
            raise DuplicateError(f"Duplicate transaction id: {transaction.id}")
        self._transactions.append(transaction)
        self._by_id[transaction.id] = transaction
        return transaction

    def find_by_id(self, transaction_id: str) -> Optional[DebtTransaction]:
        return self._by_id.get(transaction_id)

    def get(self, transaction_id: str) -> DebtTransaction:
        """Like find_by_id, but a missing id is an error."""
        transaction = self._by_id.get(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def delete_by_id(self, transaction_id: str) -> DebtTransaction:
        """Remove a transaction (used to undo mistaken entries, never by settlement)."""
        transaction = self.get(transaction_id)
        self._transactions.remove(transaction)
        del self._by_id[transaction_id]
        return transaction

    def all(self) -> list[DebtTransaction]:
        return list(self._transactions)

    def all_unsettled(self) -> list[DebtTransaction]:
        return [tx for tx in self._transactions if not tx.settled]

    def all_settled(self) -> list[DebtTransaction]:
        return [tx for tx in self._transactions if tx.settled]

    def all_for_person(self, person: str) -> list[DebtTransaction]:
        """Settled and unsettled transactions of one person."""
        return [tx for tx in self._transactions if tx.person == person]

    def unsettled_for_person(self, person: str) -> list[DebtTransaction]:
        return [
            tx for tx in self._transactions
            if tx.person == person and not tx.settled
        ]

    def open_of_kind(self, person: str, kind: TransactionKind) -> list[DebtTransaction]:
        """Unsettled transactions of one person in one direction."""
        return [
            tx for tx in self._transactions
            if tx.person == person and tx.kind == kind and not tx.settled
        ]

    def persons(self, include_settled: bool = False) -> list[str]:
        """Distinct person names in first-seen order."""
        seen: dict[str, None] = {}
        for tx in self._transactions:
            if include_settled or not tx.settled:
                seen.setdefault(tx.person, None)
        return list(seen)
