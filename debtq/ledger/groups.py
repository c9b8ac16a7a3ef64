"""
Person Group Index

Read-only projection of the unsettled transactions, grouped by person.
Recomputed on every call and never stored.
"""

from typing import Optional

from debtq.ledger.store import TransactionStore
from debtq.models.debt import PersonGroup, TransactionKind


class PersonGroupIndex:
    """Groups open transactions by person name, in first-seen order."""

    def __init__(self, store: TransactionStore):
        self._store = store

    def groups(self) -> list[PersonGroup]:
        by_person: dict[str, PersonGroup] = {}
        for tx in self._store.all_unsettled():
            group = by_person.get(tx.person)
            if group is None:
                group = by_person[tx.person] = PersonGroup(person=tx.person)
            if tx.kind == TransactionKind.LENT:
                group.total_lent += tx.amount
                group.lent.append(tx)
            else:
                group.total_borrowed += tx.amount
                group.borrowed.append(tx)
        return list(by_person.values())

    def group_for(self, person: str) -> Optional[PersonGroup]:
        for group in self.groups():
            if group.person == person:
                return group
        return None

    def sorted_by_net(self) -> list[PersonGroup]:
        """Highest owed to the user first; ties keep first-seen order."""
        return sorted(self.groups(), key=lambda g: g.net_balance, reverse=True)
