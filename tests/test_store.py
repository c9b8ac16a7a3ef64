"""
Tests for the transaction store.
"""

from datetime import datetime

import pytest

from debtq.ledger import TransactionNotFoundError, TransactionStore
from debtq.models.debt import TransactionKind
from debtq.services.storage import DuplicateError


LENT = TransactionKind.LENT
BORROWED = TransactionKind.BORROWED


class TestTransactionStore:
    """Lookups and filters over the ordered record list."""

    def test_add_and_find(self, store, make_tx):
        tx = store.add(make_tx(LENT, "John", 100))

        assert store.find_by_id(tx.id) is tx
        assert store.get(tx.id) is tx
        assert tx.id in store
        assert len(store) == 1

    def test_find_missing_returns_none(self, store):
        assert store.find_by_id("missing") is None

    def test_get_missing_raises(self, store):
        with pytest.raises(TransactionNotFoundError) as exc_info:
            store.get("missing")
        assert exc_info.value.transaction_id == "missing"

    def test_duplicate_id_is_rejected(self, store, make_tx):
        store.add(make_tx(LENT, "John", 100, id="same0001"))

        with pytest.raises(DuplicateError):
            store.add(make_tx(LENT, "Asha", 50, id="same0001"))

        assert len(store) == 1

    def test_duplicate_ids_in_loaded_list_are_rejected(self, make_tx):
        records = [
            make_tx(LENT, "John", 100, id="same0001"),
            make_tx(BORROWED, "John", 100, id="same0001"),
        ]
        with pytest.raises(DuplicateError):
            TransactionStore(records)

    def test_wraps_given_list(self, make_tx):
        records = []
        store = TransactionStore(records)

        tx = store.add(make_tx(LENT, "John", 100))

        assert records == [tx]

    def test_preserves_insertion_order(self, store, make_tx):
        first = store.add(make_tx(LENT, "John", 1))
        second = store.add(make_tx(BORROWED, "Asha", 2))
        third = store.add(make_tx(LENT, "John", 3))

        assert store.all() == [first, second, third]
        assert list(store) == [first, second, third]

    def test_settled_filters(self, store, make_tx):
        open_tx = store.add(make_tx(LENT, "John", 100))
        done = store.add(make_tx(LENT, "John", 50))
        done.mark_settled(datetime(2024, 6, 1))

        assert store.all_unsettled() == [open_tx]
        assert store.all_settled() == [done]
        assert store.all_for_person("John") == [open_tx, done]
        assert store.unsettled_for_person("John") == [open_tx]

    def test_person_match_is_exact(self, store, make_tx):
        store.add(make_tx(LENT, "John", 100))

        assert store.unsettled_for_person("john") == []
        assert store.unsettled_for_person("John ") == []

    def test_open_of_kind(self, store, make_tx):
        lent = store.add(make_tx(LENT, "John", 100))
        borrowed = store.add(make_tx(BORROWED, "John", 40))
        store.add(make_tx(LENT, "Asha", 70))

        assert store.open_of_kind("John", LENT) == [lent]
        assert store.open_of_kind("John", BORROWED) == [borrowed]

    def test_persons_first_seen_order(self, store, make_tx):
        store.add(make_tx(LENT, "Ravi", 1))
        store.add(make_tx(LENT, "Asha", 1))
        store.add(make_tx(BORROWED, "Ravi", 1))
        settled = store.add(make_tx(LENT, "Mia", 1))
        settled.mark_settled(datetime(2024, 6, 1))

        assert store.persons() == ["Ravi", "Asha"]
        assert store.persons(include_settled=True) == ["Ravi", "Asha", "Mia"]

    def test_delete_by_id(self, store, make_tx):
        keep = store.add(make_tx(LENT, "John", 100))
        gone = store.add(make_tx(LENT, "John", 50))

        removed = store.delete_by_id(gone.id)

        assert removed is gone
        assert gone.id not in store
        assert store.all() == [keep]

    def test_delete_missing_raises(self, store):
        with pytest.raises(TransactionNotFoundError):
            store.delete_by_id("missing")

    def test_iteration_tolerates_mutation(self, store, make_tx):
        store.add(make_tx(LENT, "John", 100))

        for tx in store:
            store.add(make_tx(LENT, tx.person, 1))

        assert len(store) == 2
