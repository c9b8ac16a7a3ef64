"""
Tests for the settlement engine.

Covers settling a single transaction (full and split) and settling an
amount against a person's net balance, including the worked scenarios:
- John: lent 1000, borrowed 300, settle 700
- Asha: lent 500, settle 200 of it
- Ravi: lent 100, borrowed 100, settle everything
"""

from datetime import date
from decimal import Decimal

import pytest

from debtq.config import AllocationOrder, PartialStrategy
from debtq.ledger import (
    LedgerValidationError,
    NettingCalculator,
    SettlementEngine,
    TransactionAlreadySettledError,
    TransactionNotFoundError,
)
from debtq.models.debt import TransactionKind

from conftest import SETTLED_AT


LENT = TransactionKind.LENT
BORROWED = TransactionKind.BORROWED


class TestSettleTransactionFull:
    """Settling the whole outstanding amount of one transaction."""

    def test_full_settle_marks_record_settled(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 500))

        result = engine.settle_transaction(tx.id, Decimal("500"), note="paid back")

        assert result.split is None
        assert result.transaction is tx
        assert tx.settled is True
        assert tx.settled_date == SETTLED_AT
        assert tx.settlement_amount == Decimal("500")
        assert tx.settlement_note == "paid back"
        assert tx.amount == Decimal("500")

    def test_full_settle_creates_no_record(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 500))

        engine.settle_transaction(tx.id, 500)

        assert len(store) == 1

    def test_settled_record_leaves_balances(self, store, engine, netting, make_tx):
        tx = store.add(make_tx(LENT, "John", 500))
        store.add(make_tx(LENT, "John", 200))

        engine.settle_transaction(tx.id, 500)

        assert netting.net_balance("John") == Decimal("200")
        assert tx not in store.all_unsettled()
        assert tx in store.all_settled()

    def test_explicit_timestamp_is_used(self, store, engine, make_tx):
        tx = store.add(make_tx(BORROWED, "John", 50))
        at = SETTLED_AT.replace(day=15)

        engine.settle_transaction(tx.id, 50, at=at)

        assert tx.settled_date == at


class TestSettleTransactionSplit:
    """Settling part of one transaction splits it."""

    def test_partial_settlement_scenario(self, store, engine, make_tx):
        """Lent 500 to Asha, 200 paid back in cash."""
        tx = store.add(make_tx(LENT, "Asha", 500, description="Rent share"))

        result = engine.settle_transaction(tx.id, Decimal("200"), note="partial cash")

        assert len(store) == 2
        assert tx.settled is False
        assert tx.amount == Decimal("300")

        split = result.split
        assert split is not None
        assert split.settled is True
        assert split.amount == Decimal("200")
        assert split.settlement_amount == Decimal("200")
        assert split.settlement_note == "partial cash"
        assert split.settled_date == SETTLED_AT

    def test_split_conserves_amount(self, store, engine, make_tx):
        tx = store.add(make_tx(BORROWED, "Asha", "123.45"))
        original = tx.amount

        result = engine.settle_transaction(tx.id, "23.40")

        assert tx.amount + result.split.amount == original

    def test_split_copies_identity_fields(self, store, engine, make_tx):
        tx = store.add(make_tx(
            BORROWED,
            "Asha",
            800,
            on=date(2024, 2, 10),
            description="Laptop",
            due_date=date(2024, 3, 1),
        ))

        split = engine.settle_transaction(tx.id, 300).split

        assert split.id != tx.id
        assert split.kind == BORROWED
        assert split.person == "Asha"
        assert split.transaction_date == date(2024, 2, 10)
        assert split.due_date == date(2024, 3, 1)
        assert split.description == "Laptop (partial settlement)"

    def test_split_record_is_appended(self, store, engine, make_tx):
        first = store.add(make_tx(LENT, "Asha", 500))
        second = store.add(make_tx(LENT, "Asha", 100))

        split = engine.settle_transaction(first.id, 200).split

        assert store.all() == [first, second, split]

    def test_split_record_is_terminal(self, store, engine, make_tx, snapshot):
        tx = store.add(make_tx(LENT, "Asha", 500))
        split = engine.settle_transaction(tx.id, 200).split
        before = snapshot(store)

        with pytest.raises(TransactionAlreadySettledError):
            engine.settle_transaction(split.id, 100)

        assert snapshot(store) == before

    def test_custom_partial_marker(self, store, netting, make_tx):
        engine = SettlementEngine(store, netting=netting, partial_marker=" [part]")
        tx = store.add(make_tx(LENT, "Asha", 500, description="Dinner"))

        split = engine.settle_transaction(tx.id, 100).split

        assert split.description == "Dinner [part]"


class TestSettleTransactionErrors:
    """Rejected calls change nothing."""

    @pytest.mark.parametrize("amount", [0, -1, Decimal("-0.01"), Decimal("500.01"), 10_000])
    def test_rejects_out_of_range_amount(self, store, engine, make_tx, snapshot, amount):
        tx = store.add(make_tx(LENT, "John", 500))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError):
            engine.settle_transaction(tx.id, amount)

        assert snapshot(store) == before

    @pytest.mark.parametrize("amount", ["abc", "NaN", True, None])
    def test_rejects_non_numeric_amount(self, store, engine, make_tx, snapshot, amount):
        tx = store.add(make_tx(LENT, "John", 500))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError):
            engine.settle_transaction(tx.id, amount)

        assert snapshot(store) == before

    def test_unknown_id_is_not_found(self, store, engine, make_tx, snapshot):
        store.add(make_tx(LENT, "John", 500))
        before = snapshot(store)

        with pytest.raises(TransactionNotFoundError):
            engine.settle_transaction("missing", 100)

        assert snapshot(store) == before

    def test_second_settlement_is_rejected(self, store, engine, make_tx, snapshot):
        tx = store.add(make_tx(LENT, "John", 500))
        engine.settle_transaction(tx.id, 500, note="first")
        before = snapshot(store)

        with pytest.raises(LedgerValidationError):
            engine.settle_transaction(tx.id, 500, note="second")

        assert snapshot(store) == before
        assert tx.settlement_note == "first"


class TestSettleForPersonScenarios:
    """Person-level netting."""

    def test_offsetting_scenario(self, store, engine, netting, make_tx):
        """Lent John 1000, borrowed 300 from him, he pays the 700 difference."""
        lent = store.add(make_tx(LENT, "John", 1000, on=date(2024, 1, 1)))
        borrowed = store.add(make_tx(BORROWED, "John", 300, on=date(2024, 1, 2)))
        assert netting.net_balance("John") == Decimal("700")

        result = engine.settle_for_person("John", Decimal("700"), note="bank transfer")

        assert lent.settled is True
        assert borrowed.settled is True
        assert netting.net_balance("John") == Decimal("0")
        assert result.dominant_kind == LENT
        assert result.net_settled == Decimal("700")
        assert result.offset_amount == Decimal("300")
        assert result.settled_amount == Decimal("1000")
        assert lent.settlement_note == "bank transfer"
        assert borrowed.settlement_amount == Decimal("300")

    def test_zero_net_settles_everything(self, store, engine, netting, make_tx):
        """Lent Ravi 100 and borrowed 100: settling closes both."""
        lent = store.add(make_tx(LENT, "Ravi", 100))
        borrowed = store.add(make_tx(BORROWED, "Ravi", 100))

        result = engine.settle_for_person("Ravi", 0, note="even")

        assert result.settled_amount == Decimal("100")
        assert lent.settled and borrowed.settled
        assert lent.settlement_amount == Decimal("100")
        assert borrowed.settlement_note == "even"
        assert result.settled_ids == [lent.id, borrowed.id]
        assert netting.net_balance("Ravi") == Decimal("0")

    def test_zero_amount_settles_whole_net_position(self, store, engine, netting, make_tx):
        store.add(make_tx(LENT, "Mia", 250))
        store.add(make_tx(LENT, "Mia", 150))

        result = engine.settle_for_person("Mia")

        assert result.net_settled == Decimal("400")
        assert netting.net_balance("Mia") == Decimal("0")
        assert store.unsettled_for_person("Mia") == []

    def test_requested_amount_is_clamped_to_net(self, store, engine, netting, make_tx):
        store.add(make_tx(LENT, "John", 1000))
        store.add(make_tx(BORROWED, "John", 300))

        result = engine.settle_for_person("John", 5000)

        assert result.net_settled == Decimal("700")
        assert netting.net_balance("John") == Decimal("0")

    def test_user_owes_person(self, store, engine, netting, make_tx):
        borrowed = store.add(make_tx(BORROWED, "Sam", 500))
        lent = store.add(make_tx(LENT, "Sam", 200))
        assert netting.net_balance("Sam") == Decimal("-300")

        result = engine.settle_for_person("Sam", 100)

        assert result.dominant_kind == BORROWED
        assert lent.settled is True
        assert borrowed.settled is False
        assert borrowed.amount == Decimal("200")
        assert netting.net_balance("Sam") == Decimal("-200")

    @pytest.mark.parametrize("paid", ["1", "250", "300", "699.99", "700"])
    def test_net_balance_moves_by_paid_amount(self, store, engine, netting, make_tx, paid):
        store.add(make_tx(LENT, "John", 400))
        store.add(make_tx(LENT, "John", 600))
        store.add(make_tx(BORROWED, "John", 300))
        old_net = netting.net_balance("John")

        engine.settle_for_person("John", Decimal(paid))

        assert netting.net_balance("John") == old_net - Decimal(paid)

    @pytest.mark.parametrize("paid", ["1", "150", "300"])
    def test_negative_net_moves_toward_zero(self, store, engine, netting, make_tx, paid):
        store.add(make_tx(BORROWED, "Sam", 250))
        store.add(make_tx(BORROWED, "Sam", 250))
        store.add(make_tx(LENT, "Sam", 200))
        old_net = netting.net_balance("Sam")

        engine.settle_for_person("Sam", Decimal(paid))

        assert netting.net_balance("Sam") == old_net + Decimal(paid)

    def test_opposite_side_offset_is_capped_at_net(self, store, engine, netting, make_tx):
        lent = store.add(make_tx(LENT, "Kim", 1000))
        borrowed = store.add(make_tx(BORROWED, "Kim", 900))

        result = engine.settle_for_person("Kim", 100)

        assert result.offset_amount == Decimal("100")
        assert borrowed.settled is False
        assert borrowed.amount == Decimal("800")
        assert lent.settled is False
        assert lent.amount == Decimal("800")
        assert result.reduced_ids == [borrowed.id, lent.id]
        assert netting.net_balance("Kim") == Decimal("0")


class TestSettleForPersonAllocation:
    """Which records are touched, in which order, and how."""

    def test_reduce_strategy_shrinks_in_place(self, store, engine, make_tx):
        first = store.add(make_tx(LENT, "Ana", 100))
        second = store.add(make_tx(LENT, "Ana", 100))

        result = engine.settle_for_person("Ana", 150)

        assert len(store) == 2
        assert first.settled is True
        assert second.settled is False
        assert second.amount == Decimal("50")
        assert result.settled_ids == [first.id]
        assert result.reduced_ids == [second.id]
        assert result.created_ids == []

    def test_split_strategy_creates_settled_record(self, store, netting, make_tx):
        engine = SettlementEngine(
            store,
            netting=netting,
            partial_strategy=PartialStrategy.SPLIT,
            clock=lambda: SETTLED_AT,
        )
        first = store.add(make_tx(LENT, "Ana", 100))
        second = store.add(make_tx(LENT, "Ana", 100, description="Tickets"))

        result = engine.settle_for_person("Ana", 150, note="cash")

        assert len(store) == 3
        split = store.get(result.created_ids[0])
        assert split.settled is True
        assert split.amount == Decimal("50")
        assert split.settlement_note == "cash"
        assert split.description == "Tickets (partial settlement)"
        assert second.amount + split.amount == Decimal("100")
        assert first.settled is True
        assert netting.net_balance("Ana") == Decimal("50")

    def test_storage_order_allocation(self, store, engine, make_tx):
        newer = store.add(make_tx(LENT, "Ana", 100, on=date(2024, 3, 1)))
        older = store.add(make_tx(LENT, "Ana", 100, on=date(2024, 1, 1)))

        engine.settle_for_person("Ana", 150)

        assert newer.settled is True
        assert older.amount == Decimal("50")

    def test_oldest_first_allocation(self, store, netting, make_tx):
        engine = SettlementEngine(
            store,
            netting=netting,
            allocation_order=AllocationOrder.OLDEST_FIRST,
        )
        newer = store.add(make_tx(LENT, "Ana", 100, on=date(2024, 3, 1)))
        older = store.add(make_tx(LENT, "Ana", 100, on=date(2024, 1, 1)))

        engine.settle_for_person("Ana", 150)

        assert older.settled is True
        assert newer.settled is False
        assert newer.amount == Decimal("50")

    def test_settled_records_are_never_touched(self, store, engine, make_tx):
        done = store.add(make_tx(LENT, "Ana", 100))
        engine.settle_transaction(done.id, 100, note="old")
        store.add(make_tx(LENT, "Ana", 300))
        before = done.model_dump()

        engine.settle_for_person("Ana", 0, note="new")

        assert done.model_dump() == before

    def test_other_people_are_untouched(self, store, engine, make_tx):
        store.add(make_tx(LENT, "Ana", 100))
        bob = store.add(make_tx(LENT, "Bob", 100))
        before = bob.model_dump()

        engine.settle_for_person("Ana", 0)

        assert bob.model_dump() == before

    def test_person_names_match_exactly(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 100))

        result = engine.settle_for_person("john", 0)

        assert result.changed is False
        assert tx.settled is False


class TestSettleForPersonNoOps:
    """Nothing outstanding is not an error."""

    def test_unknown_person(self, store, engine, make_tx, snapshot):
        store.add(make_tx(LENT, "John", 100))
        before = snapshot(store)

        result = engine.settle_for_person("Nobody", 50)

        assert result.settled_amount == Decimal("0")
        assert result.changed is False
        assert snapshot(store) == before

    def test_everything_already_settled(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 100))
        engine.settle_transaction(tx.id, 100)

        result = engine.settle_for_person("John", 0)

        assert result.settled_amount == Decimal("0")
        assert result.changed is False

    def test_negative_amount_is_rejected(self, store, engine, make_tx, snapshot):
        store.add(make_tx(LENT, "John", 100))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError):
            engine.settle_for_person("John", -10)

        assert snapshot(store) == before

    def test_default_netting_calculator(self, store, make_tx):
        engine = SettlementEngine(store)
        store.add(make_tx(LENT, "John", 100))

        engine.settle_for_person("John")

        assert NettingCalculator(store).net_balance("John") == Decimal("0")


class TestSettlementNotes:
    """Notes are checked before any record changes."""

    def test_full_settle_rejects_long_note(self, store, engine, make_tx, snapshot):
        tx = store.add(make_tx(LENT, "John", 500))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError) as exc_info:
            engine.settle_transaction(tx.id, 500, note="x" * 1001)

        assert exc_info.value.field == "note"
        assert snapshot(store) == before

    def test_split_rejects_long_note(self, store, engine, make_tx, snapshot):
        tx = store.add(make_tx(LENT, "Asha", 500))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError) as exc_info:
            engine.settle_transaction(tx.id, 200, note="x" * 1001)

        assert exc_info.value.field == "note"
        assert snapshot(store) == before

    def test_person_settlement_rejects_long_note(self, store, engine, make_tx, snapshot):
        store.add(make_tx(LENT, "Ravi", 100))
        store.add(make_tx(BORROWED, "Ravi", 100))
        before = snapshot(store)

        with pytest.raises(LedgerValidationError) as exc_info:
            engine.settle_for_person("Ravi", 0, note="y" * 1500)

        assert exc_info.value.field == "note"
        assert snapshot(store) == before

    def test_note_at_limit_is_kept(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 500))

        engine.settle_transaction(tx.id, 500, note="x" * 1000)

        assert tx.settlement_note == "x" * 1000

    def test_blank_note_is_dropped(self, store, engine, make_tx):
        tx = store.add(make_tx(LENT, "John", 500))

        engine.settle_transaction(tx.id, 500, note="   ")

        assert tx.settlement_note is None
