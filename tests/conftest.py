"""
Shared fixtures for debtq tests.

No test touches the real home directory: file-backed storage always
points into pytest's tmp_path.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from debtq.audit import AuditLogger
from debtq.config import AllocationOrder, PartialStrategy, get_settings
from debtq.ledger import NettingCalculator, SettlementEngine, TransactionStore
from debtq.models.debt import DebtTransaction, TransactionKind
from debtq.orchestrator import LedgerService
from debtq.services.storage import InMemoryLedgerStorage


SETTLED_AT = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every configured path into tmp_path and reload settings."""
    monkeypatch.setenv("DEBTQ_DATA_FILE", str(tmp_path / "data.json"))
    monkeypatch.setenv("DEBTQ_AUDIT_LOG_FILE", str(tmp_path / "audit.jsonl"))
    monkeypatch.setenv("DEBTQ_REPORT_VAULT_PATH", str(tmp_path / "vault"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_tx():
    """Factory for unsettled transactions."""
    def _make(
        kind: TransactionKind,
        person: str,
        amount,
        on: date = date(2024, 1, 1),
        **kwargs,
    ) -> DebtTransaction:
        return DebtTransaction(
            kind=kind,
            person=person,
            amount=Decimal(str(amount)),
            transaction_date=on,
            **kwargs,
        )
    return _make


@pytest.fixture
def store() -> TransactionStore:
    return TransactionStore()


@pytest.fixture
def netting(store) -> NettingCalculator:
    return NettingCalculator(store)


@pytest.fixture
def engine(store, netting) -> SettlementEngine:
    return SettlementEngine(
        store,
        netting=netting,
        partial_strategy=PartialStrategy.REDUCE,
        allocation_order=AllocationOrder.STORAGE,
        clock=lambda: SETTLED_AT,
    )


@pytest.fixture
def memory_storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def ledger(memory_storage) -> LedgerService:
    return LedgerService(
        memory_storage,
        audit_logger=AuditLogger(),
        partial_strategy=PartialStrategy.REDUCE,
        allocation_order=AllocationOrder.STORAGE,
        reports_enabled=False,
    )


@pytest.fixture
def snapshot():
    """Full state of a store, for before/after comparisons."""
    def _snapshot(store: TransactionStore) -> list[dict]:
        return [tx.model_dump() for tx in store.all()]
    return _snapshot
