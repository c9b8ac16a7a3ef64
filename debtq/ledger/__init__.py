"""Debt ledger core: store, netting, settlement and grouping."""

from debtq.ledger.errors import (
    LedgerError,
    LedgerValidationError,
    TransactionAlreadySettledError,
    TransactionNotFoundError,
)
from debtq.ledger.groups import PersonGroupIndex
from debtq.ledger.netting import NettingCalculator
from debtq.ledger.settlement import SettlementEngine
from debtq.ledger.store import TransactionStore

__all__ = [
    "LedgerError",
    "LedgerValidationError",
    "NettingCalculator",
    "PersonGroupIndex",
    "SettlementEngine",
    "TransactionAlreadySettledError",
    "TransactionNotFoundError",
    "TransactionStore",
]
