"""
Data Models Package

This package contains all Pydantic models used in debtq.
All data flowing through the ledger must conform to these schemas.
"""

from debtq.models.debt import (
    BalanceStatus,
    DebtTransaction,
    LedgerData,
    LedgerTotals,
    PersonGroup,
    PersonSettlement,
    TransactionKind,
    TransactionSettlement,
    generate_id,
)
from debtq.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BalanceStatus",
    "DebtTransaction",
    "LedgerData",
    "LedgerTotals",
    "PersonGroup",
    "PersonSettlement",
    "TransactionKind",
    "TransactionSettlement",
    "generate_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
