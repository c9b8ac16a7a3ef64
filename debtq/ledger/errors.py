"""
Ledger Exceptions

Validation and not-found errors are raised BEFORE any record changes.
A call that raises one of these leaves the ledger exactly as it was.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerValidationError(LedgerError):
    """
    Input rejected: non-positive or out-of-range amount, unknown
    transaction kind, malformed date, empty person name.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class TransactionAlreadySettledError(LedgerValidationError):
    """The targeted transaction is already settled (settled records are terminal)."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction already settled: {transaction_id}", field="id")
        self.transaction_id = transaction_id


class TransactionNotFoundError(LedgerError):
    """No transaction with the given id."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id
