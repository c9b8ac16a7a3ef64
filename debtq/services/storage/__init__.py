"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The ledger is a single JSON document; the audit trail is a JSON lines file.
"""

from debtq.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)
from debtq.services.storage.json_file import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
)
from debtq.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
]
