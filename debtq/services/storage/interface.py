"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the JSON document format out of the ledger core
2. Use in-memory storage for testing
3. Swap the backend later without touching settlement logic

The ledger is persisted as ONE document: load everything at startup,
overwrite everything after each change. The last successful write wins.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from debtq.models.audit import AuditEvent
from debtq.models.debt import LedgerData


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger document storage.

    Any storage implementation must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the document lives."""
        pass

    @abstractmethod
    def load(self) -> LedgerData:
        """
        Load the whole ledger document.

        Returns:
            The stored data, or an empty LedgerData if nothing was stored yet

        Raises:
            PersistenceError: If the document is unreadable or malformed
        """
        pass

    @abstractmethod
    def save(self, data: LedgerData) -> bool:
        """
        Overwrite the stored document with `data`.

        Args:
            data: The complete ledger document

        Returns:
            True if saved successfully

        Raises:
            PersistenceError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Raises:
            StorageError: If the event could not be written
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events of one user action, in chronological order.
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific transaction or person,
        in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """
    The ledger document could not be read or written.

    When raised by a save, the in-memory ledger has already changed;
    memory and disk disagree until the next successful save.
    """

    def __init__(self, message: str, location: Optional[str] = None):
        super().__init__(message)
        self.location = location


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
