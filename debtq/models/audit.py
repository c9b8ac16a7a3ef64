"""
Audit Models for debtq

Every change to the ledger is logged for audit purposes.
This provides:
1. Traceability of every settlement (the ledger itself forgets how an
   in-place reduction happened)
2. Debugging information when a save fails
3. A way to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger changes
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_SETTLED = "transaction_settled"
    TRANSACTION_SPLIT = "transaction_split"
    TRANSACTION_REDUCED = "transaction_reduced"
    PERSON_SETTLED = "person_settled"
    TRANSACTION_DELETED = "transaction_deleted"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_SAVED = "ledger_saved"
    SAVE_FAILED = "save_failed"

    # Reports
    REPORT_WRITTEN = "report_written"
    REPORT_FAILED = "report_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every ledger mutation creates at least one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which record or person is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'person', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID (or name, for people) of the entity"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together the events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of the append-only audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False, default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx.id, "lent", "John", "1000", cid)
        event = AuditEventBuilder.save_failed("disk full", cid)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        kind: str,
        person: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Added {kind} transaction: {person} - {amount}",
            details={
                "kind": kind,
                "person": person,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_settled(
        transaction_id: str,
        person: str,
        amount: str,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SETTLED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Settled transaction with {person}: {amount}",
            details={
                "person": person,
                "settlement_amount": amount,
                "note": note,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_split(
        transaction_id: str,
        split_id: str,
        settled: str,
        remaining: str,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SPLIT,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Partially settled {settled}, {remaining} still outstanding",
            details={
                "split_id": split_id,
                "settled": settled,
                "remaining": remaining,
                "note": note,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_reduced(
        transaction_id: str,
        person: str,
        remaining: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REDUCED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Reduced outstanding amount with {person} to {remaining}",
            details={
                "person": person,
                "remaining": remaining,
            },
        )

    @staticmethod
    def person_settled(
        person: str,
        settled_amount: str,
        offset_amount: str,
        touched: int,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSON_SETTLED,
            entity_type="person",
            entity_id=person,
            correlation_id=correlation_id,
            description=f"Settled {settled_amount} with {person} across {touched} transactions",
            details={
                "settled_amount": settled_amount,
                "offset_amount": offset_amount,
                "transactions_touched": touched,
                "note": note,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        person: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Deleted transaction with {person}: {amount}",
            details={
                "person": person,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(
        location: str,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            entity_type="ledger",
            description=f"Loaded {transaction_count} transactions",
            details={
                "location": location,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def ledger_saved(
        location: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Saved {transaction_count} transactions",
            details={
                "location": location,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def save_failed(
        location: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Ledger changed in memory but could not be saved",
            error_message=error_message,
            details={
                "location": location,
            },
        )

    @staticmethod
    def report_written(
        path: str,
        person_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_WRITTEN,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Debts note written for {person_count} people",
            details={
                "path": path,
                "person_count": person_count,
            },
        )

    @staticmethod
    def report_failed(
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="report",
            correlation_id=correlation_id,
            description="Debts note could not be written",
            error_message=error_message,
            details={
                "path": path,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
