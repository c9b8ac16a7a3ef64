"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability (an in-place reduction leaves no trace in the ledger itself)
2. Debugging capability when a save fails
3. A history the user can inspect

The audit logger:
- Is synchronous, like the rest of the ledger
- Gracefully handles failures (a broken audit file never breaks a settlement)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from debtq.config import get_settings
from debtq.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from debtq.services.storage import AuditStorageInterface, StorageError


def configure_logging(debug_mode: bool = False) -> None:
    """
    Configure structlog for local logging.

    JSON lines by default; debug mode renders readable console output.
    """
    renderer = (
        structlog.dev.ConsoleRenderer() if debug_mode
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging(get_settings().app.debug_mode)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("debtq.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transaction_added(
        self,
        transaction_id: str,
        kind: str,
        person: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            kind=kind,
            person=person,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_transaction_settled(
        self,
        transaction_id: str,
        person: str,
        amount: str,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_settled(
            transaction_id=transaction_id,
            person=person,
            amount=amount,
            note=note,
            correlation_id=correlation_id,
        ))

    def log_transaction_split(
        self,
        transaction_id: str,
        split_id: str,
        settled: str,
        remaining: str,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_split(
            transaction_id=transaction_id,
            split_id=split_id,
            settled=settled,
            remaining=remaining,
            note=note,
            correlation_id=correlation_id,
        ))

    def log_transaction_reduced(
        self,
        transaction_id: str,
        person: str,
        remaining: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_reduced(
            transaction_id=transaction_id,
            person=person,
            remaining=remaining,
            correlation_id=correlation_id,
        ))

    def log_person_settled(
        self,
        person: str,
        settled_amount: str,
        offset_amount: str,
        touched: int,
        note: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.person_settled(
            person=person,
            settled_amount=settled_amount,
            offset_amount=offset_amount,
            touched=touched,
            note=note,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_id: str,
        person: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            person=person,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_ledger_loaded(self, location: str, transaction_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(
            location=location,
            transaction_count=transaction_count,
        ))

    def log_ledger_saved(
        self,
        location: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_saved(
            location=location,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    def log_save_failed(
        self,
        location: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            location=location,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_report_written(
        self,
        path: str,
        person_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.report_written(
            path=path,
            person_count=person_count,
            correlation_id=correlation_id,
        ))

    def log_report_failed(
        self,
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.report_failed(
            path=path,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., one settlement).
    Pass it through all subsequent operations.
    """
    return uuid4()
