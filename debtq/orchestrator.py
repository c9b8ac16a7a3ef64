"""
Main Orchestrator for debtq

This module ties the ledger core to storage, auditing and reporting.
`LedgerService` is the ledger handle: the single owner of the in-memory
data. Front ends create one, pass it explicitly, and call it for every
read and write.

Every mutating call follows the same steps:
1. Validate input (reject before touching anything)
2. Apply the change in memory
3. Audit it
4. Save the whole document
5. Refresh the markdown report (if enabled)

DESIGN DECISION: A failed save does NOT roll back the in-memory change.
PersistenceError is raised after the change is applied; memory and disk
disagree until the next successful save (call `save()` to retry).
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

from pydantic import ValidationError

from debtq.audit import AuditLogger, create_correlation_id
from debtq.config import AllocationOrder, PartialStrategy, get_settings
from debtq.ledger import (
    LedgerValidationError,
    NettingCalculator,
    PersonGroupIndex,
    SettlementEngine,
    TransactionStore,
)
from debtq.ledger.validation import (
    AmountLike,
    DateLike,
    clean_person,
    parse_date,
    parse_kind,
    to_amount,
)
from debtq.models.debt import (
    DebtTransaction,
    LedgerData,
    LedgerTotals,
    PersonGroup,
    PersonSettlement,
    TransactionKind,
    TransactionSettlement,
)
from debtq.reports import DebtReportWriter
from debtq.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    PersistenceError,
)


class LedgerService:
    """
    The ledger handle.

    Owns the loaded document and exposes the ledger-facing operations.
    Not thread-safe: exactly one caller should hold it at a time.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        partial_strategy: Optional[PartialStrategy] = None,
        allocation_order: Optional[AllocationOrder] = None,
        partial_marker: Optional[str] = None,
        reports_enabled: Optional[bool] = None,
        report_vault_path: Optional[Path] = None,
    ):
        """
        Load the ledger from storage.

        Raises:
            PersistenceError: If the stored document is unreadable or malformed
        """
        settings = get_settings()
        ledger_settings = settings.ledger
        report_settings = settings.report

        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()

        self._data: LedgerData = storage.load()
        self._store = TransactionStore(self._data.debt_transactions)
        self._netting = NettingCalculator(self._store)
        self._groups = PersonGroupIndex(self._store)
        self._engine = SettlementEngine(
            self._store,
            netting=self._netting,
            partial_strategy=partial_strategy or ledger_settings.partial_strategy,
            allocation_order=allocation_order or ledger_settings.allocation_order,
            partial_marker=(
                partial_marker if partial_marker is not None
                else ledger_settings.partial_settlement_marker
            ),
        )

        if reports_enabled is None:
            reports_enabled = report_settings.enabled
        self._report_writer: Optional[DebtReportWriter] = None
        if reports_enabled:
            self._report_writer = DebtReportWriter(
                self._store,
                vault_path=report_vault_path or report_settings.vault_path,
                filename=report_settings.filename,
            )

        self.last_save_error: Optional[str] = None

        self._audit_logger.log_ledger_loaded(
            location=storage.location,
            transaction_count=len(self._store),
        )

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def data(self) -> LedgerData:
        return self._data

    @property
    def store(self) -> TransactionStore:
        return self._store

    @property
    def netting(self) -> NettingCalculator:
        return self._netting

    @property
    def groups(self) -> PersonGroupIndex:
        return self._groups

    @property
    def report_writer(self) -> Optional[DebtReportWriter]:
        return self._report_writer

    @property
    def has_unsaved_changes(self) -> bool:
        return self.last_save_error is not None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_transaction(
        self,
        kind: Union[TransactionKind, str],
        person: str,
        amount: AmountLike,
        description: str = "",
        transaction_date: Optional[DateLike] = None,
        due_date: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DebtTransaction:
        """
        Record money borrowed from or lent to a person.

        Raises:
            LedgerValidationError: Bad kind, person, amount or date
            PersistenceError: Added in memory but not saved
        """
        correlation_id = correlation_id or create_correlation_id()

        tx_kind = parse_kind(kind)
        tx_person = clean_person(person)
        tx_amount = to_amount(amount)
        tx_date = parse_date(transaction_date, field="transaction_date") or date.today()
        tx_due = parse_date(due_date, field="due_date")
        if tx_due is not None and tx_due < tx_date:
            raise LedgerValidationError("Due date cannot be before transaction date", field="due_date")

        try:
            transaction = DebtTransaction(
                kind=tx_kind,
                person=tx_person,
                amount=tx_amount,
                description=description or "",
                transaction_date=tx_date,
                due_date=tx_due,
            )
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid transaction: {e}") from e

        self._store.add(transaction)

        self._audit_logger.log_transaction_added(
            transaction_id=transaction.id,
            kind=transaction.kind.value,
            person=transaction.person,
            amount=str(transaction.amount),
            correlation_id=correlation_id,
        )
        self._commit(correlation_id)
        return transaction

    def settle_transaction(
        self,
        transaction_id: str,
        amount: AmountLike,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionSettlement:
        """
        Settle all or part of one transaction (partial = split).

        Raises:
            TransactionNotFoundError: Unknown id
            LedgerValidationError: Bad amount, or the transaction is already settled
            PersistenceError: Settled in memory but not saved
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._engine.settle_transaction(transaction_id, amount, note=note)
        tx = result.transaction

        if result.split is not None:
            self._audit_logger.log_transaction_split(
                transaction_id=tx.id,
                split_id=result.split.id,
                settled=str(result.split.amount),
                remaining=str(tx.amount),
                note=note,
                correlation_id=correlation_id,
            )
        else:
            self._audit_logger.log_transaction_settled(
                transaction_id=tx.id,
                person=tx.person,
                amount=str(tx.settlement_amount),
                note=note,
                correlation_id=correlation_id,
            )

        self._commit(correlation_id)
        return result

    def settle_for_person(
        self,
        person: str,
        amount: AmountLike = 0,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PersonSettlement:
        """
        Settle an amount against a person's net balance (0 = all of it).

        A person with nothing outstanding is a no-op and nothing is saved.
        Records split off a partly covered record are audited as splits,
        the same as in settle_transaction.

        Raises:
            LedgerValidationError: Negative amount, empty person name or too long a note
            PersistenceError: Settled in memory but not saved
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._engine.settle_for_person(clean_person(person), amount, note=note)
        if not result.changed:
            return result

        for split_id in result.created_ids:
            split = self._store.get(split_id)
            tx = self._store.get(result.split_from[split_id])
            self._audit_logger.log_transaction_split(
                transaction_id=tx.id,
                split_id=split.id,
                settled=str(split.amount),
                remaining=str(tx.amount),
                note=split.settlement_note,
                correlation_id=correlation_id,
            )
        split_sources = set(result.split_from.values())
        for transaction_id in result.reduced_ids:
            if transaction_id in split_sources:
                continue
            tx = self._store.get(transaction_id)
            self._audit_logger.log_transaction_reduced(
                transaction_id=tx.id,
                person=tx.person,
                remaining=str(tx.amount),
                correlation_id=correlation_id,
            )
        self._audit_logger.log_person_settled(
            person=result.person,
            settled_amount=str(result.settled_amount),
            offset_amount=str(result.offset_amount),
            touched=len(result.settled_ids) + len(result.reduced_ids),
            note=note,
            correlation_id=correlation_id,
        )

        self._commit(correlation_id)
        return result

    def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> DebtTransaction:
        """
        Remove a mistaken entry. Not part of any settlement flow.

        Raises:
            TransactionNotFoundError: Unknown id
            PersistenceError: Deleted in memory but not saved
        """
        correlation_id = correlation_id or create_correlation_id()

        transaction = self._store.delete_by_id(transaction_id)
        self._audit_logger.log_transaction_deleted(
            transaction_id=transaction.id,
            person=transaction.person,
            amount=str(transaction.amount),
            correlation_id=correlation_id,
        )
        self._commit(correlation_id)
        return transaction

    def save(self, correlation_id: Optional[UUID] = None) -> bool:
        """
        Write the current in-memory ledger. Use it to retry after a
        PersistenceError.
        """
        self._commit(correlation_id or create_correlation_id())
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_transaction(self, transaction_id: str) -> DebtTransaction:
        return self._store.get(transaction_id)

    def net_balance(self, person: str) -> Decimal:
        return self._netting.net_balance(person)

    def total_lent(self, person: str) -> Decimal:
        return self._netting.total_lent(person)

    def total_borrowed(self, person: str) -> Decimal:
        return self._netting.total_borrowed(person)

    def totals(self) -> LedgerTotals:
        return self._netting.totals()

    def unsettled_for(self, person: str) -> list[DebtTransaction]:
        return self._store.unsettled_for_person(person)

    def all_for(self, person: str) -> list[DebtTransaction]:
        return self._store.all_for_person(person)

    def all_unsettled(self) -> list[DebtTransaction]:
        return self._store.all_unsettled()

    def all_settled(self) -> list[DebtTransaction]:
        return self._store.all_settled()

    def person_groups(self) -> list[PersonGroup]:
        return self._groups.groups()

    def persons(self, include_settled: bool = False) -> list[str]:
        return self._store.persons(include_settled=include_settled)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _commit(self, correlation_id: UUID) -> None:
        """Save the full document, then refresh the report."""
        try:
            self._storage.save(self._data)
        except PersistenceError as e:
            self.last_save_error = str(e)
            self._audit_logger.log_save_failed(
                location=self._storage.location,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        self.last_save_error = None
        self._audit_logger.log_ledger_saved(
            location=self._storage.location,
            transaction_count=len(self._store),
            correlation_id=correlation_id,
        )
        self._refresh_report(correlation_id)

    def _refresh_report(self, correlation_id: UUID) -> None:
        if self._report_writer is None:
            return
        try:
            path = self._report_writer.write()
        except OSError as e:
            # The ledger is saved; a stale note is only worth a warning
            self._audit_logger.log_report_failed(
                path=str(self._report_writer.path),
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return
        self._audit_logger.log_report_written(
            path=str(path),
            person_count=len(self._groups.groups()),
            correlation_id=correlation_id,
        )


def create_ledger_service(
    use_storage: bool = True,
) -> LedgerService:
    """
    Factory function to create the ledger handle from settings.

    Args:
        use_storage: Whether to use the configured JSON file and audit log.
                    Set to False for an in-memory, unaudited session.

    Raises:
        PersistenceError: If the configured ledger file cannot be loaded
    """
    settings = get_settings()

    if not use_storage:
        return LedgerService(InMemoryLedgerStorage(), audit_logger=AuditLogger())

    audit_storage = None
    if settings.audit.enabled:
        audit_storage = JsonLinesAuditStorage(settings.audit.log_file)

    return LedgerService(
        JsonFileLedgerStorage(settings.ledger.data_file),
        audit_logger=AuditLogger(audit_storage),
    )
