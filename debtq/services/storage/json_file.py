"""
JSON File Storage Implementation

DESIGN DECISION: The ledger lives in a single JSON document because:
1. The user can read and back it up with any tool
2. No database setup required
3. Personal data volumes fit comfortably in memory

TRADEOFFS:
- Every save rewrites the whole file (no append log, no atomic rename),
  so a crash mid-write can corrupt it
- No protection against two processes writing the same file; the last
  full write wins

Audit events go to a separate append-only JSON lines file.
"""

import json
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from debtq.config import get_settings
from debtq.models.audit import AuditEvent
from debtq.models.debt import LedgerData
from debtq.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)


def dump_document(data: LedgerData) -> str:
    """Serialize the ledger document with its on-disk key names."""
    return json.dumps(
        data.model_dump(mode="json", by_alias=True),
        indent=2,
        ensure_ascii=False,
    )


def parse_document(text: str, location: str) -> LedgerData:
    """Parse and validate a ledger document."""
    if not text.strip():
        return LedgerData()
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Ledger file is not valid JSON: {e}", location) from e
    if not isinstance(raw, dict):
        raise PersistenceError("Ledger file must contain a JSON object", location)
    # Older files may carry an explicit null for an empty list
    if raw.get("debt_transactions") is None:
        raw["debt_transactions"] = []
    try:
        return LedgerData.model_validate(raw)
    except ValidationError as e:
        raise PersistenceError(f"Ledger file is malformed: {e}", location) from e


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Stores the ledger document as pretty-printed JSON at a configured path.

    Writes are retried on OSError before giving up with PersistenceError.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        retry_attempts: Optional[int] = None,
        retry_wait_seconds: float = 0.5,
    ):
        settings = get_settings().ledger
        self._path = Path(path) if path is not None else settings.data_file
        self._retry_attempts = retry_attempts or settings.save_retry_attempts
        self._retry_wait_seconds = retry_wait_seconds

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> LedgerData:
        """Load the ledger, or an empty one when the file does not exist yet."""
        if not self._path.exists():
            return LedgerData()
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read ledger file: {e}", self.location) from e
        return parse_document(text, self.location)

    def save(self, data: LedgerData) -> bool:
        """Overwrite the ledger file with the full document."""
        text = dump_document(data)
        retryer = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(
                multiplier=self._retry_wait_seconds,
                min=self._retry_wait_seconds,
                max=self._retry_wait_seconds * 8,
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            retryer(self._write, text)
        except OSError as e:
            raise PersistenceError(f"Failed to save ledger: {e}", self.location) from e
        return True

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(text, encoding="utf-8")


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path is not None else get_settings().audit.log_file

    @property
    def path(self) -> Path:
        return self._path

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageError(f"Failed to read audit log: {e}") from e

        events = []
        for line in lines:
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValidationError:
                continue  # Skip malformed lines
        return events

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            e for e in self._read_events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
