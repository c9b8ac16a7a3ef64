"""
In-Memory Storage Implementation

Keeps the serialized document in memory instead of on disk.
Used by tests and for throwaway sessions. Saving serializes the document,
so later in-memory changes do not leak into what was "stored".
"""

from typing import Optional

from debtq.models.debt import LedgerData
from debtq.services.storage.interface import (
    LedgerStorageInterface,
    PersistenceError,
)
from debtq.services.storage.json_file import dump_document, parse_document


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger storage backed by a JSON string held in memory."""

    def __init__(self, initial: Optional[LedgerData] = None):
        self._document: Optional[str] = dump_document(initial) if initial is not None else None
        self.save_count = 0
        self.fail_saves = False

    @property
    def location(self) -> str:
        return "memory"

    @property
    def document(self) -> Optional[str]:
        """The last successfully saved document, as JSON text."""
        return self._document

    def load(self) -> LedgerData:
        if self._document is None:
            return LedgerData()
        return parse_document(self._document, self.location)

    def save(self, data: LedgerData) -> bool:
        if self.fail_saves:
            raise PersistenceError("Simulated save failure", self.location)
        self._document = dump_document(data)
        self.save_count += 1
        return True
