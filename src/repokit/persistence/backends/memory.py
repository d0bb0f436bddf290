"""
Memory Repository - In-Memory Persistence Backend

🧠 Reference Storage Backend:
This module provides the in-memory reference implementation of the repository
contract. Records live in an ordered list and every lookup is a linear scan;
correctness, not throughput, is the point of this backend. Data is lost when
the process exits.

Transactions are simulated by snapshotting the whole list on
``begin_transaction`` (O(n) per begin). Nested transactions are allowed; each
level snapshots the state as of its own begin.

Concurrency: operations never suspend between reading and writing the list,
but nothing serializes logically parallel callers either. Concurrent
create/update/delete calls against one instance must be serialized by the
caller.
"""

from typing import Any, Dict, List, Mapping, Optional, Type
import logging

from ..repositories.interface import Filter, FindOptions, RecordT
from ..repositories.base import BaseRepository, DuplicateRecordError

logger = logging.getLogger(__name__)


class MemoryRepository(BaseRepository[RecordT]):
    """
    Complete in-memory repository implementation.

    Records are never mutated in place: ``update`` swaps in a new record, so a
    shallow copy of the list is a faithful snapshot.
    """

    def __init__(self, record_type: Type[RecordT]):
        super().__init__(record_type)
        self._records: List[RecordT] = []
        self._transaction_stack: List[List[RecordT]] = []

    @property
    def transaction_depth(self) -> int:
        """Number of open simulated transactions"""
        return len(self._transaction_stack)

    def _known_fields(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        fields = self.record_type.model_fields
        return {key: value for key, value in data.items() if key in fields}

    def _index_of(self, record_id: str) -> int:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return -1

    # Core CRUD operations
    async def create(self, data: Mapping[str, Any]) -> RecordT:
        values = self._with_id(self._known_fields(data))
        if self._index_of(values["id"]) != -1:
            raise DuplicateRecordError(self.record_type, values["id"])
        record = self.record_type.model_construct(**values)
        self._records.append(record)
        self._logger.debug(f"Created {self.record_type.__name__} {record.id}")
        return record

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[RecordT]:
        index = self._index_of(record_id)
        if index == -1:
            return None
        changes = self._known_fields(data)
        changes.pop("id", None)
        record = self._records[index].model_copy(update=changes)
        self._records[index] = record
        self._logger.debug(f"Updated {self.record_type.__name__} {record_id}")
        return record

    async def delete(self, record_id: str) -> None:
        before = len(self._records)
        self._records = [record for record in self._records if record.id != record_id]
        if len(self._records) != before:
            self._logger.debug(f"Deleted {self.record_type.__name__} {record_id}")

    async def find_by_id(self, record_id: str) -> Optional[RecordT]:
        index = self._index_of(record_id)
        return self._records[index] if index != -1 else None

    # Query operations
    async def find_one(self, filters: Filter) -> Optional[RecordT]:
        for record in self._records:
            if self._matches_filter(record, filters):
                return record
        return None

    async def find_all(self) -> List[RecordT]:
        return list(self._records)

    async def find(self, filters: Optional[Filter] = None,
                   options: Optional[FindOptions] = None) -> List[RecordT]:
        return self._apply_find(self._records, filters, options)

    # Transaction operations
    async def begin_transaction(self) -> None:
        """Push a snapshot of the current records"""
        self._transaction_stack.append(list(self._records))
        self._logger.debug(f"Transaction started (depth={len(self._transaction_stack)})")

    async def commit_transaction(self) -> None:
        """Discard the innermost snapshot; a no-op without an open transaction"""
        if self._transaction_stack:
            self._transaction_stack.pop()
            self._logger.debug(f"Transaction committed (depth={len(self._transaction_stack)})")

    async def rollback_transaction(self) -> None:
        """Restore the innermost snapshot; a no-op without an open transaction"""
        if self._transaction_stack:
            self._records = self._transaction_stack.pop()
            self._logger.debug(f"Transaction rolled back (depth={len(self._transaction_stack)})")


# Export main components
__all__ = ["MemoryRepository"]
