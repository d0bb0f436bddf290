"""
Persistence Repository Interface

💾 Standard Data Access Contract:
This module defines the contract that every persistence backend implements
(in-memory, remote HTTP, relational), so a service can be bound to any of them
without knowing which one it got.

All operations are coroutines. Not-found is signalled by ``None``, never by
an exception.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any, AsyncIterator, Dict, Generic, List, Mapping, Optional, Sequence,
    Tuple, Type, TypeVar, Union
)

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from ...entities.record import Record

RecordT = TypeVar('RecordT', bound='Record')

# Field name -> exact-match value. Entries are AND-ed, empty matches everything.
Filter = Mapping[str, Any]


class SortDirection(Enum):
    """Sort direction for ordering"""
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class OrderBy:
    """Single-key ordering"""
    field: str
    direction: SortDirection = SortDirection.ASC

    @classmethod
    def asc(cls, field: str) -> 'OrderBy':
        return cls(field, SortDirection.ASC)

    @classmethod
    def desc(cls, field: str) -> 'OrderBy':
        return cls(field, SortDirection.DESC)


@dataclass(frozen=True)
class FindOptions:
    """
    Result shaping for ``find``.

    Applied after filtering in a fixed order: ordering, then offset, then limit.
    """
    limit: Optional[int] = None
    offset: Optional[int] = None
    order_by: Optional[OrderBy] = None

    def __post_init__(self):
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")
        if self.offset is not None and self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")


@dataclass(frozen=True)
class RecordUpdate:
    """One element of a batch update"""
    id: str
    data: Dict[str, Any]


UpdateSpec = Union[RecordUpdate, Tuple[str, Mapping[str, Any]]]


def as_record_update(item: UpdateSpec) -> RecordUpdate:
    """Normalize a batch update element to a RecordUpdate"""
    if isinstance(item, RecordUpdate):
        return item
    try:
        record_id, data = item
        return RecordUpdate(record_id, dict(data))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Batch update element must be an (id, data) pair, got {item!r}") from e


class RecordRepository(ABC, Generic[RecordT]):
    """
    Abstract repository interface for record persistence.

    Each instance is bound to one record type and exclusively owns its
    backing data.
    """

    record_type: Type[RecordT]

    @abstractmethod
    async def create(self, data: Mapping[str, Any]) -> RecordT:
        """
        Persist a new record.

        Args:
            data: Field values; ``id`` is generated when absent

        Returns:
            The stored record including generated fields
        """
        pass

    @abstractmethod
    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[RecordT]:
        """
        Merge ``data`` onto an existing record.

        Returns:
            The updated record, or None if ``record_id`` is unknown
        """
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Delete a record. Unknown ids are a no-op."""
        pass

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Optional[RecordT]:
        pass

    @abstractmethod
    async def find_one(self, filters: Filter) -> Optional[RecordT]:
        """First record matching ``filters`` in backend order, or None"""
        pass

    @abstractmethod
    async def find_all(self) -> List[RecordT]:
        """All records, as a new list the caller may freely mutate"""
        pass

    @abstractmethod
    async def find(self, filters: Optional[Filter] = None,
                   options: Optional[FindOptions] = None) -> List[RecordT]:
        """
        Query records.

        Args:
            filters: Exact-match criteria, None or empty for all records
            options: Ordering and pagination

        Returns:
            Matching records, ordered, then offset, then limited
        """
        pass

    # Batch operations
    @abstractmethod
    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> List[RecordT]:
        pass

    @abstractmethod
    async def update_many(self, updates: Sequence[UpdateSpec]) -> List[Optional[RecordT]]:
        """
        Update several records.

        Returns:
            One entry per update, None where the id was not found
        """
        pass

    @abstractmethod
    async def delete_many(self, record_ids: Sequence[str]) -> None:
        pass

    # Transaction support
    @abstractmethod
    async def begin_transaction(self) -> None:
        pass

    @abstractmethod
    async def commit_transaction(self) -> None:
        pass

    @abstractmethod
    async def rollback_transaction(self) -> None:
        pass

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator['RecordRepository[RecordT]']:
        """
        Run a block inside a transaction.

        Commits on normal exit, rolls back and re-raises on error.

        Usage:
            async with repository.transaction():
                await repository.create({"name": "Widget"})
        """
        await self.begin_transaction()
        try:
            yield self
        except BaseException:
            await self.rollback_transaction()
            raise
        await self.commit_transaction()

    async def close(self) -> None:
        """Release resources owned by the repository"""
        pass


__all__ = [
    "RecordRepository", "Filter", "FindOptions", "OrderBy", "SortDirection",
    "RecordUpdate", "UpdateSpec", "RecordT", "as_record_update"
]
