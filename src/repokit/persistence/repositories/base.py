"""
Base Repository - Common Repository Functionality

🏗️ Shared Repository Foundation:
This module provides the error taxonomy of the store layer and a base class
with the helpers every backend needs: id generation, exact-match filtering,
ordering, pagination and the apply-each-independently batch loops.
"""

from abc import ABC
from typing import Any, Callable, List, Mapping, Optional, Sequence
import logging
import uuid

from .interface import (
    RecordRepository, Filter, FindOptions, SortDirection, UpdateSpec,
    RecordT, as_record_update
)

logger = logging.getLogger(__name__)

_MISSING = object()


class RepositoryError(Exception):
    """Base exception for repository operations"""
    pass


class BackendFailure(RepositoryError):
    """
    Raised when a collaborator (HTTP transport, database session) fails.

    The wrapped exception is available as ``__cause__``.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnsupportedOperation(RepositoryError):
    """Raised when a backend is asked for a capability it does not have"""
    pass


class TransactionError(RepositoryError):
    """Raised when transaction operations are misused"""
    pass


class RepositoryConfigurationError(RepositoryError):
    """Raised when a repository cannot be built from the available configuration"""
    pass


class DuplicateRecordError(RepositoryError):
    """Raised when a record is created with an id that is already stored"""

    def __init__(self, record_type: type, record_id: str):
        super().__init__(f"{record_type.__name__} {record_id!r} already exists")
        self.record_id = record_id


class BatchOperationError(RepositoryError):
    """
    Raised after a batch operation attempted every element but some failed.

    Attributes:
        results: Per-element results, None for failed or missing elements
        errors: (index, exception) pairs for the failed elements
    """

    def __init__(self, operation: str, results: List[Any], errors: List[tuple]):
        failed = ", ".join(str(index) for index, _ in errors)
        super().__init__(f"{operation} failed for {len(errors)} element(s) at index {failed}")
        self.operation = operation
        self.results = results
        self.errors = errors


class BaseRepository(RecordRepository[RecordT], ABC):
    """
    Base repository implementation providing common functionality.

    This class provides:
    - Per-class logger
    - Identifier generation
    - In-process filtering, ordering and pagination
    - Default batch operations looping over the single-record ones
    """

    def __init__(self, record_type):
        self.record_type = record_type
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.record_type.__name__})"

    # ID generation
    def _generate_id(self) -> str:
        """Generate a new record ID"""
        return str(uuid.uuid4())

    def _with_id(self, data: Mapping[str, Any]) -> dict:
        """Copy of ``data`` with an id, generating one if needed"""
        values = dict(data)
        if not values.get("id"):
            values["id"] = self._generate_id()
        return values

    # Query helpers
    def _matches_filter(self, record: Any, filters: Optional[Filter]) -> bool:
        """Check if a record matches every filter entry"""
        if not filters:
            return True
        for field_name, expected in filters.items():
            value = getattr(record, field_name, _MISSING)
            if value is _MISSING or value != expected:
                return False
        return True

    def _apply_filters(self, records: List[RecordT], filters: Optional[Filter]) -> List[RecordT]:
        if not filters:
            return list(records)
        return [record for record in records if self._matches_filter(record, filters)]

    def _apply_ordering(self, records: List[RecordT], options: Optional[FindOptions]) -> List[RecordT]:
        """Stable sort on the order_by field; None values go last ascending"""
        if options is None or options.order_by is None:
            return records
        order = options.order_by
        reverse = order.direction == SortDirection.DESC
        present = [r for r in records if getattr(r, order.field, None) is not None]
        missing = [r for r in records if getattr(r, order.field, None) is None]
        present.sort(key=lambda r: getattr(r, order.field), reverse=reverse)
        return present + missing if not reverse else missing + present

    def _apply_pagination(self, records: List[RecordT], options: Optional[FindOptions]) -> List[RecordT]:
        """Apply offset, then limit"""
        if options is None:
            return records
        if options.offset:
            records = records[options.offset:]
        if options.limit is not None:
            records = records[:options.limit]
        return records

    def _apply_find(self, records: List[RecordT], filters: Optional[Filter],
                    options: Optional[FindOptions]) -> List[RecordT]:
        results = self._apply_filters(records, filters)
        results = self._apply_ordering(results, options)
        return self._apply_pagination(results, options)

    # Default batch implementations
    async def _run_each(self, operation: str, items: Sequence[Any],
                        handler: Callable) -> List[Any]:
        """
        Run ``handler`` for every item, collecting failures instead of stopping.

        Repository errors and malformed elements (ValueError) are collected;
        anything else propagates immediately.
        """
        results: List[Any] = []
        errors: List[tuple] = []
        for index, item in enumerate(items):
            try:
                results.append(await handler(item))
            except (RepositoryError, ValueError) as e:
                self._logger.warning(f"{operation} element {index} failed: {e}")
                results.append(None)
                errors.append((index, e))
        if errors:
            raise BatchOperationError(operation, results, errors)
        return results

    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> List[RecordT]:
        return await self._run_each("create_many", items, self.create)

    async def update_many(self, updates: Sequence[UpdateSpec]) -> List[Optional[RecordT]]:
        async def apply(item):
            change = as_record_update(item)
            return await self.update(change.id, change.data)
        return await self._run_each("update_many", updates, apply)

    async def delete_many(self, record_ids: Sequence[str]) -> None:
        await self._run_each("delete_many", record_ids, self.delete)


__all__ = [
    "BaseRepository", "RepositoryError", "BackendFailure", "UnsupportedOperation",
    "TransactionError", "BatchOperationError", "RepositoryConfigurationError",
    "DuplicateRecordError"
]
