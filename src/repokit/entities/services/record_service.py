"""
Record Service - Lifecycle Hooks Around Any Repository

🔧 Generic CRUD Service:
A RecordService is bound to one record type and one repository. Every
mutating call runs a before-hook, the repository operation, then an
after-hook, sequentially on the caller's task.

Default hooks:
- before_create: full validation of the data against the type's rules
- before_update: full validation of the stored record merged with the changes
- everything else: no-op

Failure semantics:
- a before-hook error aborts the call; the repository is never invoked
- an after-hook error propagates after the repository call completed, so
  the operation succeeded but post-processing failed

Usage:
    class ProductService(RecordService[Product]):
        async def before_create(self, data):
            await super().before_create(data)
            if await self.find_one({"name": data["name"]}):
                raise ConflictError("name", data["name"])
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, List, Mapping, Optional, Type
import logging

import httpx

from ...persistence.repositories.interface import RecordRepository, Filter, FindOptions, RecordT
from ...persistence.repositories.manager import RepositoryFactory
from .validation_service import ValidationFailed, validate_record, validate_fields

logger = logging.getLogger(__name__)


class ConflictError(Exception):
    """Raised when a write would clash with an existing record"""

    def __init__(self, field: str, value: Any, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"A record with {field} {value!r} already exists")


class RecordService(Generic[RecordT]):
    """
    Generic service for one record type.

    Args:
        record_type: The record type managed by the service
        repository: Repository to bind to; built by ``factory`` when omitted
        factory: RepositoryFactory selecting the backend from metadata
        endpoint: Resource URL for remote record types
        client: HTTP client for remote record types
    """

    def __init__(self, record_type: Type[RecordT],
                 repository: Optional[RecordRepository[RecordT]] = None,
                 *,
                 factory: Optional[RepositoryFactory] = None,
                 endpoint: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None):
        if repository is None:
            if factory is None:
                raise ValueError("RecordService needs a repository or a factory")
            repository = factory.create(record_type, endpoint=endpoint, client=client)
        self.record_type = record_type
        self._repo = repository

    @property
    def repository(self) -> RecordRepository[RecordT]:
        return self._repo

    async def create(self, data: Mapping[str, Any]) -> RecordT:
        await self.before_create(data)
        record = await self._repo.create(data)
        await self.after_create(record)
        return record

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[RecordT]:
        await self.before_update(record_id, data)
        record = await self._repo.update(record_id, data)
        await self.after_update(record)
        return record

    async def delete(self, record_id: str) -> None:
        await self.before_delete(record_id)
        await self._repo.delete(record_id)
        await self.after_delete(record_id)

    async def find_by_id(self, record_id: str) -> Optional[RecordT]:
        return await self._repo.find_by_id(record_id)

    async def find_one(self, filters: Filter) -> Optional[RecordT]:
        return await self._repo.find_one(filters)

    async def find_all(self) -> List[RecordT]:
        return await self._repo.find_all()

    async def find(self, filters: Optional[Filter] = None,
                   options: Optional[FindOptions] = None) -> List[RecordT]:
        return await self._repo.find(filters, options)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator['RecordService[RecordT]']:
        """Run a block inside the bound repository's transaction"""
        async with self._repo.transaction():
            yield self

    # ------------------------------
    # Lifecycle hooks, override as needed
    # ------------------------------

    async def before_create(self, data: Mapping[str, Any]) -> None:
        """
        Validate ``data`` as a complete record.

        Raises:
            ValidationFailed: If any declared rule fails
        """
        violations = validate_record(self.record_type, data)
        if violations:
            logger.debug(f"Rejected {self.record_type.__name__} create: {violations}")
            raise ValidationFailed(self.record_type, violations)

    async def after_create(self, record: RecordT) -> None:
        pass

    async def before_update(self, record_id: str, data: Mapping[str, Any]) -> None:
        """
        Validate the stored record merged with ``data``, so field and model
        validators run exactly as on create. Unknown ids only get their
        supplied fields checked.

        Raises:
            ValidationFailed: If the merged record breaks any declared rule
        """
        existing = await self._repo.find_by_id(record_id)
        if existing is None:
            violations = validate_fields(self.record_type, data)
        else:
            merged = {**existing.to_dict(), **data, "id": existing.id}
            violations = validate_record(self.record_type, merged)
        if violations:
            logger.debug(f"Rejected {self.record_type.__name__} {record_id} update: {violations}")
            raise ValidationFailed(self.record_type, violations)

    async def after_update(self, record: Optional[RecordT]) -> None:
        pass

    async def before_delete(self, record_id: str) -> None:
        pass

    async def after_delete(self, record_id: str) -> None:
        pass


__all__ = ["RecordService", "ConflictError"]
