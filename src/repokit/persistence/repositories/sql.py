"""
SQL Repository - SQLModel Integration Repository

🗃️ SQL Database Repository:
This module provides the relational implementation of the repository
contract. Each repository is bound to one SQLModel table type and one async
session, which acts as the persistence context (unit of work).

Key Features:
- Writes are flushed before returning; outside an explicit transaction they
  are also committed
- Reads re-populate identity-mapped rows, so eager ``selectin`` relationships
  are resolved on read-back
- Batch operations use a single flush
- Real transactions, with SAVEPOINTs for nested levels
- DatabaseRegistry mapping database names to engines and sessions
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Type
import logging

from sqlalchemy import asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from .interface import Filter, FindOptions, SortDirection, UpdateSpec, RecordT, as_record_update
from .base import BaseRepository, BackendFailure, TransactionError, RepositoryConfigurationError

logger = logging.getLogger(__name__)


class SQLRepository(BaseRepository[RecordT]):
    """
    SQL repository implementation using SQLModel.

    Atomicity and isolation are exactly those of the underlying session.
    """

    def __init__(self, record_type: Type[RecordT], session: AsyncSession,
                 database: Optional[str] = None):
        if not hasattr(record_type, "__table__"):
            raise RepositoryConfigurationError(
                f"{record_type.__name__} is not a SQL table model (declare it with table=True)"
            )
        super().__init__(record_type)
        self.session = session
        self.database = database
        self._transactions: List[Any] = []

    @property
    def in_transaction(self) -> bool:
        """True while an explicit transaction is open"""
        return bool(self._transactions)

    def _assignable(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Keep column and relationship attributes, drop anything else"""
        relationships = getattr(self.record_type, "__sqlmodel_relationships__", {})
        return {
            key: value for key, value in data.items()
            if key in self.record_type.model_fields or key in relationships
        }

    def _assign(self, entity: RecordT, data: Mapping[str, Any]) -> None:
        for key, value in self._assignable(data).items():
            if key != "id":
                setattr(entity, key, value)

    async def _fail(self, operation: str, error: SQLAlchemyError):
        """Roll back the implicit transaction, then raise BackendFailure"""
        self._logger.error(f"Error during {operation} on {self.record_type.__name__}: {error}")
        if not self._transactions:
            await self.session.rollback()
        raise BackendFailure(f"{operation} failed for {self.record_type.__name__}: {error}") from error

    async def _persist(self, operation: str) -> None:
        """Flush, and commit when no explicit transaction is open"""
        try:
            if self._transactions:
                await self.session.flush()
            else:
                await self.session.commit()
        except SQLAlchemyError as e:
            await self._fail(operation, e)

    def _select(self):
        return select(self.record_type).execution_options(populate_existing=True)

    async def _load(self, record_id: str) -> Optional[RecordT]:
        stmt = self._select().where(self.record_type.id == record_id)
        result = await self.session.exec(stmt)
        return result.first()

    async def _fetch(self, operation: str, stmt) -> List[RecordT]:
        try:
            result = await self.session.exec(stmt)
            return list(result.all())
        except SQLAlchemyError as e:
            await self._fail(operation, e)

    # Core CRUD operations
    async def create(self, data: Mapping[str, Any]) -> RecordT:
        values = self._with_id(self._assignable(data))
        record_id = values["id"]
        try:
            self.session.add(self.record_type(**values))
        except SQLAlchemyError as e:
            await self._fail("create", e)
        await self._persist("create")
        self._logger.debug(f"Created {self.record_type.__name__} {record_id}")
        return await self.find_by_id(record_id)

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[RecordT]:
        entity = await self.find_by_id(record_id)
        if entity is None:
            return None
        self._assign(entity, data)
        await self._persist("update")
        return await self.find_by_id(record_id)

    async def delete(self, record_id: str) -> None:
        entity = await self.find_by_id(record_id)
        if entity is None:
            return
        try:
            await self.session.delete(entity)
        except SQLAlchemyError as e:
            await self._fail("delete", e)
        await self._persist("delete")

    async def find_by_id(self, record_id: str) -> Optional[RecordT]:
        try:
            return await self._load(record_id)
        except SQLAlchemyError as e:
            await self._fail("find_by_id", e)

    # Query operations
    def _build_query(self, filters: Optional[Filter], options: Optional[FindOptions] = None):
        stmt = self._select()
        if filters:
            stmt = stmt.filter_by(**filters)
        if options is None:
            return stmt
        if options.order_by is not None:
            column = getattr(self.record_type, options.order_by.field, None)
            if column is None:
                raise ValueError(f"{self.record_type.__name__} has no field {options.order_by.field!r}")
            if options.order_by.direction == SortDirection.DESC:
                stmt = stmt.order_by(desc(column))
            else:
                stmt = stmt.order_by(asc(column))
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)
        return stmt

    async def find_one(self, filters: Filter) -> Optional[RecordT]:
        try:
            stmt = self._build_query(filters).limit(1)
        except SQLAlchemyError as e:
            await self._fail("find_one", e)
        results = await self._fetch("find_one", stmt)
        return results[0] if results else None

    async def find_all(self) -> List[RecordT]:
        return await self._fetch("find_all", self._select())

    async def find(self, filters: Optional[Filter] = None,
                   options: Optional[FindOptions] = None) -> List[RecordT]:
        try:
            stmt = self._build_query(filters, options)
        except SQLAlchemyError as e:
            await self._fail("find", e)
        return await self._fetch("find", stmt)

    # Batch operations: one flush for the whole collection
    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> List[RecordT]:
        record_ids = []
        try:
            for item in items:
                values = self._with_id(self._assignable(item))
                record_ids.append(values["id"])
                self.session.add(self.record_type(**values))
        except SQLAlchemyError as e:
            await self._fail("create_many", e)
        await self._persist("create_many")
        return [await self.find_by_id(record_id) for record_id in record_ids]

    async def update_many(self, updates: Sequence[UpdateSpec]) -> List[Optional[RecordT]]:
        """
        Resolve every id individually, then flush all found entities at once.

        Missing ids yield None without blocking the others. If the flush
        fails outside an explicit transaction, the whole batch is rolled back.
        """
        found: List[Optional[str]] = []
        for item in updates:
            change = as_record_update(item)
            entity = await self.find_by_id(change.id)
            if entity is None:
                found.append(None)
                continue
            self._assign(entity, change.data)
            found.append(change.id)
        await self._persist("update_many")
        return [await self.find_by_id(record_id) if record_id else None for record_id in found]

    async def delete_many(self, record_ids: Sequence[str]) -> None:
        if not record_ids:
            return
        stmt = self._select().where(self.record_type.id.in_(list(record_ids)))
        try:
            for entity in await self._fetch("delete_many", stmt):
                await self.session.delete(entity)
        except SQLAlchemyError as e:
            await self._fail("delete_many", e)
        await self._persist("delete_many")

    # Transaction operations
    async def begin_transaction(self) -> None:
        """Open a transaction, or a SAVEPOINT when one is already open"""
        try:
            if self._transactions:
                transaction = await self.session.begin_nested()
            else:
                if self.session.in_transaction():
                    # Close the transaction autobegun by earlier reads
                    await self.session.commit()
                transaction = await self.session.begin()
        except SQLAlchemyError as e:
            await self._fail("begin_transaction", e)
        self._transactions.append(transaction)
        self._logger.debug(f"Transaction started (depth={len(self._transactions)})")

    async def commit_transaction(self) -> None:
        if not self._transactions:
            raise TransactionError("commit_transaction called without begin_transaction")
        transaction = self._transactions.pop()
        try:
            await transaction.commit()
        except SQLAlchemyError as e:
            self._logger.error(f"Error committing transaction: {e}")
            raise BackendFailure(f"commit failed: {e}") from e
        self._logger.debug(f"Transaction committed (depth={len(self._transactions)})")

    async def rollback_transaction(self) -> None:
        if not self._transactions:
            raise TransactionError("rollback_transaction called without begin_transaction")
        transaction = self._transactions.pop()
        try:
            await transaction.rollback()
        except SQLAlchemyError as e:
            self._logger.error(f"Error rolling back transaction: {e}")
            raise BackendFailure(f"rollback failed: {e}") from e
        self._logger.debug(f"Transaction rolled back (depth={len(self._transactions)})")


class DatabaseRegistry:
    """
    Named databases for relational repositories.

    Engines and session factories are created lazily, one per database name.

    Usage:
        databases = DatabaseRegistry({"main": "sqlite+aiosqlite:///app.db"})
        await databases.create_schema()
        session = databases.session("main")
    """

    def __init__(self, databases: Mapping[str, str], echo: bool = False):
        self.urls: Dict[str, str] = dict(databases)
        self.echo = echo
        self._engines: Dict[str, AsyncEngine] = {}
        self._session_factories: Dict[str, async_sessionmaker] = {}

    @classmethod
    def from_config(cls, config) -> 'DatabaseRegistry':
        """Build from a PersistenceConfig"""
        return cls(config.databases, echo=config.echo)

    def __contains__(self, name: str) -> bool:
        return name in self.urls

    def engine(self, name: str) -> AsyncEngine:
        if name not in self.urls:
            raise RepositoryConfigurationError(f"Unknown database: {name!r}")
        if name not in self._engines:
            url = self.urls[name]
            kwargs: Dict[str, Any] = {"echo": self.echo}
            if url.startswith("sqlite") and ":memory:" in url:
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}
            self._engines[name] = create_async_engine(url, **kwargs)
            self._session_factories[name] = async_sessionmaker(
                bind=self._engines[name],
                class_=AsyncSession,
                expire_on_commit=False
            )
            logger.info(f"Created engine for database {name!r}")
        return self._engines[name]

    def session(self, name: str) -> AsyncSession:
        """New session bound to the named database"""
        self.engine(name)
        return self._session_factories[name]()

    async def create_schema(self, name: Optional[str] = None) -> None:
        """Create all SQLModel tables in one database, or in all of them"""
        names = [name] if name is not None else list(self.urls)
        for db_name in names:
            async with self.engine(db_name).begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info(f"Schema created for database {db_name!r}")

    async def dispose(self) -> None:
        """Dispose every engine created so far"""
        for engine in self._engines.values():
            await engine.dispose()
        self._engines.clear()
        self._session_factories.clear()


# Export main components
__all__ = ["SQLRepository", "DatabaseRegistry"]
