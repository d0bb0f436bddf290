"""
repokit - Uniform Repositories for Records

A single asynchronous data-access contract over relational, remote and
in-memory storage, with a generic service layer for lifecycle hooks and
validation.

Example:
    registry = MetadataRegistry()

    @registry.repository(kind=RepositoryKind.IN_MEMORY)
    class Note(Record):
        text: str

    factory = RepositoryFactory(registry)
    notes = RecordService(Note, factory=factory)
    note = await notes.create({"text": "hello"})
"""

from .entities import (
    Record, RecordService, ConflictError, ValidationFailed, Violation,
    validate_record, validate_fields
)
from .persistence import (
    RecordRepository, BaseRepository, MemoryRepository, RestRepository,
    SQLRepository, DatabaseRegistry, Filter, FindOptions, OrderBy, SortDirection,
    RecordUpdate, RepositoryKind, RepositoryMetadata, MetadataRegistry,
    RepositoryFactory, RepositoryError, BackendFailure, UnsupportedOperation,
    TransactionError, RepositoryConfigurationError, BatchOperationError,
    DuplicateRecordError
)
from .infrastructure import (
    ApplicationConfig, Environment, PersistenceConfig, LoggingConfig,
    configure_logging
)

__version__ = "0.1.0"

__all__ = [
    # Records and services
    "Record", "RecordService", "ConflictError", "ValidationFailed", "Violation",
    "validate_record", "validate_fields",

    # Repositories
    "RecordRepository", "BaseRepository", "MemoryRepository", "RestRepository",
    "SQLRepository", "DatabaseRegistry",
    "Filter", "FindOptions", "OrderBy", "SortDirection", "RecordUpdate",

    # Backend selection
    "RepositoryKind", "RepositoryMetadata", "MetadataRegistry", "RepositoryFactory",

    # Errors
    "RepositoryError", "BackendFailure", "UnsupportedOperation", "TransactionError",
    "RepositoryConfigurationError", "BatchOperationError", "DuplicateRecordError",

    # Infrastructure
    "ApplicationConfig", "Environment", "PersistenceConfig", "LoggingConfig",
    "configure_logging"
]
