"""
Persistence Repositories - Data Access Layer

💾 One Contract, Several Backends:
This package defines the repository contract and its relational and remote
implementations, plus the metadata-driven factory that picks between them.

Components:
- RecordRepository: Standard interface for all persistence backends
- BaseRepository: Shared helpers and the error hierarchy
- SQLRepository / DatabaseRegistry: SQLModel-backed storage
- RestRepository: HTTP resource storage
- RepositoryFactory / MetadataRegistry: Backend selection per record type
"""

from .interface import (
    RecordRepository, Filter, FindOptions, OrderBy, SortDirection,
    RecordUpdate, UpdateSpec
)
from .base import (
    BaseRepository, RepositoryError, BackendFailure, UnsupportedOperation,
    TransactionError, RepositoryConfigurationError, BatchOperationError,
    DuplicateRecordError
)
from .rest import RestRepository
from .sql import SQLRepository, DatabaseRegistry
from .manager import RepositoryKind, RepositoryMetadata, MetadataRegistry, RepositoryFactory

__all__ = [
    # Interface
    "RecordRepository", "Filter", "FindOptions", "OrderBy", "SortDirection",
    "RecordUpdate", "UpdateSpec",

    # Base and errors
    "BaseRepository", "RepositoryError", "BackendFailure", "UnsupportedOperation",
    "TransactionError", "RepositoryConfigurationError", "BatchOperationError",
    "DuplicateRecordError",

    # Implementations
    "RestRepository", "SQLRepository", "DatabaseRegistry",

    # Selection
    "RepositoryKind", "RepositoryMetadata", "MetadataRegistry", "RepositoryFactory"
]
