"""
Persistence - Data Storage and Retrieval

💾 Pluggable Storage Backends:
Record types choose their storage through registered metadata, not
inheritance.

Structure:
- backends/: In-process storage (memory)
- repositories/: The repository contract, SQL and REST implementations,
  and the factory selecting between them
"""

from .repositories import (
    RecordRepository, Filter, FindOptions, OrderBy, SortDirection,
    RecordUpdate, UpdateSpec,
    BaseRepository, RepositoryError, BackendFailure, UnsupportedOperation,
    TransactionError, RepositoryConfigurationError, BatchOperationError, DuplicateRecordError,
    RestRepository, SQLRepository, DatabaseRegistry,
    RepositoryKind, RepositoryMetadata, MetadataRegistry, RepositoryFactory
)
from .backends import MemoryRepository

__all__ = [
    "MemoryRepository",
    "RecordRepository", "Filter", "FindOptions", "OrderBy", "SortDirection",
    "RecordUpdate", "UpdateSpec",
    "BaseRepository", "RepositoryError", "BackendFailure", "UnsupportedOperation",
    "TransactionError", "RepositoryConfigurationError", "BatchOperationError",
    "DuplicateRecordError",
    "RestRepository", "SQLRepository", "DatabaseRegistry",
    "RepositoryKind", "RepositoryMetadata", "MetadataRegistry", "RepositoryFactory"
]
