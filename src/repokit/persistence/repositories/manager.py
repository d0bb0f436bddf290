"""
Repository Manager - Backend Selection and Construction

🏭 Metadata-Driven Backend Factory:
This module resolves which repository implementation serves a record type.
Each record type gets at most one RepositoryMetadata entry in an explicit
MetadataRegistry, populated once at startup. The RepositoryFactory reads that
registry and builds the matching repository:

- RELATIONAL -> SQLRepository on a session from the named database
- REMOTE     -> RestRepository on the caller-supplied (or configured) endpoint
- IN_MEMORY  -> MemoryRepository

Missing metadata is a configuration error raised at construction time; there
is no default kind.

Example:
    registry = MetadataRegistry()

    @registry.repository(kind=RepositoryKind.RELATIONAL, database="main")
    class Product(Record, table=True):
        name: str

    factory = RepositoryFactory(registry, databases=DatabaseRegistry({"main": url}))
    products = factory.create(Product)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Type
import logging

import httpx

from .interface import RecordRepository
from .base import RepositoryConfigurationError
from .rest import RestRepository, DEFAULT_TIMEOUT
from .sql import SQLRepository, DatabaseRegistry
from ..backends.memory import MemoryRepository

logger = logging.getLogger(__name__)


class RepositoryKind(Enum):
    """Available repository backends"""
    RELATIONAL = "relational"
    REMOTE = "remote"
    IN_MEMORY = "in-memory"


@dataclass(frozen=True)
class RepositoryMetadata:
    """Backend selection for one record type"""
    kind: RepositoryKind
    database: Optional[str] = None

    def __post_init__(self):
        if self.kind == RepositoryKind.RELATIONAL and not self.database:
            raise ValueError("A relational repository needs a database name")
        if self.kind != RepositoryKind.RELATIONAL and self.database is not None:
            raise ValueError(f"database is only valid for relational repositories, not {self.kind.value}")


class MetadataRegistry:
    """
    Explicit map from record type to its RepositoryMetadata.

    Registration happens once per type; registering a type twice is an error.
    """

    def __init__(self):
        self._entries: Dict[type, RepositoryMetadata] = {}

    def register(self, record_type: type, metadata: RepositoryMetadata) -> None:
        if record_type in self._entries:
            raise RepositoryConfigurationError(
                f"Repository metadata already registered for {record_type.__name__}"
            )
        self._entries[record_type] = metadata
        logger.debug(f"Registered {metadata.kind.value} repository for {record_type.__name__}")

    def repository(self, kind: RepositoryKind, database: Optional[str] = None) -> Callable[[type], type]:
        """Class decorator registering metadata for the decorated type"""
        metadata = RepositoryMetadata(kind, database)

        def decorator(record_type: type) -> type:
            self.register(record_type, metadata)
            return record_type

        return decorator

    def get(self, record_type: type) -> Optional[RepositoryMetadata]:
        return self._entries.get(record_type)

    def resolve(self, record_type: type) -> RepositoryMetadata:
        """
        Metadata for a record type.

        Raises:
            RepositoryConfigurationError: If the type has no metadata
        """
        metadata = self._entries.get(record_type)
        if metadata is None:
            raise RepositoryConfigurationError(
                f"No repository metadata registered for {record_type.__name__}"
            )
        return metadata

    def __contains__(self, record_type: type) -> bool:
        return record_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class RepositoryFactory:
    """
    Builds the repository configured for a record type.

    Args:
        registry: Record type metadata
        databases: Named databases, required for relational types
        endpoints: Default REMOTE endpoints keyed by record type name
        http_timeout: Timeout for HTTP clients created by remote repositories
    """

    def __init__(self, registry: MetadataRegistry,
                 databases: Optional[DatabaseRegistry] = None,
                 endpoints: Optional[Mapping[str, str]] = None,
                 http_timeout: float = DEFAULT_TIMEOUT):
        self.registry = registry
        self.databases = databases
        self.endpoints: Dict[str, str] = dict(endpoints or {})
        self.http_timeout = http_timeout

    @classmethod
    def from_config(cls, registry: MetadataRegistry, config) -> 'RepositoryFactory':
        """Build from a PersistenceConfig"""
        return cls(
            registry,
            databases=DatabaseRegistry.from_config(config),
            endpoints=config.endpoints,
            http_timeout=config.http_timeout
        )

    def create(self, record_type: Type, endpoint: Optional[str] = None,
               client: Optional[httpx.AsyncClient] = None) -> RecordRepository:
        """
        Build the repository for ``record_type``.

        Args:
            record_type: Record type with registered metadata
            endpoint: Resource URL for REMOTE types; overrides configured endpoints
            client: HTTP client for REMOTE types

        Raises:
            RepositoryConfigurationError: If metadata, endpoint or database is missing
        """
        metadata = self.registry.resolve(record_type)

        if metadata.kind == RepositoryKind.RELATIONAL:
            if self.databases is None:
                raise RepositoryConfigurationError(
                    f"{record_type.__name__} is relational but no databases are configured"
                )
            repository = SQLRepository(record_type, self.databases.session(metadata.database),
                                       database=metadata.database)
        elif metadata.kind == RepositoryKind.REMOTE:
            url = endpoint or self.endpoints.get(record_type.__name__)
            if not url:
                raise RepositoryConfigurationError(
                    f"{record_type.__name__} is remote but no endpoint was supplied"
                )
            repository = RestRepository(record_type, url, client=client, timeout=self.http_timeout)
        else:
            repository = MemoryRepository(record_type)

        logger.info(f"Created {repository!r} for {metadata.kind.value} metadata")
        return repository


__all__ = [
    "RepositoryKind", "RepositoryMetadata", "MetadataRegistry", "RepositoryFactory"
]
