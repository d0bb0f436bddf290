"""Shared fixtures"""

import pytest
import pytest_asyncio

from repokit import DatabaseRegistry, MemoryRepository, SQLRepository

from sample_models import Item, Product, ProductReview

MEMORY_DATABASE = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def items():
    return MemoryRepository(Item)


@pytest_asyncio.fixture
async def databases():
    registry = DatabaseRegistry({"main": MEMORY_DATABASE})
    await registry.create_schema()
    yield registry
    await registry.dispose()


@pytest_asyncio.fixture
async def session(databases):
    session = databases.session("main")
    yield session
    await session.close()


@pytest.fixture
def products(session):
    return SQLRepository(Product, session, database="main")


@pytest.fixture
def reviews(session):
    return SQLRepository(ProductReview, session, database="main")
