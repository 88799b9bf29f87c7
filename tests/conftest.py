"""
Pytest configuration and shared fixtures for Merch Hub tests.

Settings are read at import time, so the environment is pointed at a
throwaway data root and an in-memory SQLite database before any merch_hub
module is imported.
"""
import os
import tempfile

os.environ.setdefault("MERCH_DATA_ROOT", tempfile.mkdtemp(prefix="merch-data-"))
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from merch_hub.database import build_engine, create_tables
from merch_hub.store import MemoryStore, SqlAlchemyStore

from tests.helpers import catalog_csv, catalog_row


@pytest.fixture
def memory_store():
    """Fresh in-memory store."""
    return MemoryStore()


@pytest.fixture
def tour_shirt_csv():
    """One product, two variants: TS-S (5 in warehouse) and TS-M (3 in warehouse)."""
    return catalog_csv(
        catalog_row(sku="TS-S", size="S", warehouse="5"),
        catalog_row(sku="TS-M", size="M", warehouse="3"),
    )


@pytest_asyncio.fixture
async def sqlite_engine():
    """In-memory SQLite engine with all tables created."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sqlite_engine):
    factory = async_sessionmaker(bind=sqlite_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def sql_store(db_session):
    return SqlAlchemyStore(db_session)
