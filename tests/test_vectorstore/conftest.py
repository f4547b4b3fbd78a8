"""Pytest fixtures for vectorstore tests."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import CollectorRegistry

from alloydb_vectorstore.observability.metrics import MetricsCollector
from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
from alloydb_vectorstore.vectorstore.config import VectorStoreConfig
from alloydb_vectorstore.vectorstore.schema import ColumnSchema, MetadataColumn

# information_schema rows for a table with two typed metadata columns
TABLE_COLUMNS = [
    {"column_name": "langchain_id", "data_type": "uuid"},
    {"column_name": "content", "data_type": "text"},
    {"column_name": "embedding", "data_type": "USER-DEFINED"},
    {"column_name": "page", "data_type": "integer"},
    {"column_name": "source", "data_type": "text"},
    {"column_name": "langchain_metadata", "data_type": "json"},
]


@asynccontextmanager
async def _savepoint():
    yield


@pytest.fixture
def table_columns() -> list[dict]:
    return [dict(row) for row in TABLE_COLUMNS]


@pytest.fixture
def column_schema() -> ColumnSchema:
    """Resolved schema: page and source columns plus the JSON column."""
    return ColumnSchema(
        table_name="documents",
        metadata_columns=(
            MetadataColumn("page", "integer"),
            MetadataColumn("source", "text"),
        ),
    )


@pytest.fixture
def mock_connection() -> AsyncMock:
    """Mock asyncpg connection; transaction() is a no-op savepoint."""
    conn = AsyncMock()
    conn.execute = AsyncMock(return_value="OK")
    conn.executemany = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.transaction = MagicMock(side_effect=lambda: _savepoint())
    return conn


@pytest.fixture
def mock_database(mock_connection, table_columns) -> AsyncMock:
    """Mock Database whose acquire()/transaction() yield mock_connection."""

    @asynccontextmanager
    async def _connection():
        yield mock_connection

    db = AsyncMock()
    db.fetch = AsyncMock(return_value=table_columns)
    db.fetchval = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="OK")
    db.acquire = MagicMock(side_effect=_connection)
    db.transaction = MagicMock(side_effect=_connection)
    return db


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def vector_store_config() -> VectorStoreConfig:
    return VectorStoreConfig(default_max_results=4, command_timeout=5.0, insert_batch_size=2)


@pytest.fixture
def store(mock_database, column_schema, vector_store_config, metrics) -> AlloyDBVectorStore:
    """Store over the mock database, schema already resolved."""
    return AlloyDBVectorStore(
        mock_database,
        column_schema,
        config=vector_store_config,
        metrics=metrics,
    )


@pytest.fixture
def search_row() -> dict:
    """Row shape returned by the search SELECT."""
    return {
        "page": 3,
        "source": "wiki",
        "langchain_id": "0b0c3a52-3c1d-4d1e-9a55-7f1c8b4c2e10",
        "content": "hello world",
        "embedding": "[0.1,0.2,0.3]",
        "langchain_metadata": '{"lang": "en"}',
        "distance": 0.25,
    }
