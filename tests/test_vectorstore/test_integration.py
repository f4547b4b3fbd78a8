"""
Integration tests for the vectorstore module.

These tests require a running PostgreSQL / AlloyDB instance with pgvector,
reachable through DATABASE_URL. They are skipped when it is unavailable.
Run with: pytest tests/test_vectorstore/test_integration.py -m integration -v
"""

import uuid

import pytest
from prometheus_client import CollectorRegistry

from alloydb_vectorstore.observability.metrics import MetricsCollector
from alloydb_vectorstore.storage.database import Database
from alloydb_vectorstore.storage.table import init_vectorstore_table
from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
from alloydb_vectorstore.vectorstore.base import SearchRequest
from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
from alloydb_vectorstore.vectorstore.filters import IsEqualTo, IsNotEqualTo
from alloydb_vectorstore.vectorstore.index import HNSWIndex
from alloydb_vectorstore.vectorstore.schema import ColumnSchema, MetadataColumn

pytestmark = pytest.mark.integration


@pytest.fixture
async def integration_db():
    """
    Get connected database for integration tests.

    Skips if database is not available.
    """
    db = Database()

    try:
        await db.connect()
    except Exception as e:
        pytest.skip(f"Database not available: {e}")

    try:
        yield db
    finally:
        await db.close()


@pytest.fixture
async def integration_schema(integration_db):
    """Fresh table with a typed "key" column; dropped afterwards."""
    schema = ColumnSchema(
        table_name=f"integ_{uuid.uuid4().hex[:8]}",
        metadata_columns=(MetadataColumn("key", "TEXT"),),
    )
    await init_vectorstore_table(integration_db, schema, vector_size=3)

    yield schema

    await integration_db.execute(f"DROP TABLE IF EXISTS {schema.qualified_table}")


async def _store(db, schema, strategy=DistanceStrategy.COSINE_DISTANCE):
    return await AlloyDBVectorStore.create(
        db,
        ColumnSchema(table_name=schema.table_name, metadata_columns=("key",)),
        distance_strategy=strategy,
        metrics=MetricsCollector(registry=CollectorRegistry()),
    )


class TestFilterSemantics:
    """Null handling of equality filters against real rows."""

    @pytest.mark.asyncio
    async def test_equal_keeps_only_exact_match(self, integration_db, integration_schema):
        store = await _store(integration_db, integration_schema)
        ids = await store.add_all(
            [[1.0, 0.0, 0.0]] * 4,
            metadata=[{"key": "a"}, {"key": "A"}, {"key2": "a"}, {}],
        )

        matches = await store.search(
            SearchRequest(
                query_embedding=[1.0, 0.0, 0.0],
                max_results=10,
                filter=IsEqualTo("key", "a"),
            )
        )

        assert [m.id for m in matches] == [ids[0]]

    @pytest.mark.asyncio
    async def test_not_equal_keeps_missing_key(self, integration_db, integration_schema):
        store = await _store(integration_db, integration_schema)
        ids = await store.add_all(
            [[1.0, 0.0, 0.0]] * 3,
            metadata=[{"key": "a"}, {"key": "b"}, {}],
        )

        matches = await store.search(
            SearchRequest(
                query_embedding=[1.0, 0.0, 0.0],
                max_results=10,
                filter=IsNotEqualTo("key", "a"),
            )
        )

        assert sorted(m.id for m in matches) == sorted(ids[1:])


class TestSearchOrdering:
    """Results come back nearest first."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "strategy",
        [DistanceStrategy.COSINE_DISTANCE, DistanceStrategy.EUCLIDEAN],
    )
    async def test_distance_non_decreasing(
        self, integration_db, integration_schema, strategy
    ):
        store = await _store(integration_db, integration_schema, strategy)
        await store.add_all(
            [[1.0, 0.0, 0.0], [0.7, 0.7, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [-1.0, 0.0, 0.0]],
            texts=["a", "b", "c", "d", "e"],
        )

        matches = await store.search(
            SearchRequest(query_embedding=[1.0, 0.1, 0.0], max_results=5)
        )

        distances = [m.distance for m in matches]
        assert distances == sorted(distances)
        assert matches[0].text == "a"

    @pytest.mark.asyncio
    async def test_search_with_hnsw_index(self, integration_db, integration_schema):
        store = await _store(integration_db, integration_schema)
        await store.add_all([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], texts=["x", "y"])
        await store.apply_vector_index(HNSWIndex())

        matches = await store.search(SearchRequest(query_embedding=[0.0, 1.0, 0.0]))

        assert matches[0].text == "y"
        await store.drop_vector_index()


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_add_get_remove(self, integration_db, integration_schema):
        store = await _store(integration_db, integration_schema)
        record_id = await store.add(
            [0.1, 0.2, 0.3], text="hello", metadata={"key": "k", "lang": "en"}
        )

        matches = await store.get_by_ids([record_id])
        assert matches[0].text == "hello"
        assert matches[0].metadata == {"key": "k", "lang": "en"}
        assert matches[0].embedding == pytest.approx([0.1, 0.2, 0.3])

        assert await store.remove_all([record_id]) == 1
        assert await store.get_by_ids([record_id]) == []
