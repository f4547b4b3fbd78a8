"""
PostgreSQL / AlloyDB implementation of the EmbeddingStore interface.

Runs QueryBuilder statements over the asyncpg pool owned by Database.
Each operation holds one pooled connection for its duration; batches run in
a single transaction, so they apply fully or not at all.
"""

import json
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
import structlog

from alloydb_vectorstore.observability.metrics import MetricsCollector, get_metrics
from alloydb_vectorstore.observability.tracing import get_tracer, store_span
from alloydb_vectorstore.storage.database import Database
from alloydb_vectorstore.vectorstore.base import (
    EmbeddingMatch,
    EmbeddingRecord,
    EmbeddingStore,
    SearchRequest,
    random_id,
)
from alloydb_vectorstore.vectorstore.config import VectorStoreConfig
from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
from alloydb_vectorstore.vectorstore.exceptions import (
    ConfigurationError,
    ExecutionError,
    SchemaMismatchError,
)
from alloydb_vectorstore.vectorstore.filters import Filter
from alloydb_vectorstore.vectorstore.index import (
    DEFAULT_INDEX_NAME_SUFFIX,
    BaseIndex,
    ScaNNIndex,
)
from alloydb_vectorstore.vectorstore.query_builder import (
    COLUMNS_QUERY,
    QueryBuilder,
    parse_vector,
)
from alloydb_vectorstore.vectorstore.query_options import QueryOptions
from alloydb_vectorstore.vectorstore.schema import ColumnSchema, quote_identifier

logger = structlog.get_logger(__name__)

# Failures from the connection layer; asyncio timeouts are OSError subclasses
DATABASE_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


def _affected_rows(status: str) -> int:
    """Parse the row count from a command status such as 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class AlloyDBVectorStore(EmbeddingStore):
    """
    Vector store over a PostgreSQL / AlloyDB table with pgvector.

    Features:
    - Configurable id / content / embedding / metadata columns
    - Metadata filters translated to parameterized SQL predicates
    - Cosine, Euclidean and inner-product search
    - Best-effort index tuning (HNSW, IVFFlat, IVF, ScaNN) per search
    - Vector index management

    Usage:
        db = Database()
        await db.connect()

        store = await AlloyDBVectorStore.create(
            db,
            ColumnSchema(table_name="documents", metadata_columns=("page", "source")),
        )
        doc_id = await store.add(embedding, text="hello", metadata={"page": 1})
        matches = await store.search(SearchRequest(query_embedding=embedding))
    """

    def __init__(
        self,
        database: Database,
        schema: ColumnSchema,
        *,
        distance_strategy: DistanceStrategy = DistanceStrategy.COSINE_DISTANCE,
        query_options: QueryOptions | None = None,
        config: VectorStoreConfig | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the store with an already resolved schema.

        Prefer create(), which validates the schema against the live table.

        Args:
            database: Connected Database instance
            schema: Column schema of the table
            distance_strategy: Similarity metric for search and indexes
            query_options: Optional index tuning applied before each search
            config: Optional configuration
            metrics: Optional metrics collector (global one by default)
        """
        self._db = database
        self._schema = schema
        self._strategy = distance_strategy
        self._query_options = query_options
        self._config = config or VectorStoreConfig()
        self._metrics = metrics or get_metrics()
        self._tracer = get_tracer(__name__)
        self._builder = QueryBuilder(schema, distance_strategy)

    @classmethod
    async def create(
        cls,
        database: Database,
        schema: ColumnSchema,
        *,
        ignore_metadata_columns: list[str] | None = None,
        distance_strategy: DistanceStrategy = DistanceStrategy.COSINE_DISTANCE,
        query_options: QueryOptions | None = None,
        config: VectorStoreConfig | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "AlloyDBVectorStore":
        """
        Introspect the table, validate the schema and build the store.

        Args:
            database: Connected Database instance
            schema: Column schema of the table
            ignore_metadata_columns: Discover every other column as metadata
            distance_strategy: Similarity metric
            query_options: Optional index tuning applied before each search
            config: Optional configuration
            metrics: Optional metrics collector

        Raises:
            ConfigurationError: metadata_columns and ignore list both given
            SchemaMismatchError: Table or columns missing or mistyped
            ExecutionError: Introspection query failed
        """
        if schema.metadata_columns and ignore_metadata_columns:
            raise ConfigurationError(
                "Cannot use both metadata_columns and ignore_metadata_columns at the same time"
            )

        table = schema.qualified_table
        try:
            rows = await database.fetch(COLUMNS_QUERY, schema.table_name, schema.schema_name)
        except DATABASE_ERRORS as e:
            raise ExecutionError(table, "introspect", e) from e

        if not rows:
            raise SchemaMismatchError("Table does not exist", table)

        table_columns = {row["column_name"]: row["data_type"] for row in rows}
        resolved = schema.resolve(table_columns, ignore_metadata_columns)

        logger.info(
            "Vector store ready",
            table=table,
            metadata_columns=resolved.metadata_column_names,
            metadata_json_column=resolved.metadata_json_column,
            distance_strategy=distance_strategy.name,
        )
        return cls(
            database,
            resolved,
            distance_strategy=distance_strategy,
            query_options=query_options,
            config=config,
            metrics=metrics,
        )

    @property
    def schema(self) -> ColumnSchema:
        return self._schema

    @property
    def distance_strategy(self) -> DistanceStrategy:
        return self._strategy

    @asynccontextmanager
    async def _operation(self, name: str, **attributes: Any) -> AsyncIterator[None]:
        """Trace, time and count one operation; wrap database failures."""
        table = self._schema.qualified_table
        start = time.perf_counter()
        with store_span(self._tracer, name, table, **attributes):
            try:
                yield
            except DATABASE_ERRORS as e:
                self._metrics.record_operation(
                    name, "error", latency=time.perf_counter() - start
                )
                logger.error(
                    "Vector store operation failed",
                    table=table,
                    operation=name,
                    error=str(e),
                )
                raise ExecutionError(table, name, e) from e

        self._metrics.record_operation(name, "success", latency=time.perf_counter() - start)

    async def add(
        self,
        embedding: list[float],
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        id: str | None = None,
    ) -> str:
        record_id = id or random_id()
        await self.add_all([embedding], [text], [metadata or {}], [record_id])
        return record_id

    async def add_all(
        self,
        embeddings: list[list[float]],
        texts: list[str | None] | None = None,
        metadata: list[dict[str, Any]] | None = None,
        ids: list[str] | None = None,
    ) -> list[str]:
        """
        Insert embeddings as a single all-or-nothing batch.

        Ids are generated for every record when ``ids`` is omitted.

        Raises:
            ConfigurationError: If the list lengths differ (before any I/O)
            ExecutionError: If the insert fails; nothing is written
        """
        count = len(embeddings)
        if ids is None:
            ids = [random_id() for _ in range(count)]
        if texts is None:
            texts = [None] * count
        if metadata is None:
            metadata = [{}] * count

        if not (len(ids) == count == len(texts) == len(metadata)):
            raise ConfigurationError(
                "ids, embeddings, texts and metadata must have same length: "
                f"{len(ids)}, {count}, {len(texts)}, {len(metadata)}",
                table=self._schema.qualified_table,
                operation="add_all",
            )

        if count == 0:
            return []

        records = [
            EmbeddingRecord(
                id=record_id,
                embedding=list(embedding),
                text=text,
                metadata=dict(meta or {}),
            )
            for record_id, embedding, text, meta in zip(ids, embeddings, texts, metadata)
        ]
        statement = self._builder.insert(records)
        batch_size = self._config.insert_batch_size

        async with self._operation("add_all", batch_size=count):
            async with self._db.transaction() as conn:
                for offset in range(0, count, batch_size):
                    await conn.executemany(
                        statement.sql,
                        statement.rows[offset:offset + batch_size],
                        timeout=self._config.command_timeout,
                    )

        self._metrics.record_rows_written(count)
        logger.info("Inserted embeddings", table=self._schema.qualified_table, count=count)
        return list(ids)

    async def search(self, request: SearchRequest) -> list[EmbeddingMatch]:
        """
        Search for the nearest embeddings, optionally filtered by metadata.

        Index tuning settings are applied with SET LOCAL in the same
        transaction; one the server rejects is logged and skipped. Rows with
        equal distance come back in the database's native order.

        Returns:
            Matches ordered nearest first, without those under min_score
        """
        query = self._builder.search(request)
        tuning = self._builder.tuning_statements(self._query_options)
        timeout = self._config.command_timeout

        async with self._operation(
            "search",
            max_results=request.max_results,
            filtered=request.filter is not None,
        ):
            async with self._db.transaction() as conn:
                for statement in tuning:
                    try:
                        # Savepoint keeps the transaction usable if the setting fails
                        async with conn.transaction():
                            await conn.execute(statement, timeout=timeout)
                    except asyncpg.PostgresError as e:
                        logger.warning(
                            "Ignoring index tuning parameter",
                            table=self._schema.qualified_table,
                            statement=statement,
                            error=str(e),
                        )
                rows = await conn.fetch(query.sql, *query.params, timeout=timeout)

        matches = [self._row_to_match(row) for row in rows]
        if request.min_score is not None:
            matches = [m for m in matches if m.score >= request.min_score]

        self._metrics.record_search_results(len(matches))
        logger.debug(
            "Search complete",
            table=self._schema.qualified_table,
            returned=len(matches),
        )
        return matches

    async def find_relevant(
        self,
        query_embedding: list[float],
        max_results: int | None = None,
        min_score: float | None = None,
        filter: Filter | None = None,
    ) -> list[EmbeddingMatch]:
        """Search with max_results defaulting to the configured value."""
        if max_results is None:
            max_results = self._config.default_max_results
        return await self.search(
            SearchRequest(
                query_embedding=query_embedding,
                max_results=max_results,
                min_score=min_score,
                filter=filter,
            )
        )

    async def get_by_ids(self, ids: list[str]) -> list[EmbeddingMatch]:
        """
        Retrieve rows by id.

        Returns:
            Matches (score 1.0, no distance) in database order
        """
        if not ids:
            return []

        query = self._builder.get_by_ids(ids)
        async with self._operation("get_by_ids", count=len(ids)):
            async with self._db.acquire() as conn:
                rows = await conn.fetch(
                    query.sql, *query.params, timeout=self._config.command_timeout
                )

        return [self._row_to_match(row, score=1.0) for row in rows]

    async def remove(self, id: str) -> int:
        return await self.remove_all([id])

    async def remove_all(self, ids: list[str]) -> int:
        """
        Delete rows by id in one statement.

        Raises:
            ConfigurationError: If ids is empty (no SQL is issued)
            ExecutionError: If the delete fails; nothing is deleted
        """
        query = self._builder.delete(ids)

        async with self._operation("remove_all", count=len(ids)):
            async with self._db.transaction() as conn:
                status = await conn.execute(
                    query.sql, *query.params, timeout=self._config.command_timeout
                )

        deleted = _affected_rows(status)
        self._metrics.record_rows_deleted(deleted)
        logger.info(
            "Deleted embeddings",
            table=self._schema.qualified_table,
            requested=len(ids),
            deleted=deleted,
        )
        return deleted

    def default_index_name(self) -> str:
        return f"{self._schema.table_name}_{DEFAULT_INDEX_NAME_SUFFIX}"

    def _qualified_index(self, name: str) -> str:
        return f"{quote_identifier(self._schema.schema_name)}.{quote_identifier(name)}"

    async def apply_vector_index(
        self,
        index: BaseIndex,
        name: str | None = None,
        concurrently: bool = False,
    ) -> str:
        """
        Create a vector index on the embedding column.

        Args:
            index: Index definition (HNSW, IVFFlat, IVF, ScaNN)
            name: Index name (default "<table>_langchainvectorindex")
            concurrently: Build without locking writes (runs outside a transaction)

        Returns:
            The index name
        """
        name = name or self.default_index_name()
        if index.distance_strategy is not self._strategy:
            logger.warning(
                "Index distance strategy differs from the store's",
                index_strategy=index.distance_strategy.name,
                store_strategy=self._strategy.name,
            )

        concurrently_clause = "CONCURRENTLY " if concurrently else ""
        sql = (
            f"CREATE INDEX {concurrently_clause}IF NOT EXISTS {quote_identifier(name)} "
            f"ON {self._schema.qualified_table} "
            f"USING {index.index_type} "
            f"({quote_identifier(self._schema.embedding_column)} {index.operator_class()}) "
            f"WITH {index.index_options()}{index.where_clause()}"
        )

        async with self._operation("apply_vector_index", index_type=index.index_type):
            async with self._db.acquire() as conn:
                if isinstance(index, ScaNNIndex):
                    await conn.execute("CREATE EXTENSION IF NOT EXISTS alloydb_scann")
                await conn.execute(sql)

        logger.info("Created vector index", table=self._schema.qualified_table, index=name)
        return name

    async def drop_vector_index(self, name: str | None = None) -> None:
        name = name or self.default_index_name()
        async with self._operation("drop_vector_index"):
            async with self._db.acquire() as conn:
                await conn.execute(f"DROP INDEX IF EXISTS {self._qualified_index(name)}")
        logger.info("Dropped vector index", table=self._schema.qualified_table, index=name)

    async def reindex(self, name: str | None = None) -> None:
        name = name or self.default_index_name()
        async with self._operation("reindex"):
            async with self._db.acquire() as conn:
                await conn.execute(f"REINDEX INDEX {self._qualified_index(name)}")

    def _row_to_match(self, row: Any, score: float | None = None) -> EmbeddingMatch:
        """Convert a database row to an EmbeddingMatch."""
        schema = self._schema

        metadata: dict[str, Any] = {}
        if schema.metadata_json_column:
            extra = row.get(schema.metadata_json_column)
            if isinstance(extra, str):
                extra = json.loads(extra)
            if extra:
                metadata.update(extra)
        for name in schema.metadata_column_names:
            value = row.get(name)
            if value is not None:
                metadata[name] = value

        distance = row.get("distance")
        if distance is not None:
            distance = float(distance)
        if score is None:
            score = self._strategy.score(distance) if distance is not None else 0.0

        return EmbeddingMatch(
            id=str(row[schema.id_column]),
            score=score,
            distance=distance,
            embedding=parse_vector(row.get(schema.embedding_column)),
            text=row.get(schema.content_column),
            metadata=metadata,
        )
