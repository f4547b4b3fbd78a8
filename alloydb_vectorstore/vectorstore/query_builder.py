"""
SQL builder for the vector store table.

Produces ready-to-bind asyncpg statements for a ColumnSchema:

- insert: one parameterized INSERT plus one argument tuple per record
- search: similarity SELECT with optional filter predicate and LIMIT
- delete / get_by_ids: statements over an id set
- tuning: SET LOCAL statements for index query options

Nothing here touches a connection.
"""

import json
from dataclasses import dataclass
from typing import Any

import structlog

from alloydb_vectorstore.vectorstore.base import EmbeddingRecord, SearchRequest
from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
from alloydb_vectorstore.vectorstore.exceptions import ConfigurationError
from alloydb_vectorstore.vectorstore.filter_translator import FilterTranslator
from alloydb_vectorstore.vectorstore.query_options import QueryOptions
from alloydb_vectorstore.vectorstore.schema import ColumnSchema, quote_identifier

logger = structlog.get_logger(__name__)

# Column discovery used when a store is created; ordered so metadata columns
# discovered through an ignore list keep table order
COLUMNS_QUERY = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_name = $1 AND table_schema = $2
    ORDER BY ordinal_position
"""


def format_vector(embedding: list[float]) -> str:
    """Render an embedding in pgvector text format: [x,y,z]."""
    return f"[{','.join(str(float(x)) for x in embedding)}]"


def parse_vector(value: Any) -> list[float] | None:
    """Parse a pgvector value returned by asyncpg (text format or sequence)."""
    if value is None:
        return None
    if isinstance(value, str):
        body = value.strip().strip("[]")
        if not body:
            return []
        return [float(x) for x in body.split(",")]
    return [float(x) for x in value]


@dataclass(frozen=True)
class Query:
    """A single statement and its positional arguments."""

    sql: str
    params: tuple[Any, ...] = ()


@dataclass(frozen=True)
class BatchStatement:
    """A statement executed once per argument tuple (executemany)."""

    sql: str
    rows: list[tuple[Any, ...]]


class QueryBuilder:
    """
    Builds statements for one vector store table.

    Insert column order is fixed at construction: id, embedding, content,
    the metadata columns in declaration order, then the JSON column if the
    schema has one. Each row's values are looked up by column name, so the
    order of keys in a record's metadata dict never matters.
    """

    def __init__(
        self,
        schema: ColumnSchema,
        distance_strategy: DistanceStrategy = DistanceStrategy.COSINE_DISTANCE,
        translator: FilterTranslator | None = None,
    ):
        self._schema = schema
        self._strategy = distance_strategy
        self._translator = translator or FilterTranslator()

        self._metadata_names = schema.metadata_column_names
        self._declared = frozenset(self._metadata_names)
        self._insert_columns = [
            schema.id_column,
            schema.embedding_column,
            schema.content_column,
            *self._metadata_names,
        ]
        if schema.metadata_json_column:
            self._insert_columns.append(schema.metadata_json_column)

        self._insert_sql = self._build_insert_sql()

    @property
    def schema(self) -> ColumnSchema:
        return self._schema

    @property
    def distance_strategy(self) -> DistanceStrategy:
        return self._strategy

    @property
    def insert_columns(self) -> list[str]:
        return list(self._insert_columns)

    def _build_insert_sql(self) -> str:
        columns = ", ".join(quote_identifier(c) for c in self._insert_columns)
        placeholders = []
        for position, column in enumerate(self._insert_columns, start=1):
            if column == self._schema.embedding_column:
                placeholders.append(f"${position}::vector")
            else:
                placeholders.append(f"${position}")
        return (
            f"INSERT INTO {self._schema.qualified_table} ({columns}) "
            f"VALUES ({', '.join(placeholders)})"
        )

    def insert(self, records: list[EmbeddingRecord]) -> BatchStatement:
        """
        Build the INSERT for a batch of records.

        Metadata keys matching a declared column fill that column; the rest
        are serialized into the JSON column, or dropped when the schema has
        none. A declared column whose key is absent binds NULL.
        """
        return BatchStatement(
            sql=self._insert_sql,
            rows=[self._row_values(record) for record in records],
        )

    def _row_values(self, record: EmbeddingRecord) -> tuple[Any, ...]:
        schema = self._schema
        values: dict[str, Any] = {
            schema.id_column: record.id,
            schema.embedding_column: format_vector(record.embedding),
            schema.content_column: record.text,
        }

        overflow: dict[str, Any] = {}
        for key, value in record.metadata.items():
            if key in self._declared:
                values[key] = value
            else:
                overflow[key] = value

        if schema.metadata_json_column:
            values[schema.metadata_json_column] = (
                json.dumps(overflow, default=str) if overflow else None
            )
        elif overflow:
            logger.debug(
                "Dropping metadata keys without a column",
                table=schema.qualified_table,
                record_id=record.id,
                keys=sorted(overflow),
            )

        return tuple(values.get(column) for column in self._insert_columns)

    def _select_columns(self) -> list[str]:
        schema = self._schema
        columns = [
            *self._metadata_names,
            schema.id_column,
            schema.content_column,
            schema.embedding_column,
        ]
        if schema.metadata_json_column:
            columns.append(schema.metadata_json_column)
        return columns

    def search(self, request: SearchRequest) -> Query:
        """
        Build the similarity SELECT for a search request.

        $1 is the query vector; filter values follow; the LIMIT value is last.
        """
        schema = self._schema
        embedding = quote_identifier(schema.embedding_column)
        columns = ", ".join(quote_identifier(c) for c in self._select_columns())

        params: list[Any] = [format_vector(request.query_embedding)]
        where_clause = ""
        if request.filter is not None:
            predicate = self._translator.translate(request.filter, start=2)
            where_clause = f" WHERE {predicate.sql}"
            params.extend(predicate.params)

        params.append(request.max_results)
        limit_placeholder = f"${len(params)}"

        sql = (
            f"SELECT {columns}, "
            f"{self._strategy.search_function}({embedding}, $1::vector) AS distance "
            f"FROM {schema.qualified_table}{where_clause} "
            f"ORDER BY {embedding} {self._strategy.operator} $1::vector "
            f"LIMIT {limit_placeholder}"
        )
        return Query(sql=sql, params=tuple(params))

    def delete(self, ids: list[str]) -> Query:
        """
        Build the DELETE for a set of ids.

        Raises:
            ConfigurationError: If ids is empty
        """
        if not ids:
            raise ConfigurationError(
                "ids must not be None or empty",
                table=self._schema.qualified_table,
                operation="remove_all",
            )

        sql = (
            f"DELETE FROM {self._schema.qualified_table} "
            f"WHERE {quote_identifier(self._schema.id_column)} = ANY($1)"
        )
        return Query(sql=sql, params=(list(ids),))

    def get_by_ids(self, ids: list[str]) -> Query:
        """Build a SELECT of full rows for a set of ids."""
        if not ids:
            raise ConfigurationError(
                "ids must not be None or empty",
                table=self._schema.qualified_table,
                operation="get_by_ids",
            )

        columns = ", ".join(quote_identifier(c) for c in self._select_columns())
        sql = (
            f"SELECT {columns} FROM {self._schema.qualified_table} "
            f"WHERE {quote_identifier(self._schema.id_column)} = ANY($1)"
        )
        return Query(sql=sql, params=(list(ids),))

    def tuning_statements(self, options: QueryOptions | None) -> list[str]:
        """Render index query options as SET LOCAL statements."""
        if options is None:
            return []
        return [f"SET LOCAL {setting}" for setting in options.parameter_settings()]
