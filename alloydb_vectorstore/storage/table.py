"""
Vector store table initialization.

Creates the table a ColumnSchema describes: a UUID primary key, nullable
text content, a fixed-size pgvector embedding, the typed metadata columns
and, optionally, the JSON overflow column.
"""

import asyncpg
import structlog

from alloydb_vectorstore.storage.database import Database
from alloydb_vectorstore.vectorstore.exceptions import (
    ConfigurationError,
    ExecutionError,
)
from alloydb_vectorstore.vectorstore.schema import (
    ColumnSchema,
    MetadataColumn,
    quote_identifier,
)

logger = structlog.get_logger(__name__)


def build_create_table_sql(
    schema: ColumnSchema,
    vector_size: int,
    store_metadata: bool = True,
) -> str:
    """
    Render CREATE TABLE for a column schema.

    Args:
        schema: Column layout; metadata columns must be MetadataColumn
        vector_size: Embedding dimensionality
        store_metadata: Add the JSON overflow column if the schema names one

    Raises:
        ConfigurationError: On a non-positive vector size or untyped
            metadata column
    """
    if isinstance(vector_size, bool) or not isinstance(vector_size, int) or vector_size <= 0:
        raise ConfigurationError(f"vector_size must be greater than 0, got {vector_size!r}")

    columns = [
        f"{quote_identifier(schema.id_column)} UUID PRIMARY KEY",
        f"{quote_identifier(schema.content_column)} TEXT NULL",
        f"{quote_identifier(schema.embedding_column)} vector({vector_size}) NOT NULL",
    ]
    for column in schema.metadata_columns:
        if not isinstance(column, MetadataColumn):
            raise ConfigurationError(
                f"Metadata column {column!r} needs a type to be created; "
                "declare it as MetadataColumn"
            )
        columns.append(column.to_ddl())

    if store_metadata and schema.metadata_json_column:
        columns.append(
            MetadataColumn(schema.metadata_json_column, "JSON", nullable=True).to_ddl()
        )

    return f"CREATE TABLE {schema.qualified_table} ({', '.join(columns)})"


async def init_vectorstore_table(
    database: Database,
    schema: ColumnSchema,
    vector_size: int,
    *,
    overwrite_existing: bool = False,
    store_metadata: bool = True,
) -> None:
    """
    Create the vector extension and the vector store table.

    Args:
        database: Connected Database instance
        schema: Column layout of the table
        vector_size: Embedding dimensionality
        overwrite_existing: Drop an existing table first
        store_metadata: Create the JSON overflow column

    Raises:
        ConfigurationError: On invalid arguments (before any I/O)
        ExecutionError: If the DDL fails
    """
    create_sql = build_create_table_sql(schema, vector_size, store_metadata)
    table = schema.qualified_table

    try:
        async with database.transaction() as conn:
            await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            if overwrite_existing:
                await conn.execute(f"DROP TABLE IF EXISTS {table}")
            await conn.execute(create_sql)
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        raise ExecutionError(table, "init_table", e) from e

    logger.info(
        "Initialized vector store table",
        table=table,
        vector_size=vector_size,
        metadata_columns=schema.metadata_column_names,
        overwrite_existing=overwrite_existing,
    )
