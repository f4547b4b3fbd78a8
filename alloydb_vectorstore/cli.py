"""
Command-line interface for alloydb-vectorstore.

Provides commands to create vector store tables, manage vector indexes,
delete rows and check database health.

Usage:
    alloydb-vectorstore init-table docs --vector-size 768   # Create a table
    alloydb-vectorstore create-index docs --type hnsw       # Build an index
    alloydb-vectorstore drop-index docs                     # Drop the index
    alloydb-vectorstore remove docs ID [ID ...]             # Delete rows
    alloydb-vectorstore health                              # Check database
"""

import asyncio
import sys

import click

from alloydb_vectorstore.config.settings import get_settings
from alloydb_vectorstore.observability.logging import bind_context, setup_logging

DISTANCE_CHOICES = {
    "cosine": "COSINE_DISTANCE",
    "euclidean": "EUCLIDEAN",
    "inner_product": "INNER_PRODUCT",
}


def _parse_metadata_columns(values: tuple[str, ...]) -> tuple:
    """Parse NAME:TYPE[:notnull] options into MetadataColumn objects."""
    from alloydb_vectorstore.vectorstore.schema import MetadataColumn

    columns = []
    for value in values:
        parts = value.split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise click.BadParameter(
                f"{value!r} is not NAME:TYPE", param_hint="--metadata-column"
            )
        nullable = not (len(parts) > 2 and parts[2].lower() == "notnull")
        columns.append(MetadataColumn(parts[0], parts[1], nullable=nullable))
    return tuple(columns)


def column_options(command):
    """Options naming the id, content and embedding columns of an existing table."""
    command = click.option(
        "--embedding-column", default="embedding", help="Embedding column name"
    )(command)
    command = click.option(
        "--content-column", default="content", help="Content column name"
    )(command)
    return click.option(
        "--id-column", default="langchain_id", help="Id column name"
    )(command)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """AlloyDB Vector Store - embeddings with metadata filtering on PostgreSQL."""
    setup_logging("DEBUG" if debug else None)
    bind_context(command=ctx.invoked_subcommand)

    # Initialize tracing if enabled
    settings = get_settings()
    if settings.tracing_enabled:
        from alloydb_vectorstore.observability.tracing import setup_tracing

        setup_tracing(
            service_name=settings.otel_service_name,
            otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        )


@main.command("init-table")
@click.argument("table")
@click.option("--vector-size", required=True, type=int, help="Embedding dimensionality")
@click.option("--schema", "schema_name", default="public", help="PostgreSQL schema")
@column_options
@click.option("--metadata-column", "metadata_columns", multiple=True,
              help="Typed metadata column as NAME:TYPE[:notnull] (repeatable)")
@click.option("--json-column", default="langchain_metadata", help="JSON metadata column name")
@click.option("--no-json", is_flag=True, help="Do not create the JSON metadata column")
@click.option("--overwrite", is_flag=True, help="Drop the table first if it exists")
def init_table(
    table: str,
    vector_size: int,
    schema_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
    metadata_columns: tuple[str, ...],
    json_column: str,
    no_json: bool,
    overwrite: bool,
) -> None:
    """Create a vector store table.

    Example:
        alloydb-vectorstore init-table docs --vector-size 768 \\
            --metadata-column page:INT --metadata-column source:TEXT
    """
    from alloydb_vectorstore.storage.database import Database
    from alloydb_vectorstore.storage.table import init_vectorstore_table
    from alloydb_vectorstore.vectorstore.exceptions import VectorStoreError
    from alloydb_vectorstore.vectorstore.schema import ColumnSchema

    try:
        schema = ColumnSchema(
            table_name=table,
            schema_name=schema_name,
            id_column=id_column,
            content_column=content_column,
            embedding_column=embedding_column,
            metadata_columns=_parse_metadata_columns(metadata_columns),
            metadata_json_column=None if no_json else json_column,
        )
    except VectorStoreError as e:
        raise click.BadParameter(str(e))

    async def run():
        db = Database()
        await db.connect()

        try:
            await init_vectorstore_table(
                db,
                schema,
                vector_size,
                overwrite_existing=overwrite,
                store_metadata=not no_json,
            )
            click.echo(f"Table {schema.qualified_table} initialized successfully")
        except VectorStoreError as e:
            click.echo(click.style(f"Failed to initialize table: {e}", fg="red"))
            sys.exit(1)
        finally:
            await db.close()

    asyncio.run(run())


@main.command("create-index")
@click.argument("table")
@click.option("--schema", "schema_name", default="public", help="PostgreSQL schema")
@column_options
@click.option("--type", "index_type", default="hnsw",
              type=click.Choice(["hnsw", "ivfflat", "ivf", "scann"]), help="Index type")
@click.option("--distance", default="cosine",
              type=click.Choice(list(DISTANCE_CHOICES)), help="Distance strategy")
@click.option("--name", default=None, help="Index name (default <table>_langchainvectorindex)")
@click.option("--concurrently", is_flag=True, help="Build without blocking writes")
def create_index(
    table: str,
    schema_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
    index_type: str,
    distance: str,
    name: str | None,
    concurrently: bool,
) -> None:
    """Create a vector index on the embedding column."""
    from alloydb_vectorstore.storage.database import Database
    from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
    from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
    from alloydb_vectorstore.vectorstore.exceptions import VectorStoreError
    from alloydb_vectorstore.vectorstore.index import (
        HNSWIndex,
        IVFFlatIndex,
        IVFIndex,
        ScaNNIndex,
    )
    from alloydb_vectorstore.vectorstore.schema import ColumnSchema

    strategy = DistanceStrategy[DISTANCE_CHOICES[distance]]
    index_classes = {
        "hnsw": HNSWIndex,
        "ivfflat": IVFFlatIndex,
        "ivf": IVFIndex,
        "scann": ScaNNIndex,
    }
    index = index_classes[index_type](distance_strategy=strategy)

    async def run():
        db = Database()
        await db.connect()

        try:
            store = await AlloyDBVectorStore.create(
                db,
                ColumnSchema(
                    table_name=table,
                    schema_name=schema_name,
                    id_column=id_column,
                    content_column=content_column,
                    embedding_column=embedding_column,
                ),
                distance_strategy=strategy,
            )
            index_name = await store.apply_vector_index(
                index, name=name, concurrently=concurrently
            )
            click.echo(f"Created {index_type} index {index_name} on {table}")
        except VectorStoreError as e:
            click.echo(click.style(f"Failed to create index: {e}", fg="red"))
            sys.exit(1)
        finally:
            await db.close()

    asyncio.run(run())


@main.command("drop-index")
@click.argument("table")
@click.option("--schema", "schema_name", default="public", help="PostgreSQL schema")
@column_options
@click.option("--name", default=None, help="Index name (default <table>_langchainvectorindex)")
def drop_index(
    table: str,
    schema_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
    name: str | None,
) -> None:
    """Drop a vector index."""
    from alloydb_vectorstore.storage.database import Database
    from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
    from alloydb_vectorstore.vectorstore.exceptions import VectorStoreError
    from alloydb_vectorstore.vectorstore.schema import ColumnSchema

    async def run():
        db = Database()
        await db.connect()

        try:
            store = await AlloyDBVectorStore.create(
                db,
                ColumnSchema(
                    table_name=table,
                    schema_name=schema_name,
                    id_column=id_column,
                    content_column=content_column,
                    embedding_column=embedding_column,
                ),
            )
            await store.drop_vector_index(name)
            click.echo(f"Dropped index {name or store.default_index_name()}")
        except VectorStoreError as e:
            click.echo(click.style(f"Failed to drop index: {e}", fg="red"))
            sys.exit(1)
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
@click.argument("table")
@click.argument("ids", nargs=-1, required=True)
@click.option("--schema", "schema_name", default="public", help="PostgreSQL schema")
@column_options
def remove(
    table: str,
    ids: tuple[str, ...],
    schema_name: str,
    id_column: str,
    content_column: str,
    embedding_column: str,
) -> None:
    """Delete rows by id.

    Example:
        alloydb-vectorstore remove docs 3f1c...e2 9a0b...41
    """
    from alloydb_vectorstore.storage.database import Database
    from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
    from alloydb_vectorstore.vectorstore.exceptions import VectorStoreError
    from alloydb_vectorstore.vectorstore.schema import ColumnSchema

    async def run():
        db = Database()
        await db.connect()

        try:
            store = await AlloyDBVectorStore.create(
                db,
                ColumnSchema(
                    table_name=table,
                    schema_name=schema_name,
                    id_column=id_column,
                    content_column=content_column,
                    embedding_column=embedding_column,
                ),
            )
            deleted = await store.remove_all(list(ids))
            click.echo(f"Deleted {deleted} of {len(ids)} rows from {table}")
        except VectorStoreError as e:
            click.echo(click.style(f"Failed to delete rows: {e}", fg="red"))
            sys.exit(1)
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check database connectivity and the vector extension."""
    import structlog
    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        import asyncpg

        from alloydb_vectorstore.storage.database import Database
        db = Database()
        try:
            await db.connect()
            results["postgres"] = await db.health_check()
            if results["postgres"]:
                version = await db.vector_extension_version()
                results["vector_extension"] = version is not None
        except (OSError, asyncpg.PostgresError) as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))
        finally:
            await db.close()

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)

        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))

        click.echo("-" * 40)

        if results and all(results.values()):
            click.echo(click.style("Database healthy!", fg="green"))
            sys.exit(0)
        else:
            click.echo(click.style("Database unhealthy!", fg="red"))
            sys.exit(1)

    asyncio.run(check())


if __name__ == "__main__":
    main()
