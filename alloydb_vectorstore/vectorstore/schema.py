"""
Column schema for a vector store table.

A ColumnSchema names the id, content and embedding columns, the typed
metadata columns that mirror individual metadata keys, and an optional JSON
overflow column for every other metadata key. It is built once when a store
is set up and never mutated; resolving it against the live table returns a
new instance.
"""

from dataclasses import dataclass, field, replace

from alloydb_vectorstore.vectorstore.exceptions import (
    ConfigurationError,
    SchemaMismatchError,
)

# information_schema.columns.data_type values accepted for the content column
CHARACTER_TYPES: frozenset[str] = frozenset({
    "text",
    "character varying",
    "character",
})

# pgvector's vector type is reported as a user-defined type
VECTOR_DATA_TYPE = "USER-DEFINED"


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier, doubling any embedded double quotes."""
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class MetadataColumn:
    """
    A typed table column holding one metadata key.

    Attributes:
        name: Column name (also the metadata key it mirrors)
        data_type: SQL type used when creating the table (e.g. "TEXT", "INT")
        nullable: Whether the column accepts NULL
    """

    name: str
    data_type: str
    nullable: bool = True

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("Metadata column name must not be blank")
        if not self.data_type or not self.data_type.strip():
            raise ConfigurationError(
                f"Metadata column {self.name!r} must declare a data type"
            )

    def to_ddl(self) -> str:
        """Render the column definition used in CREATE TABLE."""
        null_clause = "" if self.nullable else " NOT NULL"
        return f"{quote_identifier(self.name)} {self.data_type}{null_clause}"


@dataclass(frozen=True)
class ColumnSchema:
    """
    Immutable description of the vector store table layout.

    Metadata columns may be given as plain names (their type is filled in
    from the live table when the schema is resolved) or as MetadataColumn.

    Attributes:
        table_name: Table holding the embeddings
        schema_name: PostgreSQL schema of the table
        id_column: Primary key column (UUID text)
        content_column: Column for the embedded text
        embedding_column: pgvector column
        metadata_columns: Ordered typed metadata columns
        metadata_json_column: JSON column for metadata keys without a
            dedicated column (None to disable)
    """

    table_name: str
    schema_name: str = "public"
    id_column: str = "langchain_id"
    content_column: str = "content"
    embedding_column: str = "embedding"
    metadata_columns: tuple[MetadataColumn | str, ...] = field(default_factory=tuple)
    metadata_json_column: str | None = "langchain_metadata"

    def __post_init__(self) -> None:
        for label, value in (
            ("table_name", self.table_name),
            ("schema_name", self.schema_name),
            ("id_column", self.id_column),
            ("content_column", self.content_column),
            ("embedding_column", self.embedding_column),
        ):
            if not value or not value.strip():
                raise ConfigurationError(f"{label} must not be blank")

        object.__setattr__(self, "metadata_columns", tuple(self.metadata_columns))
        if self.metadata_json_column is not None and not self.metadata_json_column.strip():
            object.__setattr__(self, "metadata_json_column", None)

        reserved = [self.id_column, self.content_column, self.embedding_column]
        if len(set(reserved)) != len(reserved):
            raise ConfigurationError(
                "id_column, content_column and embedding_column must be distinct, "
                f"got {reserved}"
            )

        names = self.metadata_column_names
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate metadata column names: {names}")

        clashes = set(names) & set(reserved)
        if clashes:
            raise ConfigurationError(
                f"Metadata columns {sorted(clashes)} clash with the id, content "
                "or embedding column"
            )

        if self.metadata_json_column is not None:
            if self.metadata_json_column in reserved or self.metadata_json_column in names:
                raise ConfigurationError(
                    f"metadata_json_column {self.metadata_json_column!r} clashes "
                    "with another configured column"
                )

    @property
    def qualified_table(self) -> str:
        """Fully-qualified, quoted table name ("schema"."table")."""
        return f"{quote_identifier(self.schema_name)}.{quote_identifier(self.table_name)}"

    @property
    def metadata_column_names(self) -> list[str]:
        return [
            column.name if isinstance(column, MetadataColumn) else column
            for column in self.metadata_columns
        ]

    def resolve(
        self,
        table_columns: dict[str, str],
        ignore_metadata_columns: list[str] | None = None,
    ) -> "ColumnSchema":
        """
        Validate this schema against the live table and fill in the gaps.

        - id, content and embedding columns must exist with compatible types
        - declared metadata columns must exist; plain names get their type
          from the table
        - the JSON column is dropped from the schema if the table lacks it
        - with an ignore list, every remaining table column becomes a
          metadata column (in table order)

        Args:
            table_columns: Column name -> information_schema data_type, in
                ordinal order
            ignore_metadata_columns: Columns to leave out when discovering
                metadata columns; mutually exclusive with metadata_columns

        Returns:
            A new, fully-typed ColumnSchema

        Raises:
            ConfigurationError: metadata_columns and ignore list both given
            SchemaMismatchError: a column is missing or has the wrong type
        """
        if self.metadata_columns and ignore_metadata_columns:
            raise ConfigurationError(
                "Cannot use both metadata_columns and ignore_metadata_columns at the same time"
            )

        table = self.qualified_table

        if self.id_column not in table_columns:
            raise SchemaMismatchError(f"Id column, {self.id_column}, does not exist", table)

        if self.content_column not in table_columns:
            raise SchemaMismatchError(
                f"Content column, {self.content_column}, does not exist", table
            )
        content_type = table_columns[self.content_column]
        if content_type.lower() not in CHARACTER_TYPES:
            raise SchemaMismatchError(
                f"Content column is type {content_type}. It must be a type of character string",
                table,
            )

        if self.embedding_column not in table_columns:
            raise SchemaMismatchError(
                f"Embedding column, {self.embedding_column}, does not exist", table
            )
        if table_columns[self.embedding_column].upper() != VECTOR_DATA_TYPE:
            raise SchemaMismatchError(
                f"Embedding column, {self.embedding_column}, is not type Vector", table
            )

        json_column = self.metadata_json_column
        if json_column is not None and json_column not in table_columns:
            json_column = None

        resolved: list[MetadataColumn] = []
        for column in self.metadata_columns:
            name = column.name if isinstance(column, MetadataColumn) else column
            if name not in table_columns:
                raise SchemaMismatchError(f"Metadata column, {name}, does not exist", table)
            if isinstance(column, MetadataColumn):
                resolved.append(column)
            else:
                resolved.append(MetadataColumn(name, table_columns[name]))

        if ignore_metadata_columns:
            skipped = set(ignore_metadata_columns) | {
                self.id_column,
                self.content_column,
                self.embedding_column,
            }
            if json_column is not None:
                skipped.add(json_column)
            resolved = [
                MetadataColumn(name, data_type)
                for name, data_type in table_columns.items()
                if name not in skipped
            ]

        return replace(
            self,
            metadata_columns=tuple(resolved),
            metadata_json_column=json_column,
        )
