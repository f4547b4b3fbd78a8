"""Storage layer: connection pool and table initialization."""

from alloydb_vectorstore.storage.database import Database
from alloydb_vectorstore.storage.table import build_create_table_sql, init_vectorstore_table

__all__ = ["Database", "build_create_table_sql", "init_vectorstore_table"]
