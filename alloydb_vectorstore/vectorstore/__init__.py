"""
Vector store over PostgreSQL / AlloyDB with pgvector.

Main components:
- ColumnSchema: Table layout (id, content, embedding, metadata columns)
- Filter expressions: IsEqualTo, IsIn, And, Or, Not, ... and metadata_key()
- FilterTranslator: Filter tree -> parameterized SQL predicate
- QueryBuilder: INSERT / SELECT / DELETE statements for a schema
- AlloyDBVectorStore: Async store running those statements over asyncpg
- Index definitions and query options for HNSW, IVFFlat, IVF and ScaNN
"""

from alloydb_vectorstore.vectorstore.alloydb_store import AlloyDBVectorStore
from alloydb_vectorstore.vectorstore.base import (
    EmbeddingMatch,
    EmbeddingRecord,
    EmbeddingStore,
    SearchRequest,
)
from alloydb_vectorstore.vectorstore.config import VectorStoreConfig
from alloydb_vectorstore.vectorstore.distance import DistanceStrategy
from alloydb_vectorstore.vectorstore.exceptions import (
    ConfigurationError,
    ExecutionError,
    SchemaMismatchError,
    UnsupportedFilterError,
    VectorStoreError,
)
from alloydb_vectorstore.vectorstore.filter_translator import FilterTranslator, SqlFragment
from alloydb_vectorstore.vectorstore.filters import (
    And,
    Filter,
    IsEqualTo,
    IsGreaterThan,
    IsGreaterThanOrEqualTo,
    IsIn,
    IsLessThan,
    IsLessThanOrEqualTo,
    IsNotEqualTo,
    IsNotIn,
    Not,
    Or,
    metadata_key,
)
from alloydb_vectorstore.vectorstore.index import (
    HNSWIndex,
    IVFFlatIndex,
    IVFIndex,
    ScaNNIndex,
)
from alloydb_vectorstore.vectorstore.query_builder import QueryBuilder
from alloydb_vectorstore.vectorstore.query_options import (
    HNSWQueryOptions,
    IVFFlatQueryOptions,
    IVFQueryOptions,
    ScaNNQueryOptions,
)
from alloydb_vectorstore.vectorstore.schema import ColumnSchema, MetadataColumn

__all__ = [
    "AlloyDBVectorStore",
    "EmbeddingStore",
    "EmbeddingRecord",
    "EmbeddingMatch",
    "SearchRequest",
    "VectorStoreConfig",
    "DistanceStrategy",
    "VectorStoreError",
    "ConfigurationError",
    "UnsupportedFilterError",
    "SchemaMismatchError",
    "ExecutionError",
    "FilterTranslator",
    "SqlFragment",
    "Filter",
    "IsEqualTo",
    "IsNotEqualTo",
    "IsGreaterThan",
    "IsGreaterThanOrEqualTo",
    "IsLessThan",
    "IsLessThanOrEqualTo",
    "IsIn",
    "IsNotIn",
    "And",
    "Or",
    "Not",
    "metadata_key",
    "HNSWIndex",
    "IVFFlatIndex",
    "IVFIndex",
    "ScaNNIndex",
    "QueryBuilder",
    "HNSWQueryOptions",
    "IVFFlatQueryOptions",
    "IVFQueryOptions",
    "ScaNNQueryOptions",
    "ColumnSchema",
    "MetadataColumn",
]
