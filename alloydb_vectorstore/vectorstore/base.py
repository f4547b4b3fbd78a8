"""
Abstract base class and data models for vector store implementations.

Defines the interface that all embedding store backends implement, plus the
records passed in (EmbeddingRecord, SearchRequest) and returned
(EmbeddingMatch).
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from alloydb_vectorstore.vectorstore.exceptions import ConfigurationError
from alloydb_vectorstore.vectorstore.filters import Filter


def random_id() -> str:
    """Generate a fresh record id (UUID4 in textual form)."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class EmbeddingRecord:
    """
    One row to insert.

    Attributes:
        id: Record identifier (UUID text)
        embedding: Embedding vector
        text: Optional text the embedding was computed from
        metadata: Scalar metadata values (str, int, float, UUID)
    """

    id: str
    embedding: list[float]
    text: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchRequest:
    """
    Parameters of a similarity search.

    Attributes:
        query_embedding: Vector to search near
        max_results: Maximum matches to return (> 0)
        min_score: Optional minimum relevance score
        filter: Optional metadata filter
    """

    query_embedding: list[float]
    max_results: int = 4
    min_score: float | None = None
    filter: Filter | None = None

    def __post_init__(self) -> None:
        if not self.query_embedding:
            raise ConfigurationError("query_embedding must not be empty")
        if self.max_results <= 0:
            raise ConfigurationError(
                f"max_results must be greater than 0, got {self.max_results}"
            )


@dataclass
class EmbeddingMatch:
    """
    Result from a vector similarity search.

    Attributes:
        id: Identifier of the matched row
        score: Relevance score derived from the distance (higher is better)
        distance: Value of the strategy's search function
        embedding: Stored embedding vector
        text: Stored text, if any
        metadata: Metadata column values merged with the JSON column
    """

    id: str
    score: float
    distance: float | None = None
    embedding: list[float] | None = None
    text: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class EmbeddingStore(ABC):
    """
    Abstract base class for embedding store implementations.

    All methods are async to support non-blocking I/O.
    """

    @abstractmethod
    async def add(
        self,
        embedding: list[float],
        text: str | None = None,
        metadata: dict[str, Any] | None = None,
        id: str | None = None,
    ) -> str:
        """
        Add a single embedding.

        Args:
            embedding: Embedding vector
            text: Optional text the embedding was computed from
            metadata: Optional metadata values
            id: Optional id (generated when omitted)

        Returns:
            The record id
        """
        ...

    @abstractmethod
    async def add_all(
        self,
        embeddings: list[list[float]],
        texts: list[str | None] | None = None,
        metadata: list[dict[str, Any]] | None = None,
        ids: list[str] | None = None,
    ) -> list[str]:
        """
        Add embeddings as one batch.

        Args:
            embeddings: Embedding vectors
            texts: Optional texts, one per embedding
            metadata: Optional metadata dicts, one per embedding
            ids: Optional ids, one per embedding (generated when omitted)

        Returns:
            Record ids in input order
        """
        ...

    @abstractmethod
    async def search(self, request: SearchRequest) -> list[EmbeddingMatch]:
        """
        Find the stored embeddings nearest to the query embedding.

        Returns:
            Matches ordered nearest first
        """
        ...

    @abstractmethod
    async def remove_all(self, ids: list[str]) -> int:
        """
        Delete rows by id.

        Returns:
            Number of rows deleted
        """
        ...
