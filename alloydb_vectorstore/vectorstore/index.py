"""
Vector index definitions.

Each index type renders the access method and WITH options used in
CREATE INDEX on the embedding column. Partial indexes restrict the index to
rows matching raw SQL predicates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from alloydb_vectorstore.vectorstore.distance import DistanceStrategy

DEFAULT_INDEX_NAME_SUFFIX = "langchainvectorindex"

_QUANTIZERS = frozenset({"sq8", "flat"})


@dataclass(frozen=True)
class BaseIndex(ABC):
    """Common fields of every vector index."""

    distance_strategy: DistanceStrategy = DistanceStrategy.COSINE_DISTANCE
    partial_indexes: tuple[str, ...] = field(default_factory=tuple)

    index_type: str = ""

    @abstractmethod
    def index_options(self) -> str:
        """Return the parenthesized WITH options."""
        ...

    def operator_class(self) -> str:
        return self.distance_strategy.index_function

    def where_clause(self) -> str:
        if not self.partial_indexes:
            return ""
        return " WHERE " + " AND ".join(f"({p})" for p in self.partial_indexes)


def _positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive int, got {value!r}")


@dataclass(frozen=True)
class HNSWIndex(BaseIndex):
    m: int = 16
    ef_construction: int = 64
    index_type: str = "hnsw"

    def __post_init__(self) -> None:
        _positive("m", self.m)
        _positive("ef_construction", self.ef_construction)

    def index_options(self) -> str:
        return f"(m = {self.m}, ef_construction = {self.ef_construction})"


@dataclass(frozen=True)
class IVFFlatIndex(BaseIndex):
    lists: int = 100
    index_type: str = "ivfflat"

    def __post_init__(self) -> None:
        _positive("lists", self.lists)

    def index_options(self) -> str:
        return f"(lists = {self.lists})"


@dataclass(frozen=True)
class IVFIndex(BaseIndex):
    """AlloyDB IVF index with quantization."""

    lists: int = 100
    quantizer: str = "sq8"
    index_type: str = "ivf"

    def __post_init__(self) -> None:
        _positive("lists", self.lists)
        if self.quantizer not in _QUANTIZERS:
            raise ValueError(f"quantizer must be one of {sorted(_QUANTIZERS)}")

    def index_options(self) -> str:
        return f"(lists = {self.lists}, quantizer = {self.quantizer})"


@dataclass(frozen=True)
class ScaNNIndex(BaseIndex):
    """AlloyDB ScaNN index; requires the alloydb_scann extension."""

    num_leaves: int = 5
    quantizer: str = "sq8"
    index_type: str = "ScaNN"

    def __post_init__(self) -> None:
        _positive("num_leaves", self.num_leaves)
        if self.quantizer not in _QUANTIZERS:
            raise ValueError(f"quantizer must be one of {sorted(_QUANTIZERS)}")

    def operator_class(self) -> str:
        return self.distance_strategy.scann_index_function

    def index_options(self) -> str:
        return f"(num_leaves = {self.num_leaves}, quantizer = {self.quantizer})"
