"""
Index tuning parameters applied before a vector search.

Each options class renders the session settings for one index type. The
store issues them as ``SET LOCAL`` statements in the search transaction;
a setting the server rejects is skipped and the index default applies.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class QueryOptions(ABC):
    """Search-time settings for a vector index."""

    @abstractmethod
    def parameter_settings(self) -> list[str]:
        """Return settings as ``name = value`` strings."""
        ...


def _check_int(name: str, value: int, minimum: int) -> None:
    # Values are rendered into SET statements, so only plain ints are allowed
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")


@dataclass(frozen=True)
class HNSWQueryOptions(QueryOptions):
    """HNSW search breadth (pgvector ``hnsw.ef_search``)."""

    ef_search: int = 40

    def __post_init__(self) -> None:
        _check_int("ef_search", self.ef_search, 1)

    def parameter_settings(self) -> list[str]:
        return [f"hnsw.ef_search = {self.ef_search}"]


@dataclass(frozen=True)
class IVFFlatQueryOptions(QueryOptions):
    """IVFFlat lists probed per query (pgvector ``ivfflat.probes``)."""

    probes: int = 1

    def __post_init__(self) -> None:
        _check_int("probes", self.probes, 1)

    def parameter_settings(self) -> list[str]:
        return [f"ivfflat.probes = {self.probes}"]


@dataclass(frozen=True)
class IVFQueryOptions(QueryOptions):
    """AlloyDB IVF lists probed per query (``ivf.probes``)."""

    probes: int = 1

    def __post_init__(self) -> None:
        _check_int("probes", self.probes, 1)

    def parameter_settings(self) -> list[str]:
        return [f"ivf.probes = {self.probes}"]


@dataclass(frozen=True)
class ScaNNQueryOptions(QueryOptions):
    """AlloyDB ScaNN search settings."""

    num_leaves_to_search: int = 1
    pre_reordering_num_neighbors: int = -1

    def __post_init__(self) -> None:
        _check_int("num_leaves_to_search", self.num_leaves_to_search, 1)
        _check_int("pre_reordering_num_neighbors", self.pre_reordering_num_neighbors, -1)

    def parameter_settings(self) -> list[str]:
        return [
            f"scann.num_leaves_to_search = {self.num_leaves_to_search}",
            f"scann.pre_reordering_num_neighbors = {self.pre_reordering_num_neighbors}",
        ]
