"""
Distance strategies supported by the pgvector / AlloyDB vector extensions.

Each strategy maps to the SQL tokens used verbatim in generated statements:
the ordering operator, the search function used to compute the returned
distance, the pgvector operator class and the ScaNN operator class.
"""

from enum import Enum


class DistanceStrategy(Enum):
    """Named similarity metric with its SQL operator and functions."""

    EUCLIDEAN = ("<->", "l2_distance", "vector_l2_ops", "l2")
    COSINE_DISTANCE = ("<=>", "cosine_distance", "vector_cosine_ops", "cosine")
    INNER_PRODUCT = ("<#>", "inner_product", "vector_ip_ops", "dot_product")

    def __init__(
        self,
        operator: str,
        search_function: str,
        index_function: str,
        scann_index_function: str,
    ):
        self.operator = operator
        self.search_function = search_function
        self.index_function = index_function
        self.scann_index_function = scann_index_function

    def score(self, distance: float) -> float:
        """
        Convert a search-function value to a relevance score (higher is better).

        - cosine: cosine similarity, 1 - distance
        - euclidean: 1 / (1 + distance)
        - inner product: inner_product() already returns the raw product
        """
        if self is DistanceStrategy.COSINE_DISTANCE:
            return 1.0 - distance
        if self is DistanceStrategy.EUCLIDEAN:
            return 1.0 / (1.0 + distance)
        return distance
