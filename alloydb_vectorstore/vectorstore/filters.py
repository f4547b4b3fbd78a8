"""
Metadata filter expressions for vector searches.

A filter is an immutable tree built from comparison leaves and boolean
combinators:

- Comparisons: IsEqualTo, IsNotEqualTo, IsGreaterThan,
  IsGreaterThanOrEqualTo, IsLessThan, IsLessThanOrEqualTo
- Set membership: IsIn, IsNotIn
- Combinators: And, Or, Not

Example:
    >>> f = metadata_key("category").is_equal_to("news") & (
    ...     metadata_key("year").is_greater_than(2020)
    ...     | metadata_key("pinned").is_equal_to(True)
    ... )
    >>> # Equivalent explicit form
    >>> f = And(
    ...     IsEqualTo("category", "news"),
    ...     Or(IsGreaterThan("year", 2020), IsEqualTo("pinned", True)),
    ... )

Keys name metadata columns; they are not checked against the schema here,
so an unknown key surfaces as a database error when the search runs.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union
from uuid import UUID

from alloydb_vectorstore.vectorstore.exceptions import ConfigurationError

Scalar = Union[str, int, float, UUID]


class Filter:
    """Base class for all filter nodes. Supports &, | and ~ composition."""

    __slots__ = ()

    def __and__(self, other: "Filter") -> "And":
        return And(self, other)

    def __or__(self, other: "Filter") -> "Or":
        return Or(self, other)

    def __invert__(self) -> "Not":
        return Not(self)


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key.strip():
        raise ConfigurationError("Filter key must be a non-blank string")


@dataclass(frozen=True)
class _Comparison(Filter):
    key: str
    value: Scalar

    def __post_init__(self) -> None:
        _check_key(self.key)
        if self.value is None:
            raise ConfigurationError(
                f"Comparison value for {self.key!r} must not be None"
            )


@dataclass(frozen=True)
class IsEqualTo(_Comparison):
    """key = value; rows without the key never match."""


@dataclass(frozen=True)
class IsNotEqualTo(_Comparison):
    """key != value; rows without the key always match."""


@dataclass(frozen=True)
class IsGreaterThan(_Comparison):
    """key > value."""


@dataclass(frozen=True)
class IsGreaterThanOrEqualTo(_Comparison):
    """key >= value."""


@dataclass(frozen=True)
class IsLessThan(_Comparison):
    """key < value."""


@dataclass(frozen=True)
class IsLessThanOrEqualTo(_Comparison):
    """key <= value."""


@dataclass(frozen=True)
class _Membership(Filter):
    key: str
    values: tuple[Scalar, ...]

    def __post_init__(self) -> None:
        _check_key(self.key)
        if isinstance(self.values, (str, bytes)):
            raise ConfigurationError(
                f"{type(self).__name__} filter on {self.key!r} takes a collection of "
                f"values, not a single string"
            )
        values = tuple(self.values)
        if not values:
            raise ConfigurationError(
                f"{type(self).__name__} filter on {self.key!r} needs at least one value"
            )
        if any(v is None for v in values):
            raise ConfigurationError(
                f"{type(self).__name__} filter on {self.key!r} must not contain None"
            )
        object.__setattr__(self, "values", values)


@dataclass(frozen=True)
class IsIn(_Membership):
    """key IN values."""


@dataclass(frozen=True)
class IsNotIn(_Membership):
    """key NOT IN values; rows without the key always match."""


@dataclass(frozen=True)
class And(Filter):
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Or(Filter):
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Not(Filter):
    expression: Filter


FilterExpression = Union[
    IsEqualTo,
    IsNotEqualTo,
    IsGreaterThan,
    IsGreaterThanOrEqualTo,
    IsLessThan,
    IsLessThanOrEqualTo,
    IsIn,
    IsNotIn,
    And,
    Or,
    Not,
]


class MetadataKey:
    """
    Fluent entry point for building comparison leaves.

    Example:
        >>> metadata_key("page").is_less_than(10)
        IsLessThan(key='page', value=10)
    """

    def __init__(self, key: str):
        _check_key(key)
        self.key = key

    def is_equal_to(self, value: Scalar) -> IsEqualTo:
        return IsEqualTo(self.key, value)

    def is_not_equal_to(self, value: Scalar) -> IsNotEqualTo:
        return IsNotEqualTo(self.key, value)

    def is_greater_than(self, value: Scalar) -> IsGreaterThan:
        return IsGreaterThan(self.key, value)

    def is_greater_than_or_equal_to(self, value: Scalar) -> IsGreaterThanOrEqualTo:
        return IsGreaterThanOrEqualTo(self.key, value)

    def is_less_than(self, value: Scalar) -> IsLessThan:
        return IsLessThan(self.key, value)

    def is_less_than_or_equal_to(self, value: Scalar) -> IsLessThanOrEqualTo:
        return IsLessThanOrEqualTo(self.key, value)

    def is_in(self, values: Iterable[Scalar]) -> IsIn:
        return IsIn(self.key, values)

    def is_not_in(self, values: Iterable[Scalar]) -> IsNotIn:
        return IsNotIn(self.key, values)


def metadata_key(key: str) -> MetadataKey:
    """Start a filter on the given metadata key."""
    return MetadataKey(key)
