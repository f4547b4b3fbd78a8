"""
Translation of filter expressions into parameterized SQL predicates.

Values are never inlined: every comparison value becomes an asyncpg
positional placeholder ($n) and is returned alongside the predicate text.

Null handling:
- IsEqualTo guards with IS NOT NULL, so a missing key never matches.
- IsNotEqualTo and IsNotIn accept NULL, so a missing key always matches.
  Both are parenthesized because they contain a top-level OR.
- Ordering comparisons and IsIn rely on SQL three-valued logic.

Grouping:
- Or is always parenthesized.
- And is never wrapped; AND binds tighter than OR, and every OR produced
  here carries its own parentheses.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from alloydb_vectorstore.vectorstore.exceptions import UnsupportedFilterError
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
)
from alloydb_vectorstore.vectorstore.schema import quote_identifier


@dataclass(frozen=True)
class SqlFragment:
    """SQL text plus the values bound to its placeholders, in order."""

    sql: str
    params: tuple[Any, ...] = ()


class _Translation:
    """Single-use state for one translate() call: the running placeholder index."""

    def __init__(self, start: int):
        self._next_index = start
        self.params: list[Any] = []

    def bind(self, value: Any) -> str:
        placeholder = f"${self._next_index}"
        self._next_index += 1
        self.params.append(value)
        return placeholder


_ORDERING_OPERATORS: dict[type, str] = {
    IsGreaterThan: ">",
    IsGreaterThanOrEqualTo: ">=",
    IsLessThan: "<",
    IsLessThanOrEqualTo: "<=",
}


class FilterTranslator:
    """
    Lowers a filter expression into a SQL boolean predicate.

    Usage:
        translator = FilterTranslator()
        fragment = translator.translate(IsEqualTo("page", 3), start=2)
        fragment.sql     # '"page" IS NOT NULL AND "page" = $2'
        fragment.params  # (3,)

    The translator holds no per-call state, so one instance can be shared
    and translating the same expression twice gives identical output.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, Callable[[Any, _Translation], str]] = {
            IsEqualTo: self._equal,
            IsNotEqualTo: self._not_equal,
            IsGreaterThan: self._ordering,
            IsGreaterThanOrEqualTo: self._ordering,
            IsLessThan: self._ordering,
            IsLessThanOrEqualTo: self._ordering,
            IsIn: self._in,
            IsNotIn: self._not_in,
            And: self._and,
            Or: self._or,
            Not: self._not,
        }

    def translate(self, expression: Filter, start: int = 1) -> SqlFragment:
        """
        Translate an expression, numbering placeholders from ``start``.

        Args:
            expression: Filter tree to translate
            start: Index of the first placeholder ($start)

        Returns:
            SqlFragment with the predicate and its bound values

        Raises:
            UnsupportedFilterError: If a node type has no translation
        """
        state = _Translation(start)
        sql = self._visit(expression, state)
        return SqlFragment(sql=sql, params=tuple(state.params))

    def _visit(self, expression: Filter, state: _Translation) -> str:
        handler = self._handlers.get(type(expression))
        if handler is None:
            raise UnsupportedFilterError(
                f"Unsupported filter type: {type(expression).__name__}"
            )
        return handler(expression, state)

    def _equal(self, node: IsEqualTo, state: _Translation) -> str:
        key = quote_identifier(node.key)
        return f"{key} IS NOT NULL AND {key} = {state.bind(node.value)}"

    def _not_equal(self, node: IsNotEqualTo, state: _Translation) -> str:
        key = quote_identifier(node.key)
        return f"({key} IS NULL OR {key} != {state.bind(node.value)})"

    def _ordering(self, node: Any, state: _Translation) -> str:
        operator = _ORDERING_OPERATORS[type(node)]
        return f"{quote_identifier(node.key)} {operator} {state.bind(node.value)}"

    def _in(self, node: IsIn, state: _Translation) -> str:
        placeholders = ", ".join(state.bind(v) for v in node.values)
        return f"{quote_identifier(node.key)} IN ({placeholders})"

    def _not_in(self, node: IsNotIn, state: _Translation) -> str:
        key = quote_identifier(node.key)
        placeholders = ", ".join(state.bind(v) for v in node.values)
        return f"({key} IS NULL OR {key} NOT IN ({placeholders}))"

    def _and(self, node: And, state: _Translation) -> str:
        return f"{self._visit(node.left, state)} AND {self._visit(node.right, state)}"

    def _or(self, node: Or, state: _Translation) -> str:
        return f"({self._visit(node.left, state)} OR {self._visit(node.right, state)})"

    def _not(self, node: Not, state: _Translation) -> str:
        return f"NOT({self._visit(node.expression, state)})"
