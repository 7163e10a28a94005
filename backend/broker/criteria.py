"""
Search criteria.

FilterCriteria is an ordered list of (column, expression, value)
predicates combined with AND. Build one by hand with the fluent methods or
derive it from a "bean by example": every mapped field holding a non-None,
non-empty value becomes an EQUALS predicate on its column.

Usage:
    criteria = (
        FilterCriteria()
        .equals("PRO_CATEGORY", 3)
        .starts_with("PRO_LABEL", "Choco")
    )

    criteria = FilterCriteria.from_bean(Product(category_id=3))
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from broker.metadata import get_definition, unwrap_value
from shared.utils.exceptions import InvalidArgumentError, UnsupportedOperationError


class Expression(Enum):
    """Comparison operator of a criteria parameter."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER = "greater"
    GREATER_OR_EQUALS = "greater_or_equals"
    LOWER = "lower"
    LOWER_OR_EQUALS = "lower_or_equals"
    BETWEEN = "between"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    NOT_STARTS_WITH = "not_starts_with"
    ENDS_WITH = "ends_with"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


# Expressions that compare against nothing
NULL_EXPRESSIONS = frozenset({Expression.IS_NULL, Expression.IS_NOT_NULL})


@dataclass(frozen=True)
class FilterCriteriaParam:
    """One predicate of a FilterCriteria."""
    column_name: str
    expression: Expression
    value: Any = None


def _column_name(column: str | Enum) -> str:
    """Columns may be given as plain names or as members of a column enum."""
    if isinstance(column, Enum):
        return column.value if isinstance(column.value, str) else column.name
    return column


class FilterCriteria:
    """
    Ordered AND-combination of column predicates.

    Criteria objects are built per call and are not meant to be shared
    between threads while being built.
    """

    def __init__(self, parameters: Sequence[FilterCriteriaParam] | None = None):
        self._parameters: list[FilterCriteriaParam] = []
        for param in parameters or ():
            self.add_criteria(param.column_name, param.expression, param.value)

    @classmethod
    def from_bean(cls, example: Any, expressions: dict[str, Expression] | None = None) -> FilterCriteria:
        """
        Build criteria from a bean by example.

        Args:
            example: Bean whose set fields become predicates.
            expressions: Optional expression per column, EQUALS otherwise.

        Raises:
            InvalidArgumentError: example is None.
        """
        if example is None:
            raise InvalidArgumentError("Criteria bean is required", argument="criteria")

        criteria = cls()
        definition = get_definition(example)
        for descriptor in definition.mapped_fields:
            value = unwrap_value(definition.get_value(example, descriptor))
            if value is None:
                continue
            if isinstance(value, str) and not value:
                continue
            expression = Expression.EQUALS
            if expressions and descriptor.column in expressions:
                expression = expressions[descriptor.column]
            criteria.add_criteria(descriptor.column, expression, value)
        return criteria

    @classmethod
    def by_column(cls, column: str | Enum, expression: Expression, value: Any) -> FilterCriteria:
        """Single predicate criteria, as used for primary key lookups."""
        return cls().add_criteria(column, expression, value)

    @property
    def parameters(self) -> tuple[FilterCriteriaParam, ...]:
        return tuple(self._parameters)

    def is_empty(self) -> bool:
        return not self._parameters

    def __len__(self) -> int:
        return len(self._parameters)

    def __iter__(self):
        return iter(self._parameters)

    def __repr__(self) -> str:
        return f"<FilterCriteria({self._parameters!r})>"

    def add_criteria(self, column: str | Enum, expression: Expression, value: Any) -> FilterCriteria:
        """
        Append a predicate.

        Raises:
            InvalidArgumentError: Missing column, or missing value for an
                expression that compares against one.
            UnsupportedOperationError: BETWEEN value is not a pair.
        """
        if not column:
            raise InvalidArgumentError("Column is required", argument="column")
        column_name = _column_name(column)
        if not column_name:
            raise InvalidArgumentError("Column is required", argument="column")

        if value is None and expression not in NULL_EXPRESSIONS:
            raise InvalidArgumentError(
                f"Value is required for {expression.name} on {column_name}, use is_null() to test nullity",
                argument="value",
            )

        if expression == Expression.BETWEEN:
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 2:
                raise UnsupportedOperationError(
                    "Expression.BETWEEN only supports two ordered bound values",
                    column=column_name,
                )
            value = (value[0], value[1])

        self._parameters.append(FilterCriteriaParam(column_name, expression, value))
        return self

    def and_criteria(self, other: FilterCriteria) -> FilterCriteria:
        """Return a new criteria holding this criteria's predicates followed by other's."""
        return FilterCriteria(self._parameters + list(other.parameters))

    def __and__(self, other: FilterCriteria) -> FilterCriteria:
        return self.and_criteria(other)

    # =========================================================================
    # Fluent builders
    # =========================================================================

    def equals(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.EQUALS, value)

    def not_equals(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.NOT_EQUALS, value)

    def greater(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.GREATER, value)

    def greater_or_equals(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.GREATER_OR_EQUALS, value)

    def lower(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.LOWER, value)

    def lower_or_equals(self, column: str | Enum, value: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.LOWER_OR_EQUALS, value)

    def between(self, column: str | Enum, lower: Any, upper: Any) -> FilterCriteria:
        return self.add_criteria(column, Expression.BETWEEN, (lower, upper))

    def contains(self, column: str | Enum, value: str) -> FilterCriteria:
        self._require_text(value)
        return self.add_criteria(column, Expression.CONTAINS, value)

    def starts_with(self, column: str | Enum, value: str) -> FilterCriteria:
        self._require_text(value)
        return self.add_criteria(column, Expression.STARTS_WITH, value)

    def not_starts_with(self, column: str | Enum, value: str) -> FilterCriteria:
        self._require_text(value)
        return self.add_criteria(column, Expression.NOT_STARTS_WITH, value)

    def ends_with(self, column: str | Enum, value: str) -> FilterCriteria:
        self._require_text(value)
        return self.add_criteria(column, Expression.ENDS_WITH, value)

    def is_null(self, column: str | Enum) -> FilterCriteria:
        return self.add_criteria(column, Expression.IS_NULL, None)

    def is_not_null(self, column: str | Enum) -> FilterCriteria:
        return self.add_criteria(column, Expression.IS_NOT_NULL, None)

    @staticmethod
    def _require_text(value: Any) -> None:
        if value is None or (isinstance(value, str) and not value):
            raise InvalidArgumentError("A non-empty pattern is required", argument="value")
