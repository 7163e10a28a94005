"""
Query shaping: sort, limits and column selection.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from shared.config.constants import NO_LIMIT
from shared.utils.exceptions import InvalidArgumentError


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


class QueryParameter:
    """
    Sort and pagination of a read.

    Args:
        sort_column: Column or bean field name to sort on, optional. Stores
            map field names to their column.
        order: Sort direction of sort_column.
        limit: Maximum number of rows, 0 for no limit.
        offset: Rows to skip.

    Usage:
        QueryParameter(limit=10)
        QueryParameter("PRO_LABEL", SortOrder.DESC, limit=50)
        QueryParameter("label", limit=50)
    """

    def __init__(
        self,
        sort_column: str | Enum | None = None,
        order: SortOrder = SortOrder.ASC,
        limit: int = NO_LIMIT,
        offset: int = 0,
    ):
        if limit < 0 or offset < 0:
            raise InvalidArgumentError("Limit and offset must not be negative", argument="limit")
        self.limit = limit
        self.offset = offset
        self.max_rows = NO_LIMIT
        self._sorts: dict[str, SortOrder] = {}
        if sort_column is not None:
            self.add_sort(sort_column, order)

    def add_sort(self, column: str | Enum, order: SortOrder = SortOrder.ASC) -> QueryParameter:
        if isinstance(column, Enum):
            column = column.value if isinstance(column.value, str) else column.name
        if not column:
            raise InvalidArgumentError("Sort column is required", argument="column")
        self._sorts[column] = order
        return self

    @property
    def sorted_fields(self) -> list[str]:
        return list(self._sorts)

    @property
    def sort_condition(self) -> str:
        """Body of the ORDER BY clause, e.g. "PRO_LABEL asc, PRO_ID desc"."""
        return ", ".join(f"{column} {order.value}" for column, order in self._sorts.items())

    @property
    def row_cap(self) -> int:
        """Rows requested by the caller: max_rows when set, else limit."""
        return self.max_rows or self.limit

    def is_sort_by(self, column: str) -> bool:
        return column in self._sorts

    def get_sort_order(self, column: str) -> SortOrder:
        return self._sorts[column]

    def disable_pagination(self) -> None:
        self.limit = NO_LIMIT
        self.offset = 0

    def __repr__(self) -> str:
        return (
            f"<QueryParameter(sort={self.sort_condition!r}, limit={self.limit}, "
            f"offset={self.offset}, max_rows={self.max_rows})>"
        )


class ColumnSelector:
    """
    Columns an insert or update is restricted to.

    A store given no selector writes every eligible column.
    """

    def __init__(self, columns: Iterable[str | Enum] = ()):
        names = set()
        for column in columns:
            if isinstance(column, Enum):
                column = column.value if isinstance(column.value, str) else column.name
            names.add(column.upper())
        self._columns = frozenset(names)

    @property
    def columns(self) -> frozenset[str]:
        return self._columns

    def contains(self, column: str) -> bool:
        return column.upper() in self._columns

    def __contains__(self, column: str) -> bool:
        return self.contains(column)

    def __len__(self) -> int:
        return len(self._columns)

    def merge(self, other: ColumnSelector | None) -> ColumnSelector:
        """Union of both selectors; a missing selector adds nothing."""
        if other is None:
            return self
        return ColumnSelector(self._columns | other.columns)

    def __repr__(self) -> str:
        return f"<ColumnSelector({sorted(self._columns)!r})>"
