"""
SQLite dialect.

Used for local development and the end-to-end test suite. SQLite has no
native GUID, decimal or date type, so those values are bound as text and turned
back into Python objects by BeanDefinition.populate().
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from broker.command import CommandParameters, SqlCommand
from broker.metadata import FieldDescriptor
from broker.stores.base import BeanT, Store
from broker.transaction import Transaction
from shared.config.constants import NO_LIMIT, SqlParameters


class SqliteStore(Store[BeanT]):
    """Store generating SQLite SQL."""

    variable_prefix = "@"
    concat_operator = " || "

    def select_tail(self, max_rows: int, parameters: CommandParameters) -> str:
        if max_rows == NO_LIMIT:
            return ""
        parameters.add(SqlParameters.TOP, max_rows)
        return f" limit {self.variable_prefix}{SqlParameters.TOP}"

    def adapt_value(self, descriptor: FieldDescriptor | None, value: Any) -> Any:
        if isinstance(value, (uuid.UUID, Decimal)):
            return str(value)
        if isinstance(value, date):
            return value.isoformat()
        return value

    def execute_insert(self, tx: Transaction, command: SqlCommand) -> Any:
        rows = command.execute_non_query()
        if rows != 1:
            return None
        return self.create_command(tx, "select last_insert_rowid()").execute_scalar()
