"""
SQL Server dialect.

Row limiting uses `top(@top)` and database assigned keys are read back by
appending `select cast(SCOPE_IDENTITY() as int)` to the insert batch.
"""

from __future__ import annotations

from typing import Any

from broker.command import CommandParameters, SqlCommand
from broker.stores.base import BeanT, Store
from broker.transaction import Transaction
from shared.config.constants import NO_LIMIT, SqlParameters


class SqlServerStore(Store[BeanT]):
    """Store generating Transact-SQL."""

    variable_prefix = "@"
    concat_operator = " + "

    def select_head(self, max_rows: int, parameters: CommandParameters) -> str:
        if max_rows == NO_LIMIT:
            return ""
        parameters.add(SqlParameters.TOP, max_rows)
        return f"top({self.variable_prefix}{SqlParameters.TOP}) "

    def identity_clause(self) -> str:
        return "\nselect cast(SCOPE_IDENTITY() as int)"

    def execute_insert(self, tx: Transaction, command: SqlCommand) -> Any:
        return command.execute_batch_scalar()
