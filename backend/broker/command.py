"""
Parameterized command execution.

Stores generate SQL text whose parameters carry the dialect prefix
(`@name` for SQL Server). SqlCommand rewrites them to SQLAlchemy's
`:name` style and runs the statement with `text()` on the connection of
the current transaction.

Usage:
    command = SqlCommand(tx.connection, "delete from PRODUCT where PRO_ID = @PRO_ID")
    command.parameters.add("PRO_ID", 12)
    rows = command.execute_non_query()
"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import LargeBinary, bindparam, text
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.sql.elements import TextClause

from shared.config.logging import sql_logger
from shared.utils.exceptions import InvalidArgumentError, UnsupportedOperationError


class CommandParameters:
    """
    Named parameters of a command.

    Names are stored without the dialect prefix; lookups accept both forms.
    """

    def __init__(self, prefix: str = "@"):
        self._prefix = prefix
        self._values: dict[str, Any] = {}
        self._binary: set[str] = set()

    def _key(self, name: str) -> str:
        if self._prefix and name.startswith(self._prefix):
            return name[len(self._prefix):]
        return name

    def add(self, name: str, value: Any, binary: bool = False) -> None:
        """
        Bind a value.

        Raises:
            InvalidArgumentError: Missing name, or name already bound.
        """
        if not name:
            raise InvalidArgumentError("Parameter name is required", argument="name")
        key = self._key(name)
        if key in self._values:
            raise InvalidArgumentError(f"Parameter '{key}' is already bound", argument="name")
        self._values[key] = value
        if binary:
            self._binary.add(key)

    def is_binary(self, name: str) -> bool:
        return self._key(name) in self._binary

    @property
    def names(self) -> list[str]:
        return list(self._values)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, name: str) -> Any:
        return self._values[self._key(name)]

    def __contains__(self, name: str) -> bool:
        return self._key(name) in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"<CommandParameters({self._values!r})>"


class SqlCommand:
    """
    A SQL statement and its parameters, bound to a connection.

    Args:
        connection: SQLAlchemy connection of the current transaction.
        command_text: SQL with prefixed parameter markers.
        prefix: Parameter marker prefix used in command_text.
    """

    def __init__(self, connection: Connection | None, command_text: str = "", prefix: str = "@"):
        self._connection = connection
        self._prefix = prefix
        self.command_text = command_text
        self.parameters = CommandParameters(prefix)
        self._marker = re.compile(rf"(?<![\w{re.escape(prefix)}]){re.escape(prefix)}(\w+)")

    @property
    def connection(self) -> Connection | None:
        return self._connection

    def to_statement(self) -> TextClause:
        """Translate the command text into a SQLAlchemy text clause."""
        statement = text(self._marker.sub(r":\1", self.command_text))
        binary = [name for name in self.parameters.names if self.parameters.is_binary(name)]
        if binary:
            statement = statement.bindparams(*(bindparam(name, type_=LargeBinary) for name in binary))
        return statement

    def _execute(self) -> CursorResult:
        if self._connection is None:
            raise UnsupportedOperationError("Command has no connection", command=self.command_text)
        sql_logger.debug("Executing command", sql=self.command_text, parameters=self.parameters.names)
        return self._connection.execute(self.to_statement(), self.parameters.as_dict())

    def execute_reader(self) -> list[dict[str, Any]]:
        """Run a query and return its rows as column → value mappings."""
        result = self._execute()
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]

    def execute_non_query(self) -> int:
        """Run a statement and return the number of affected rows."""
        result = self._execute()
        return result.rowcount

    def execute_scalar(self) -> Any:
        """Run a query and return the first column of its first row."""
        result = self._execute()
        if not result.returns_rows:
            return None
        return result.scalar()

    def execute_batch_scalar(self) -> Any:
        """
        Run a batch of statements and return the first value of the first
        result set that has rows.

        Used for "insert ... select SCOPE_IDENTITY()" batches, whose first
        result is the row count of the insert. The batch goes through the
        DBAPI cursor since SQLAlchemy closes results without rows.
        """
        if self._connection is None:
            raise UnsupportedOperationError("Command has no connection", command=self.command_text)

        compiled = self.to_statement().compile(dialect=self._connection.dialect)
        params = compiled.construct_params(self.parameters.as_dict())
        if compiled.positional:
            params = tuple(params[name] for name in compiled.positiontup)

        sql_logger.debug("Executing batch", sql=self.command_text, parameters=self.parameters.names)
        cursor = self._connection.connection.cursor()
        try:
            cursor.execute(compiled.string, params)
            while cursor.description is None:
                if not cursor.nextset():
                    return None
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            cursor.close()

    def __repr__(self) -> str:
        return f"<SqlCommand({self.command_text!r}, {self.parameters!r})>"
