"""
Explicit transaction handle.

Every broker and store call receives the transaction it runs in instead of
relying on ambient state. A broker call given a handle joins it; a call
without one opens its own transaction on the broker's datasource and
commits it on success.

A failure inside a joined scope marks the handle rollback-only: the
outermost scope then rolls back, and trying to commit it raises
TransactionAbortedError even if the caller swallowed the original error.

Usage:
    with transaction_scope("default") as tx:
        broker.save(order, tx=tx)
        line_broker.save_all(lines, tx=tx)
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Connection

from shared.config.logging import get_logger
from shared.infrastructure.db import get_engine, safe_commit
from shared.utils.exceptions import InvalidArgumentError, TransactionAbortedError

logger = get_logger(__name__)


class Transaction:
    """
    A database transaction on one connection.

    Created by transaction_scope(); callers only pass it along.
    """

    def __init__(self, connection: Connection, datasource: str | None = None):
        self._connection = connection
        self._datasource = datasource
        self._depth = 0
        self._rollback_only = False
        self._completed = False

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def datasource(self) -> str | None:
        return self._datasource

    @property
    def depth(self) -> int:
        """Number of scopes currently joined on top of the one that opened the transaction."""
        return self._depth

    @property
    def rollback_only(self) -> bool:
        return self._rollback_only

    @property
    def is_active(self) -> bool:
        return not self._completed

    def mark_rollback_only(self) -> None:
        self._rollback_only = True

    def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            TransactionAbortedError: The transaction was marked rollback-only.
        """
        if self._rollback_only:
            raise TransactionAbortedError(datasource=self._datasource)
        try:
            safe_commit(self._connection)
        finally:
            self._completed = True

    def rollback(self) -> None:
        self._connection.rollback()
        self._completed = True

    def __repr__(self) -> str:
        return (
            f"<Transaction(datasource={self._datasource!r}, depth={self._depth}, "
            f"rollback_only={self._rollback_only})>"
        )


@contextmanager
def transaction_scope(datasource: str | None = None, tx: Transaction | None = None) -> Generator[Transaction, None, None]:
    """
    Join `tx` or open a new transaction on `datasource`.

    Joined scopes never commit; on failure they mark the handle
    rollback-only and re-raise. A scope that opened the transaction
    commits on success and rolls back on failure.

    Raises:
        InvalidArgumentError: `tx` was opened on another datasource.
        TransactionAbortedError: Joining a transaction already marked
            rollback-only, or committing one.
    """
    if tx is not None:
        if datasource and tx.datasource and datasource != tx.datasource:
            raise InvalidArgumentError(
                f"Transaction on '{tx.datasource}' cannot be joined from '{datasource}'",
                argument="tx",
            )
        if tx.rollback_only:
            raise TransactionAbortedError(datasource=tx.datasource)
        tx._depth += 1
        try:
            yield tx
        except BaseException:
            tx.mark_rollback_only()
            raise
        finally:
            tx._depth -= 1
        return

    engine = get_engine(datasource)
    with engine.connect() as connection:
        handle = Transaction(connection, datasource)
        connection.begin()
        try:
            yield handle
            handle.commit()
        except BaseException:
            if handle.is_active:
                handle.rollback()
            logger.debug("Transaction rolled back", datasource=datasource)
            raise
