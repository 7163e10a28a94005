"""
Centralized persistence exceptions for consistent error handling.

Two families:
- programmer errors (InvalidArgumentError, configuration and unsupported
  operation errors): fail fast, never retried.
- operational errors (IntegrityError and its sub-kinds, optimistic locking
  conflicts): expected at runtime, the caller decides how to recover.

Usage:
    from shared.utils.exceptions import InvalidArgumentError, ZeroRowsAffectedError

    raise InvalidArgumentError("Primary key is required", argument="pk")
    raise ZeroRowsAffectedError("Zero record affected", table="PRODUCT")
"""

from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class BrokerError(Exception):
    """
    Base exception with automatic logging.

    All broker exceptions inherit from this class to ensure consistent
    logging. Keyword arguments become structured log context and stay
    available on the instance as `context`.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        log_level: str = "warning",
        **log_context: Any,
    ):
        # Log the error with context
        log_fn = getattr(logger, log_level, logger.warning)
        if cause is not None:
            log_context.setdefault("cause", repr(cause))
        log_fn(message, error=type(self).__name__, **log_context)

        super().__init__(message)
        self.message = message
        self.context = log_context
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        """The exception this error wraps, if any."""
        return self.__cause__


# =============================================================================
# Programmer errors
# =============================================================================


class InvalidArgumentError(BrokerError, ValueError):
    """
    A required argument is missing or empty.

    Usage:
        raise InvalidArgumentError("Criteria is required", argument="criteria")
    """

    def __init__(self, message: str, argument: str | None = None, **log_context: Any):
        super().__init__(message, log_level="warning", argument=argument, **log_context)
        self.argument = argument


class ConfigurationError(BrokerError):
    """
    A mapped type is not persistable as declared.

    Raised while building bean metadata or a store: missing table name,
    missing or duplicated primary key, missing logical delete flag.
    """

    def __init__(self, message: str, **log_context: Any):
        super().__init__(message, log_level="error", **log_context)


class PersistenceConfigurationError(BrokerError):
    """
    Store or broker construction failed.

    Wraps the original error (usually a ConfigurationError) and prefixes
    the message with the bean type: "Broker<module.Type> original message".
    """

    def __init__(self, bean_type_name: str, cause: BaseException, **log_context: Any):
        message = f"Broker<{bean_type_name}> {cause}"
        super().__init__(message, cause=cause, log_level="error", bean_type=bean_type_name, **log_context)
        self.bean_type_name = bean_type_name


class UnsupportedOperationError(BrokerError, NotImplementedError):
    """
    The operation is not supported in this context.

    Usage:
        raise UnsupportedOperationError("Bulk delete requires at least one criterion")
    """

    def __init__(self, message: str, **log_context: Any):
        super().__init__(message, log_level="warning", **log_context)


class UnsupportedRuleError(UnsupportedOperationError):
    """A store rule returned an action that is invalid for the statement being built."""

    def __init__(self, field_name: str, action: Any, statement: str, **log_context: Any):
        action_name = getattr(action, "name", str(action))
        message = f"Rule action {action_name} is not supported on {statement} for field '{field_name}'"
        super().__init__(message, field=field_name, action=action_name, statement=statement, **log_context)
        self.field_name = field_name
        self.action = action
        self.statement = statement


# =============================================================================
# Operational errors
# =============================================================================


class IntegrityError(BrokerError):
    """
    Row count mismatch.

    Zero or several rows were returned or affected where exactly one was
    expected.
    """

    def __init__(self, message: str, rows: int | None = None, **log_context: Any):
        super().__init__(message, log_level="warning", rows=rows, **log_context)
        self.rows = rows


class ZeroRowsAffectedError(IntegrityError):
    """No row was returned or affected."""

    def __init__(self, message: str = "Zero record affected", **log_context: Any):
        super().__init__(message, rows=0, **log_context)


class TooManyRowsAffectedError(IntegrityError):
    """More than one row was returned or affected."""

    def __init__(self, message: str = "Too many records affected", rows: int | None = None, **log_context: Any):
        super().__init__(message, rows=rows, **log_context)


class RowOverflowError(IntegrityError):
    """A bounded read returned more rows than the requested maximum."""

    def __init__(self, max_rows: int, rows: int, **log_context: Any):
        super().__init__("Store return too many rows.", rows=rows, max_rows=max_rows, **log_context)
        self.max_rows = max_rows


class OptimisticLockingError(ZeroRowsAffectedError):
    """
    An update guarded by a version check matched no row.

    The row was modified or deleted since the caller read it.
    """

    def __init__(self, message: str = "Row was modified by another transaction", **log_context: Any):
        super().__init__(message, **log_context)


class TransactionAbortedError(BrokerError):
    """A transaction marked rollback-only was asked to commit."""

    def __init__(self, message: str = "Transaction has been aborted", **log_context: Any):
        super().__init__(message, log_level="error", **log_context)
