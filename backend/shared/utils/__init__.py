"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    BrokerError,
    InvalidArgumentError,
    ConfigurationError,
    PersistenceConfigurationError,
    UnsupportedOperationError,
    UnsupportedRuleError,
    IntegrityError,
    ZeroRowsAffectedError,
    TooManyRowsAffectedError,
    RowOverflowError,
    OptimisticLockingError,
    TransactionAbortedError,
)

__all__ = [
    "BrokerError",
    "InvalidArgumentError",
    "ConfigurationError",
    "PersistenceConfigurationError",
    "UnsupportedOperationError",
    "UnsupportedRuleError",
    "IntegrityError",
    "ZeroRowsAffectedError",
    "TooManyRowsAffectedError",
    "RowOverflowError",
    "OptimisticLockingError",
    "TransactionAbortedError",
]
