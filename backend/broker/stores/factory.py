"""
Store type resolution.

Maps the `default_store` setting to a store class and a plain store class
to its translation-aware counterpart.

Usage:
    from broker.stores.factory import default_store_type

    store_type = default_store_type()   # SqlServerStore unless configured
"""

from broker.stores.base import Store
from broker.stores.reference import ReferenceSqliteStore, ReferenceSqlServerStore
from broker.stores.sql_server import SqlServerStore
from broker.stores.sqlite import SqliteStore
from shared.config.constants import StoreDialects
from shared.config.settings import settings
from shared.utils.exceptions import ConfigurationError

STORE_TYPES: dict[str, type[Store]] = {
    StoreDialects.SQL_SERVER: SqlServerStore,
    StoreDialects.SQLITE: SqliteStore,
}


def store_type_for_dialect(dialect: str) -> type[Store]:
    """
    Get the store class of a dialect name.

    Raises:
        ConfigurationError: Unknown dialect.
    """
    store_type = STORE_TYPES.get((dialect or "").lower())
    if store_type is None:
        raise ConfigurationError(
            f"Unknown store dialect '{dialect}'. Expected one of {StoreDialects.ALL}",
            dialect=dialect,
        )
    return store_type


def default_store_type() -> type[Store]:
    """Store class used for datasources without a registered store type."""
    return store_type_for_dialect(settings.default_store)


def reference_store_type(store_type: type[Store]) -> type[Store]:
    """Translation-aware store class for the dialect of store_type."""
    if issubclass(store_type, (ReferenceSqlServerStore, ReferenceSqliteStore)):
        return store_type
    if issubclass(store_type, SqliteStore):
        return ReferenceSqliteStore
    return ReferenceSqlServerStore
