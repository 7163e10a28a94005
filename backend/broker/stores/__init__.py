"""
Stores: SQL generation and execution per bean type.

Provides:
- Store: dialect independent SQL builders and row-count checks (base.py)
- SqlServerStore: Transact-SQL dialect (sql_server.py)
- SqliteStore: SQLite dialect (sqlite.py)
- ReferenceSqlServerStore, ReferenceSqliteStore: translated reference data reads (reference.py)
- Store type resolution from settings (factory.py)
"""

from broker.stores.base import Store
from broker.stores.sql_server import SqlServerStore
from broker.stores.sqlite import SqliteStore
from broker.stores.reference import (
    ReferenceSqliteStore,
    ReferenceSqlServerStore,
    ReferenceStoreMixin,
    translation_table_key,
)
from broker.stores.factory import default_store_type, reference_store_type, store_type_for_dialect

__all__ = [
    "Store",
    "SqlServerStore",
    "SqliteStore",
    "ReferenceStoreMixin",
    "ReferenceSqlServerStore",
    "ReferenceSqliteStore",
    "translation_table_key",
    "default_store_type",
    "reference_store_type",
    "store_type_for_dialect",
]
