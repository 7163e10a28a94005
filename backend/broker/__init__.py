"""
Rule-extensible persistence broker.

Maps dataclass beans to tables, generates parameterized SQL per dialect and
lets field rules (audit stamping, optimistic locking, logical delete)
shape the generated statements.

IMPORT EXAMPLES:
    from broker import bean, column, get_broker_registry, FilterCriteria
    from broker.rules import VersionRule
    from broker.transaction import transaction_scope
"""

from broker.metadata import (
    BeanDefinition,
    BeanState,
    ChangeAction,
    DefinitionBuilder,
    ExtendedValue,
    FieldDescriptor,
    FieldKind,
    bean,
    column,
    get_definition,
    register_definition,
)
from broker.rules import (
    ActionRule,
    ValueRule,
    StoreRule,
    CreationDateRule,
    CreationUserRule,
    ModificationDateRule,
    ModificationUserRule,
    VersionRule,
    ActivableRule,
)
from broker.criteria import Expression, FilterCriteria, FilterCriteriaParam
from broker.query import ColumnSelector, QueryParameter, SortOrder
from broker.command import CommandParameters, SqlCommand
from broker.transaction import Transaction, transaction_scope
from broker.stores import (
    Store,
    SqlServerStore,
    SqliteStore,
    ReferenceSqlServerStore,
    ReferenceSqliteStore,
)
from broker.brokers import (
    StandardBroker,
    LogicalDeleteBroker,
    ReferenceBroker,
    ResourceLoader,
    ResourceWriter,
)
from broker.registry import BrokerRegistry, get_broker_registry
from broker.translations import ContextResourceLoader, TranslationTableWriter
from shared.config.constants import NO_LIMIT

__all__ = [
    # metadata
    "BeanDefinition",
    "BeanState",
    "ChangeAction",
    "DefinitionBuilder",
    "ExtendedValue",
    "FieldDescriptor",
    "FieldKind",
    "bean",
    "column",
    "get_definition",
    "register_definition",
    # rules
    "ActionRule",
    "ValueRule",
    "StoreRule",
    "CreationDateRule",
    "CreationUserRule",
    "ModificationDateRule",
    "ModificationUserRule",
    "VersionRule",
    "ActivableRule",
    # criteria and query
    "Expression",
    "FilterCriteria",
    "FilterCriteriaParam",
    "ColumnSelector",
    "QueryParameter",
    "SortOrder",
    "NO_LIMIT",
    # execution
    "CommandParameters",
    "SqlCommand",
    "Transaction",
    "transaction_scope",
    # stores
    "Store",
    "SqlServerStore",
    "SqliteStore",
    "ReferenceSqlServerStore",
    "ReferenceSqliteStore",
    # brokers
    "StandardBroker",
    "LogicalDeleteBroker",
    "ReferenceBroker",
    "ResourceLoader",
    "ResourceWriter",
    "BrokerRegistry",
    "get_broker_registry",
    "ContextResourceLoader",
    "TranslationTableWriter",
]
