"""
Standard broker: transactional CRUD over a store.

Every operation runs inside transaction_scope(): it joins the transaction
passed as `tx`, or opens one on the broker's datasource and commits it on
success. Failures propagate unchanged and leave a joined transaction
marked rollback-only.

Usage:
    broker = get_broker_registry().get_broker(Product)

    product = broker.get(12)
    product.label = "Chocolate"
    broker.save(product)

    with transaction_scope("default") as tx:
        broker.save(order, tx=tx)
        line_broker.save_all(lines, tx=tx)
"""

from __future__ import annotations

from collections.abc import Iterable, MutableSequence
from typing import TYPE_CHECKING, Any, Generic

from broker.criteria import FilterCriteria
from broker.metadata import BeanDefinition, BeanState, ChangeAction, unwrap_value
from broker.query import ColumnSelector, QueryParameter
from broker.rules import StoreRule, default_rules
from broker.stores.base import BeanT, Store
from broker.stores.factory import default_store_type
from broker.transaction import Transaction, transaction_scope
from shared.config.logging import broker_logger as logger
from shared.utils.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from broker.registry import BrokerRegistry


def as_criteria(criteria: FilterCriteria | Any) -> FilterCriteria:
    """
    Accept either a FilterCriteria or a bean by example.

    Raises:
        InvalidArgumentError: criteria is None.
    """
    if criteria is None:
        raise InvalidArgumentError("Criteria is required", argument="criteria")
    if isinstance(criteria, FilterCriteria):
        return criteria
    return FilterCriteria.from_bean(criteria)


class StandardBroker(Generic[BeanT]):
    """
    Broker for one bean type on one datasource.

    Args:
        bean_type: Mapped bean type.
        datasource: Datasource name.
        registry: Registry providing the store type and the reference cache
            listeners. Optional for standalone use.

    Raises:
        InvalidArgumentError: datasource is missing.
        PersistenceConfigurationError: The bean type cannot be persisted.
    """

    def __init__(self, bean_type: type[BeanT], datasource: str, registry: BrokerRegistry | None = None):
        if not datasource:
            raise InvalidArgumentError("Datasource name is required", argument="datasource")
        self._bean_type = bean_type
        self._datasource = datasource
        self._registry = registry
        self._store: Store[BeanT] = self.create_store()
        self._has_cache = self._store.definition.is_reference

        for rule in default_rules():
            descriptor = self.definition.get_field(rule.field_name)
            if descriptor is not None and descriptor.is_mapped:
                self.add_rule(rule)

    # =========================================================================
    # Properties and rules
    # =========================================================================

    @property
    def bean_type(self) -> type[BeanT]:
        return self._bean_type

    @property
    def datasource(self) -> str:
        return self._datasource

    @property
    def store(self) -> Store[BeanT]:
        return self._store

    @property
    def definition(self) -> BeanDefinition:
        return self._store.definition

    @property
    def store_rules(self) -> list[StoreRule]:
        return list(self._store.rules.values())

    def add_rule(self, rule: StoreRule) -> None:
        self._store.add_rule(rule)

    def has_rule(self, field_name: str) -> bool:
        return self._store.get_store_rule(field_name) is not None

    def store_type(self) -> type[Store]:
        """Store class of the broker's datasource."""
        if self._registry is not None:
            return self._registry.get_store_type(self._datasource)
        return default_store_type()

    def create_store(self) -> Store[BeanT]:
        return self.store_type()(self._bean_type, self._datasource)

    def _flush_cache(self) -> None:
        """Tell reference data readers that their cached copy of the type is stale."""
        if not self._has_cache:
            return
        logger.debug("Flushing reference cache", bean_type=self.definition.qualified_name)
        if self._registry is not None:
            self._registry.flush_reference(self._bean_type)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, pk: Any, *, tx: Transaction | None = None) -> BeanT:
        """
        Get the bean with the given primary key.

        Raises:
            InvalidArgumentError: pk is None.
            ZeroRowsAffectedError / TooManyRowsAffectedError: Not exactly one row.
        """
        return self.load(None, pk, tx=tx)

    def load(self, destination: BeanT | None, pk: Any, *, tx: Transaction | None = None) -> BeanT:
        if pk is None:
            raise InvalidArgumentError("Primary key is required", argument="pk")
        with transaction_scope(self._datasource, tx) as t:
            return self._store.load(t, destination, pk)

    def get_all(self, query: QueryParameter | None = None, *, tx: Transaction | None = None) -> list[BeanT]:
        return self.load_all([], query, tx=tx)

    def load_all(
        self,
        collection: MutableSequence[BeanT] | None,
        query: QueryParameter | None = None,
        *,
        tx: Transaction | None = None,
    ) -> MutableSequence[BeanT]:
        with transaction_scope(self._datasource, tx) as t:
            return self._store.load_all(t, collection, query)

    def get_all_by_criteria(
        self,
        criteria: FilterCriteria | BeanT,
        query: QueryParameter | None = None,
        *,
        tx: Transaction | None = None,
    ) -> list[BeanT]:
        """Get every bean matching criteria or a bean by example."""
        return self.load_all_by_criteria([], criteria, query, tx=tx)

    def load_all_by_criteria(
        self,
        collection: MutableSequence[BeanT] | None,
        criteria: FilterCriteria | BeanT,
        query: QueryParameter | None = None,
        *,
        tx: Transaction | None = None,
    ) -> MutableSequence[BeanT]:
        criteria = as_criteria(criteria)
        with transaction_scope(self._datasource, tx) as t:
            return self._store.load_all_by_criteria(t, collection, criteria, query)

    def get_by_criteria(self, criteria: FilterCriteria | BeanT, *, tx: Transaction | None = None) -> BeanT:
        """
        Get the single bean matching criteria.

        Raises:
            ZeroRowsAffectedError / TooManyRowsAffectedError: Not exactly one row.
        """
        return self.load_by_criteria(None, criteria, tx=tx)

    def find_by_criteria(self, criteria: FilterCriteria | BeanT, *, tx: Transaction | None = None) -> BeanT | None:
        """Get the bean matching criteria, None when there is none."""
        criteria = as_criteria(criteria)
        with transaction_scope(self._datasource, tx) as t:
            return self._store.load_by_criteria(t, None, criteria, return_none_if_zero_row=True)

    def load_by_criteria(
        self,
        destination: BeanT | None,
        criteria: FilterCriteria | BeanT,
        *,
        tx: Transaction | None = None,
    ) -> BeanT:
        criteria = as_criteria(criteria)
        with transaction_scope(self._datasource, tx) as t:
            return self._store.load_by_criteria(t, destination, criteria)

    # =========================================================================
    # Writes
    # =========================================================================

    def save(
        self,
        bean: BeanT,
        column_selector: ColumnSelector | None = None,
        *,
        tx: Transaction | None = None,
    ) -> Any:
        """
        Insert or update a bean.

        Returns:
            The primary key, also set on the bean.
        """
        if bean is None:
            raise InvalidArgumentError("Bean is required", argument="bean")
        with transaction_scope(self._datasource, tx) as t:
            primary_key = self._store.put(t, bean, column_selector)
        self._flush_cache()
        return primary_key

    def save_all(
        self,
        beans: Iterable[BeanT],
        column_selector: ColumnSelector | None = None,
        *,
        tx: Transaction | None = None,
    ) -> None:
        """
        Save a collection in one transaction.

        Beans tracking their change state are routed by it: INSERT and
        UPDATE are saved, DELETE removed, NONE skipped. Other beans are
        all saved.
        """
        if beans is None:
            raise InvalidArgumentError("Collection is required", argument="beans")
        primary_key = self.definition.primary_key
        with transaction_scope(self._datasource, tx) as t:
            for bean in beans:
                if not isinstance(bean, BeanState):
                    self._store.put(t, bean, column_selector)
                    continue
                state = bean.change_action
                if state in (ChangeAction.INSERT, ChangeAction.UPDATE):
                    self._store.put(t, bean, column_selector)
                elif state == ChangeAction.DELETE:
                    self._store.remove(t, unwrap_value(self.definition.get_value(bean, primary_key)))
        self._flush_cache()

    def insert_all(self, beans: Iterable[BeanT], *, tx: Transaction | None = None) -> Iterable[BeanT]:
        """Save every bean of a collection and return it."""
        if beans is None:
            raise InvalidArgumentError("Collection is required", argument="beans")
        with transaction_scope(self._datasource, tx) as t:
            return self._store.put_all(t, beans)

    # =========================================================================
    # Deletes
    # =========================================================================

    def delete(self, pk: Any, *, tx: Transaction | None = None) -> None:
        """
        Delete the bean with the given primary key.

        Raises:
            InvalidArgumentError: pk is None.
            ZeroRowsAffectedError / TooManyRowsAffectedError: Not exactly one row deleted.
        """
        if pk is None:
            raise InvalidArgumentError("Primary key is required", argument="pk")
        with transaction_scope(self._datasource, tx) as t:
            self._store.remove(t, pk)
        self._flush_cache()

    def delete_collection(self, pks: Iterable[Any], *, tx: Transaction | None = None) -> None:
        if pks is None:
            raise InvalidArgumentError("Primary keys are required", argument="pks")
        with transaction_scope(self._datasource, tx) as t:
            for pk in pks:
                self.delete(pk, tx=t)

    def delete_all_by_criteria(self, criteria: FilterCriteria | BeanT, *, tx: Transaction | None = None) -> int:
        """
        Delete every bean matching criteria or a bean by example.

        Returns:
            Number of rows deleted.

        Raises:
            UnsupportedOperationError: criteria is empty.
        """
        criteria = as_criteria(criteria)
        with transaction_scope(self._datasource, tx) as t:
            count = self._store.remove_all_by_criteria(t, criteria)
        self._flush_cache()
        return count

    def is_used(self, pk: Any, *, tx: Transaction | None = None) -> bool:
        return self._store.is_used(tx, pk)

    def are_used(self, pks: Iterable[Any], *, tx: Transaction | None = None) -> bool:
        return self._store.are_used(tx, pks)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.definition.qualified_name}, datasource={self._datasource!r})>"
