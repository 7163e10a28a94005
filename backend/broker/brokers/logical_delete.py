"""
Logical delete broker.

Rows of logical-delete types are never removed: deleting flips their
`is_actif` flag to False, and every read only sees active rows.

Usage:
    @bean("CUSTOMER", logical_delete=True)
    @dataclass
    class Customer:
        id: int | None = column("CUS_ID", primary_key=True)
        is_actif: bool | None = column("CUS_IS_ACTIF")

    broker = get_broker_registry().get_broker(Customer)   # LogicalDeleteBroker
    broker.delete(4)   # select, then update CUS_IS_ACTIF = false
"""

from __future__ import annotations

from collections.abc import MutableSequence
from typing import TYPE_CHECKING, Any

from broker.brokers.standard import StandardBroker, as_criteria
from broker.criteria import FilterCriteria
from broker.metadata import BeanState, ChangeAction, FieldDescriptor, FieldKind
from broker.query import QueryParameter
from broker.rules import ActivableRule
from broker.stores.base import BeanT
from broker.transaction import Transaction, transaction_scope
from shared.config.constants import AuditFields
from shared.config.logging import broker_logger as logger
from shared.utils.exceptions import UnsupportedOperationError

if TYPE_CHECKING:
    from broker.registry import BrokerRegistry


class LogicalDeleteBroker(StandardBroker[BeanT]):
    """
    StandardBroker whose deletes deactivate rows.

    Raises:
        UnsupportedOperationError: The type has no primary key or no
            boolean `is_actif` field.
    """

    def __init__(self, bean_type: type[BeanT], datasource: str, registry: BrokerRegistry | None = None):
        super().__init__(bean_type, datasource, registry)

        definition = self.definition
        if definition.primary_key is None:
            raise UnsupportedOperationError(
                f"{definition.qualified_name} has no primary key",
                bean_type=definition.qualified_name,
            )
        flag = definition.get_field(AuditFields.IS_ACTIF)
        if flag is None or not flag.is_mapped or flag.kind not in (FieldKind.BOOLEAN, FieldKind.OTHER):
            raise UnsupportedOperationError(
                f"{definition.qualified_name} has no '{AuditFields.IS_ACTIF}' field",
                bean_type=definition.qualified_name,
            )
        self._flag: FieldDescriptor = flag
        self._pk_column = definition.primary_key.column

        if not self.has_rule(flag.name):
            self.add_rule(ActivableRule(flag.name))

    @property
    def flag_column(self) -> str:
        return self._flag.column

    def _active(self, criteria: FilterCriteria | BeanT) -> FilterCriteria:
        """Copy of criteria restricted to active rows."""
        return as_criteria(criteria).and_criteria(FilterCriteria().equals(self._flag.column, True))

    # =========================================================================
    # Reads
    # =========================================================================

    def load(self, destination: BeanT | None, pk: Any, *, tx: Transaction | None = None) -> BeanT:
        if pk is None:
            return super().load(destination, pk, tx=tx)
        criteria = FilterCriteria().equals(self._pk_column, pk)
        return self.load_by_criteria(destination, criteria, tx=tx)

    def load_all(
        self,
        collection: MutableSequence[BeanT] | None,
        query: QueryParameter | None = None,
        *,
        tx: Transaction | None = None,
    ) -> MutableSequence[BeanT]:
        return self.load_all_by_criteria(collection, FilterCriteria(), query, tx=tx)

    def load_all_by_criteria(
        self,
        collection: MutableSequence[BeanT] | None,
        criteria: FilterCriteria | BeanT,
        query: QueryParameter | None = None,
        *,
        tx: Transaction | None = None,
    ) -> MutableSequence[BeanT]:
        return super().load_all_by_criteria(collection, self._active(criteria), query, tx=tx)

    def find_by_criteria(self, criteria: FilterCriteria | BeanT, *, tx: Transaction | None = None) -> BeanT | None:
        return super().find_by_criteria(self._active(criteria), tx=tx)

    def load_by_criteria(
        self,
        destination: BeanT | None,
        criteria: FilterCriteria | BeanT,
        *,
        tx: Transaction | None = None,
    ) -> BeanT:
        return super().load_by_criteria(destination, self._active(criteria), tx=tx)

    # =========================================================================
    # Deletes
    # =========================================================================

    def delete(self, pk: Any, *, tx: Transaction | None = None) -> None:
        """Deactivate the bean with the given primary key."""
        if pk is None:
            return super().delete(pk, tx=tx)
        with transaction_scope(self.datasource, tx) as t:
            bean = self.get(pk, tx=t)
            self.definition.set_value(bean, self._flag, False)
            self.save(bean, tx=t)
        logger.debug("Logically deleted", bean_type=self.definition.qualified_name, pk=pk)

    def delete_all_by_criteria(self, criteria: FilterCriteria | BeanT, *, tx: Transaction | None = None) -> int:
        """Deactivate every active bean matching criteria and return how many were."""
        criteria = as_criteria(criteria)
        with transaction_scope(self.datasource, tx) as t:
            beans = self.get_all_by_criteria(criteria, tx=t)
            for bean in beans:
                self.definition.set_value(bean, self._flag, False)
                if isinstance(bean, BeanState):
                    bean.change_action = ChangeAction.UPDATE
            self.save_all(beans, tx=t)
        return len(beans)
