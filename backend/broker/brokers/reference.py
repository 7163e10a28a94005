"""
Reference broker: translation-aware persistence of reference data.

Translatable labels of reference types are stored once on the row, in the
default language, and once per other language in the translation table.
Saving an existing bean while another language is active only writes its
non-translatable columns to the row, then writes the labels as
translations of that language.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from broker.brokers.standard import StandardBroker
from broker.metadata import unwrap_value
from broker.query import ColumnSelector
from broker.stores.base import BeanT, Store
from broker.stores.factory import reference_store_type
from broker.transaction import Transaction, transaction_scope
from shared.config.logging import broker_logger as logger
from shared.utils.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from broker.registry import BrokerRegistry


# =============================================================================
# Collaborators
# =============================================================================


@runtime_checkable
class ResourceLoader(Protocol):
    """Provides the default and the active language codes."""

    def load_default_language_code(self) -> str:
        ...

    def load_current_language_code(self) -> str:
        ...


@runtime_checkable
class ResourceWriter(Protocol):
    """Persists the translations of reference beans."""

    def save_translation(
        self,
        bean_type: type,
        bean: Any,
        language_code: str,
        *,
        tx: Transaction | None = None,
    ) -> None:
        ...

    def delete_translations(self, bean_type: type, primary_key: Any, *, tx: Transaction | None = None) -> None:
        ...


# =============================================================================
# Broker
# =============================================================================


class ReferenceBroker(StandardBroker[BeanT]):
    """
    StandardBroker keeping translations in sync with reference rows.

    Args:
        bean_type: Mapped reference type.
        datasource: Datasource name.
        resource_loader: Language codes provider.
        resource_writer: Translation persistence.
        registry: Optional owning registry.

    Raises:
        InvalidArgumentError: resource_loader or resource_writer is missing.
    """

    def __init__(
        self,
        bean_type: type[BeanT],
        datasource: str,
        resource_loader: ResourceLoader,
        resource_writer: ResourceWriter,
        registry: BrokerRegistry | None = None,
    ):
        if resource_loader is None:
            raise InvalidArgumentError("Resource loader is required", argument="resource_loader")
        if resource_writer is None:
            raise InvalidArgumentError("Resource writer is required", argument="resource_writer")
        self._resource_loader = resource_loader
        self._resource_writer = resource_writer
        super().__init__(bean_type, datasource, registry)

    def create_store(self) -> Store[BeanT]:
        return reference_store_type(self.store_type())(self.bean_type, self.datasource)

    def _untranslated_selector(self, column_selector: ColumnSelector | None) -> ColumnSelector:
        """Non-translatable columns, restricted to column_selector when given."""
        selector = ColumnSelector(f.column for f in self.definition.mapped_fields if not f.translatable)
        if column_selector is None:
            return selector
        return ColumnSelector(selector.columns & column_selector.columns)

    def save(
        self,
        bean: BeanT,
        column_selector: ColumnSelector | None = None,
        *,
        tx: Transaction | None = None,
    ) -> Any:
        """
        Save a reference bean and its translations in the active language.

        Returns:
            The primary key, also set on the bean.
        """
        if bean is None:
            raise InvalidArgumentError("Bean is required", argument="bean")

        definition = self.definition
        primary_key = definition.primary_key
        default_language = self._resource_loader.load_default_language_code()
        language = self._resource_loader.load_current_language_code()

        with transaction_scope(self.datasource, tx) as t:
            pk = unwrap_value(definition.get_value(bean, primary_key))
            if pk is not None and language != default_language and definition.translatable_fields:
                selector = self._untranslated_selector(column_selector)
                if self.store.updatable_columns(selector):
                    super().save(bean, selector, tx=t)
                else:
                    logger.debug(
                        "Only translations to save",
                        bean_type=definition.qualified_name,
                        language=language,
                    )
                    self._flush_cache()
            else:
                pk = super().save(bean, column_selector, tx=t)
                definition.set_value(bean, primary_key, pk)

            self._resource_writer.save_translation(self.bean_type, bean, language, tx=t)
        return pk

    def save_all(
        self,
        beans: Iterable[BeanT],
        column_selector: ColumnSelector | None = None,
        *,
        tx: Transaction | None = None,
    ) -> None:
        if beans is None:
            raise InvalidArgumentError("Collection is required", argument="beans")
        with transaction_scope(self.datasource, tx) as t:
            for bean in beans:
                self.save(bean, column_selector, tx=t)

    def delete(self, pk: Any, *, tx: Transaction | None = None) -> None:
        """Delete a reference row and every translation of it."""
        if pk is None:
            raise InvalidArgumentError("Primary key is required", argument="pk")
        with transaction_scope(self.datasource, tx) as t:
            self._resource_writer.delete_translations(self.bean_type, pk, tx=t)
            super().delete(pk, tx=t)
