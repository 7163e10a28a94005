"""
Broker registry.

Maps (bean type, datasource) to a single broker instance. Brokers are built
on first request with the rules registered at that time; later rule
registrations only reach brokers built afterwards.

Lookups are lock-free once a broker exists. The first request for a key
takes the registry lock and re-checks before building, so concurrent
first requests share one broker.

Usage:
    from broker.registry import get_broker_registry

    registry = get_broker_registry()
    registry.add_rule(VersionRule())
    registry.register_store("reporting", SqliteStore)

    products = registry.get_broker(Product)
    archive = registry.get_broker(Product, "reporting")
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from broker.brokers.logical_delete import LogicalDeleteBroker
from broker.brokers.reference import ReferenceBroker, ResourceLoader, ResourceWriter
from broker.brokers.standard import StandardBroker
from broker.metadata import get_definition
from broker.rules import StoreRule
from broker.stores.base import Store
from broker.stores.factory import default_store_type
from shared.config.constants import AuditFields
from shared.config.logging import broker_logger as logger
from shared.config.settings import settings
from shared.utils.exceptions import InvalidArgumentError, UnsupportedOperationError

RulePredicate = Callable[[Any], bool]


class BrokerRegistry:
    """
    Owner of the broker instances of a process.

    Args:
        default_datasource: Datasource used when get_broker() is called
            without one. Can be registered later.
    """

    def __init__(self, default_datasource: str | None = None):
        self._lock = threading.Lock()
        self._brokers: dict[tuple[str, str], StandardBroker] = {}
        self._standard_brokers: dict[tuple[str, str], StandardBroker] = {}
        self._store_types: dict[str, type[Store]] = {}
        self._rules: list[StoreRule] = []
        self._conditional_rules: list[tuple[RulePredicate, StoreRule]] = []
        self._flush_listeners: list[Callable[[type], None]] = []
        self._resource_loader: ResourceLoader | None = None
        self._resource_writer: ResourceWriter | None = None
        self._default_datasource: str | None = None
        if default_datasource is not None:
            self.register_default_datasource(default_datasource)

    # =========================================================================
    # Registration
    # =========================================================================

    @property
    def default_datasource(self) -> str | None:
        return self._default_datasource

    def register_default_datasource(self, datasource: str) -> None:
        """
        Set the datasource used by get_broker() calls without one.

        Raises:
            InvalidArgumentError: datasource is None or empty.
        """
        if not datasource:
            raise InvalidArgumentError("Datasource name is required", argument="datasource")
        self._default_datasource = datasource

    def register_store(self, datasource: str, store_type: type[Store]) -> None:
        """
        Set the store class of a datasource.

        Raises:
            InvalidArgumentError: datasource or store_type is missing, or
                store_type is not a Store subclass.
        """
        if not datasource:
            raise InvalidArgumentError("Datasource name is required", argument="datasource")
        if store_type is None:
            raise InvalidArgumentError("Store type is required", argument="store_type")
        if not isinstance(store_type, type) or not issubclass(store_type, Store):
            raise InvalidArgumentError(f"{store_type!r} is not a Store subclass", argument="store_type")
        logger.debug("Store registered", datasource=datasource, store_type=store_type.__name__)
        self._store_types[datasource] = store_type

    def get_store_type(self, datasource: str) -> type[Store]:
        """Store class of a datasource, the configured default when none is registered."""
        store_type = self._store_types.get(datasource)
        if store_type is None:
            return default_store_type()
        return store_type

    def add_rule(self, rule: StoreRule) -> None:
        """
        Register a rule for every broker built from now on.

        Raises:
            InvalidArgumentError: rule is None.
        """
        if rule is None:
            raise InvalidArgumentError("Rule is required", argument="rule")
        with self._lock:
            if rule not in self._rules:
                self._rules.append(rule)

    def add_rule_when(self, predicate: RulePredicate, rule: StoreRule) -> None:
        """
        Register a rule for brokers whose type satisfies predicate.

        The predicate receives a fresh instance of the bean type.

        Raises:
            InvalidArgumentError: predicate or rule is None.
        """
        if predicate is None:
            raise InvalidArgumentError("Predicate is required", argument="predicate")
        if rule is None:
            raise InvalidArgumentError("Rule is required", argument="rule")
        with self._lock:
            if (predicate, rule) not in self._conditional_rules:
                self._conditional_rules.append((predicate, rule))

    def register_resource_services(self, loader: ResourceLoader, writer: ResourceWriter) -> None:
        """
        Enable translation-aware brokers for reference types.

        Raises:
            InvalidArgumentError: loader or writer is None.
        """
        if loader is None:
            raise InvalidArgumentError("Resource loader is required", argument="loader")
        if writer is None:
            raise InvalidArgumentError("Resource writer is required", argument="writer")
        self._resource_loader = loader
        self._resource_writer = writer

    def on_reference_flush(self, listener: Callable[[type], None]) -> None:
        """Register a callback invoked with the bean type after reference data changes."""
        if listener is None:
            raise InvalidArgumentError("Listener is required", argument="listener")
        self._flush_listeners.append(listener)

    def flush_reference(self, bean_type: type) -> None:
        for listener in list(self._flush_listeners):
            listener(bean_type)

    # =========================================================================
    # Lookup
    # =========================================================================

    def _resolve_datasource(self, datasource: str | None) -> str:
        if datasource:
            return datasource
        if not self._default_datasource:
            raise UnsupportedOperationError(
                "No default datasource registered, call register_default_datasource() first"
            )
        return self._default_datasource

    @staticmethod
    def is_logical_delete(bean_type: type) -> bool:
        """True when the type is marked logical-delete and has an is_actif field."""
        definition = get_definition(bean_type)
        if not definition.logical_delete:
            return False
        names = [f.name for f in definition.fields if f.name == AuditFields.IS_ACTIF]
        return len(names) == 1

    def get_broker(self, bean_type: type, datasource: str | None = None) -> StandardBroker:
        """
        Get the broker of a bean type on a datasource.

        Raises:
            UnsupportedOperationError: No datasource given and no default registered.
            PersistenceConfigurationError: The type cannot be persisted.
        """
        datasource = self._resolve_datasource(datasource)
        key = (get_definition(bean_type).qualified_name, datasource)

        broker = self._brokers.get(key)
        if broker is not None:
            return broker

        with self._lock:
            broker = self._brokers.get(key)
            if broker is None:
                broker = self._create_broker(bean_type, datasource)
                self._attach_rules(broker)
                self._brokers[key] = broker
                logger.info("Broker created", bean_type=key[0], datasource=datasource, broker=type(broker).__name__)
        return broker

    def get_standard_broker(self, bean_type: type, datasource: str | None = None) -> StandardBroker:
        """Get a plain StandardBroker for a type, whatever its markers."""
        datasource = self._resolve_datasource(datasource)
        key = (get_definition(bean_type).qualified_name, datasource)

        broker = self._standard_brokers.get(key)
        if broker is not None:
            return broker

        with self._lock:
            broker = self._standard_brokers.get(key)
            if broker is None:
                broker = StandardBroker(bean_type, datasource, self)
                self._attach_rules(broker)
                self._standard_brokers[key] = broker
                logger.info("Standard broker created", bean_type=key[0], datasource=datasource)
        return broker

    def _create_broker(self, bean_type: type, datasource: str) -> StandardBroker:
        if self.is_logical_delete(bean_type):
            return LogicalDeleteBroker(bean_type, datasource, self)

        definition = get_definition(bean_type)
        if definition.is_reference and definition.translatable_fields and self._resource_writer is not None:
            return ReferenceBroker(bean_type, datasource, self._resource_loader, self._resource_writer, self)

        return StandardBroker(bean_type, datasource, self)

    def _attach_rules(self, broker: StandardBroker) -> None:
        """Attach global rules, then conditional rules whose predicate holds."""
        candidates = list(self._rules)
        if self._conditional_rules:
            sample = broker.definition.new_instance()
            candidates.extend(rule for predicate, rule in self._conditional_rules if predicate(sample))

        for rule in candidates:
            if broker.has_rule(rule.field_name):
                logger.debug(
                    "Rule skipped, field already has one",
                    bean_type=broker.definition.qualified_name,
                    field=rule.field_name,
                    rule=type(rule).__name__,
                )
                continue
            broker.add_rule(rule)

    # =========================================================================
    # Maintenance
    # =========================================================================

    @property
    def broker_count(self) -> int:
        return len(self._brokers) + len(self._standard_brokers)

    def clear(self) -> None:
        """Forget every broker and registration."""
        with self._lock:
            self._brokers.clear()
            self._standard_brokers.clear()
            self._store_types.clear()
            self._rules.clear()
            self._conditional_rules.clear()
            self._flush_listeners.clear()
            self._resource_loader = None
            self._resource_writer = None
            self._default_datasource = None


# =============================================================================
# Process default
# =============================================================================

_broker_registry: BrokerRegistry | None = None
_broker_registry_lock = threading.Lock()


def get_broker_registry() -> BrokerRegistry:
    """Get or create the process registry, with the configured default datasource."""
    global _broker_registry
    if _broker_registry is None:
        with _broker_registry_lock:
            if _broker_registry is None:
                _broker_registry = BrokerRegistry(default_datasource=settings.default_datasource)
    return _broker_registry
