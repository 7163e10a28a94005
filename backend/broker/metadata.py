"""
Bean metadata.

A bean is a plain dataclass whose fields map to the columns of one table.
Its BeanDefinition is built once per type, from the dataclass fields and
their `column()` declarations or from an explicit DefinitionBuilder, and
is read-only afterwards.

Usage:
    from broker.metadata import bean, column

    @bean("PRODUCT")
    @dataclass
    class Product:
        id: int | None = column("PRO_ID", primary_key=True)
        label: str | None = column("PRO_LABEL", translatable=True)
        picture: bytes | None = column("PRO_PICTURE")
        selected: bool = False  # not mapped

    definition = get_definition(Product)
    definition.primary_key.column  # "PRO_ID"
"""

from __future__ import annotations

import dataclasses
import threading
import types
import typing
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field as dataclass_field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from shared.utils.exceptions import ConfigurationError, InvalidArgumentError

COLUMN_METADATA_KEY = "broker_column"


# =============================================================================
# Field kinds
# =============================================================================


class FieldKind(Enum):
    """Storage kind of a bean field."""
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    GUID = "guid"
    BYTES = "bytes"
    OTHER = "other"


_KIND_BY_TYPE: dict[type, FieldKind] = {
    str: FieldKind.STRING,
    int: FieldKind.INTEGER,
    float: FieldKind.FLOAT,
    Decimal: FieldKind.DECIMAL,
    bool: FieldKind.BOOLEAN,
    datetime: FieldKind.DATETIME,
    date: FieldKind.DATE,
    uuid.UUID: FieldKind.GUID,
    bytes: FieldKind.BYTES,
    bytearray: FieldKind.BYTES,
}


def infer_kind(annotation: Any) -> FieldKind:
    """
    Infer the storage kind from a type annotation.

    Optional annotations (`int | None`, `Optional[int]`) resolve to the
    kind of their non-None member.
    """
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) != 1:
            return FieldKind.OTHER
        annotation = members[0]
    if isinstance(annotation, type):
        return _KIND_BY_TYPE.get(annotation, FieldKind.OTHER)
    return FieldKind.OTHER


# =============================================================================
# Column declarations
# =============================================================================


@dataclass(frozen=True)
class ColumnInfo:
    """Mapping options attached to a dataclass field by column()."""
    name: str | None = None
    primary_key: bool = False
    read_only: bool = False
    translatable: bool = False
    kind: FieldKind | None = None


def column(
    name: str | None = None,
    *,
    primary_key: bool = False,
    read_only: bool = False,
    translatable: bool = False,
    kind: FieldKind | None = None,
    default: Any = None,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """
    Declare a mapped dataclass field.

    Args:
        name: Storage column. Defaults to the upper-cased attribute name.
        primary_key: Field holds the primary key.
        read_only: Field is never written by UPDATE statements.
        translatable: Field holds a label translated per language.
        kind: Storage kind. Inferred from the annotation when omitted.
        default: Default value (None unless given).
        default_factory: Factory for mutable defaults.

    Returns:
        A dataclasses.field carrying the mapping metadata.
    """
    info = ColumnInfo(
        name=name,
        primary_key=primary_key,
        read_only=read_only,
        translatable=translatable,
        kind=kind,
    )
    if default_factory is not dataclasses.MISSING:
        return dataclass_field(default_factory=default_factory, metadata={COLUMN_METADATA_KEY: info})
    return dataclass_field(default=default, metadata={COLUMN_METADATA_KEY: info})


@dataclass(frozen=True)
class BeanOptions:
    """Table level options attached to a class by @bean."""
    table: str | None = None
    reference: bool = False
    logical_delete: bool = False


def bean(table: str | None = None, *, reference: bool = False, logical_delete: bool = False):
    """
    Mark a dataclass as a persistent bean.

    Args:
        table: Table (contract) name.
        reference: The type is reference data cached by readers; brokers
            flush that cache after every write.
        logical_delete: Deletes flip the `is_actif` flag instead of
            removing rows.
    """
    def decorator(cls):
        cls.__bean_options__ = BeanOptions(table=table, reference=reference, logical_delete=logical_delete)
        return cls
    return decorator


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One field of a bean.

    `column` is None for fields that exist on the bean but are not stored.
    """
    name: str
    column: str | None
    kind: FieldKind = FieldKind.OTHER
    primary_key: bool = False
    read_only: bool = False
    translatable: bool = False

    @property
    def is_mapped(self) -> bool:
        return bool(self.column)

    @property
    def is_binary(self) -> bool:
        return self.kind == FieldKind.BYTES


@dataclass(frozen=True)
class BeanDefinition:
    """
    Read-only metadata of a bean type.

    Fields keep their declaration order, which is also the column order of
    generated SQL.
    """
    bean_type: type
    table: str
    fields: tuple[FieldDescriptor, ...]
    is_reference: bool = False
    logical_delete: bool = False
    _by_name: dict[str, FieldDescriptor] = dataclass_field(init=False, repr=False, compare=False)
    _by_column: dict[str, FieldDescriptor] = dataclass_field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_by_name", {f.name: f for f in self.fields})
        object.__setattr__(self, "_by_column", {f.column.upper(): f for f in self.fields if f.column})

    @property
    def qualified_name(self) -> str:
        return f"{self.bean_type.__module__}.{self.bean_type.__qualname__}"

    @property
    def primary_keys(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.primary_key]

    @property
    def primary_key(self) -> FieldDescriptor | None:
        """The primary key descriptor, None unless exactly one is declared."""
        keys = self.primary_keys
        return keys[0] if len(keys) == 1 else None

    @property
    def mapped_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.is_mapped]

    @property
    def translatable_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.is_mapped and f.translatable]

    def get_field(self, name: str) -> FieldDescriptor | None:
        return self._by_name.get(name)

    def by_column(self, column_name: str) -> FieldDescriptor | None:
        return self._by_column.get(column_name.upper())

    def check_persistable(self) -> None:
        """
        Verify the type can back a store.

        Raises:
            ConfigurationError: No table name, or not exactly one primary key.
        """
        if not self.table:
            raise ConfigurationError(
                f"{self.qualified_name} has no table name. Check type persistence.",
                bean_type=self.qualified_name,
            )
        keys = self.primary_keys
        if not keys:
            raise ConfigurationError(
                f"{self.qualified_name} has no primary key defined.",
                bean_type=self.qualified_name,
            )
        if len(keys) > 1:
            raise ConfigurationError(
                f"{self.qualified_name} has more than one primary key defined.",
                bean_type=self.qualified_name,
                primary_keys=[f.name for f in keys],
            )

    def new_instance(self) -> Any:
        return self.bean_type()

    def get_value(self, instance: Any, descriptor: FieldDescriptor) -> Any:
        return getattr(instance, descriptor.name, None)

    def set_value(self, instance: Any, descriptor: FieldDescriptor, value: Any) -> None:
        setattr(instance, descriptor.name, value)

    def populate(self, instance: Any, row: Mapping[str, Any]) -> Any:
        """
        Copy the columns of a row into a bean.

        Row keys are matched case-insensitively against the mapped columns;
        columns the row does not carry leave the bean untouched.
        """
        for key, value in row.items():
            descriptor = self._by_column.get(str(key).upper())
            if descriptor is None:
                continue
            setattr(instance, descriptor.name, _coerce(descriptor, value))
        return instance


def _coerce(descriptor: FieldDescriptor, value: Any) -> Any:
    """Convert driver values that lost their Python type (SQLite stores text and ints)."""
    if value is None:
        return None
    if descriptor.kind == FieldKind.GUID and isinstance(value, str):
        return uuid.UUID(value)
    if descriptor.kind == FieldKind.BOOLEAN and isinstance(value, int):
        return bool(value)
    if descriptor.kind == FieldKind.DATETIME and isinstance(value, str):
        return datetime.fromisoformat(value)
    if descriptor.kind == FieldKind.DATE and isinstance(value, str):
        return date.fromisoformat(value)
    if descriptor.kind == FieldKind.DECIMAL and isinstance(value, (int, float, str)):
        return Decimal(str(value))
    return value


# =============================================================================
# Builder
# =============================================================================


class DefinitionBuilder:
    """
    Fluent builder for types that are not declared with @bean/column().

    Usage:
        definition = (
            DefinitionBuilder(Country)
            .table("COUNTRY")
            .field("code", "COU_CODE", kind=FieldKind.STRING, primary_key=True)
            .field("label", "COU_LABEL", kind=FieldKind.STRING, translatable=True)
            .reference()
            .build()
        )
        register_definition(definition)
    """

    def __init__(self, bean_type: type):
        if bean_type is None:
            raise InvalidArgumentError("Bean type is required", argument="bean_type")
        self._bean_type = bean_type
        self._table = ""
        self._fields: list[FieldDescriptor] = []
        self._reference = False
        self._logical_delete = False

    def table(self, name: str) -> DefinitionBuilder:
        self._table = name
        return self

    def field(
        self,
        name: str,
        column_name: str | None = None,
        *,
        kind: FieldKind = FieldKind.OTHER,
        primary_key: bool = False,
        read_only: bool = False,
        translatable: bool = False,
    ) -> DefinitionBuilder:
        if not name:
            raise InvalidArgumentError("Field name is required", argument="name")
        self._fields.append(FieldDescriptor(
            name=name,
            column=column_name if column_name is not None else name.upper(),
            kind=kind,
            primary_key=primary_key,
            read_only=read_only,
            translatable=translatable,
        ))
        return self

    def unmapped(self, name: str, kind: FieldKind = FieldKind.OTHER) -> DefinitionBuilder:
        self._fields.append(FieldDescriptor(name=name, column=None, kind=kind))
        return self

    def reference(self, flag: bool = True) -> DefinitionBuilder:
        self._reference = flag
        return self

    def logical_delete(self, flag: bool = True) -> DefinitionBuilder:
        self._logical_delete = flag
        return self

    def build(self) -> BeanDefinition:
        names = [f.name for f in self._fields]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ConfigurationError(
                f"Duplicate fields on {self._bean_type.__qualname__}: {sorted(duplicates)}",
                bean_type=self._bean_type.__qualname__,
            )
        return BeanDefinition(
            bean_type=self._bean_type,
            table=self._table,
            fields=tuple(self._fields),
            is_reference=self._reference,
            logical_delete=self._logical_delete,
        )


def definition_from_dataclass(cls: type) -> BeanDefinition:
    """Build the definition of a dataclass from its fields and @bean options."""
    if not dataclasses.is_dataclass(cls):
        raise ConfigurationError(
            f"{cls.__module__}.{cls.__qualname__} is neither a dataclass nor registered. Check type persistence.",
            bean_type=cls.__qualname__,
        )

    try:
        hints = typing.get_type_hints(cls)
    except NameError:
        # Unresolvable forward reference: fall back to raw annotations
        hints = {}

    options: BeanOptions = getattr(cls, "__bean_options__", None) or BeanOptions()
    builder = DefinitionBuilder(cls).table(options.table or "")
    builder.reference(options.reference).logical_delete(options.logical_delete)

    for f in dataclasses.fields(cls):
        info: ColumnInfo | None = f.metadata.get(COLUMN_METADATA_KEY)
        kind = infer_kind(hints.get(f.name, f.type))
        if info is None:
            builder.unmapped(f.name, kind)
            continue
        builder.field(
            f.name,
            info.name or f.name.upper(),
            kind=info.kind or kind,
            primary_key=info.primary_key,
            read_only=info.read_only,
            translatable=info.translatable,
        )
    return builder.build()


# =============================================================================
# Definition registry
# =============================================================================

_definitions: dict[type, BeanDefinition] = {}
_definitions_lock = threading.Lock()


def register_definition(definition: BeanDefinition) -> BeanDefinition:
    """Register (or replace) the definition of a type."""
    if definition is None:
        raise InvalidArgumentError("Definition is required", argument="definition")
    with _definitions_lock:
        _definitions[definition.bean_type] = definition
    return definition


def get_definition(bean_or_type: Any) -> BeanDefinition:
    """
    Get the definition of a bean type or instance.

    Dataclass definitions are built on first access and cached.

    Raises:
        InvalidArgumentError: bean_or_type is None.
        ConfigurationError: The type is neither registered nor a dataclass.
    """
    if bean_or_type is None:
        raise InvalidArgumentError("Bean or bean type is required", argument="bean_or_type")
    cls = bean_or_type if isinstance(bean_or_type, type) else type(bean_or_type)

    definition = _definitions.get(cls)
    if definition is None:
        with _definitions_lock:
            definition = _definitions.get(cls)
            if definition is None:
                definition = definition_from_dataclass(cls)
                _definitions[cls] = definition
    return definition


# =============================================================================
# Value wrappers and change tracking
# =============================================================================


@dataclass
class ExtendedValue:
    """A field value carrying extra metadata; only `value` is stored."""
    value: Any
    metadata: Any = None


def unwrap_value(value: Any) -> Any:
    """Return the stored part of a possibly wrapped value."""
    if isinstance(value, ExtendedValue):
        return value.value
    return value


class ChangeAction(Enum):
    """Pending change of a change-tracked bean."""
    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@runtime_checkable
class BeanState(Protocol):
    """Protocol for beans that track their pending change."""
    change_action: ChangeAction
