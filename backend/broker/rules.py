"""
Store rules.

A store rule is attached to one bean field and rewrites the field's value
when the store builds an INSERT, an UPDATE, or the WHERE clause of an
UPDATE. Each entry point returns a ValueRule: the value to bind and the
action telling the SQL builder what to do with it.

    DO_NOTHING          field left out of the statement
    UPDATE              field bound to the rule value
    INCREMENTAL_UPDATE  field set to `column + value` (UPDATE only)
    CHECK               extra WHERE predicate `column = value` (WHERE only)

Rules are stateless; one instance can be shared by every broker.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from shared.config.constants import AuditFields
from shared.infrastructure.context import get_current_user
from shared.utils.exceptions import InvalidArgumentError


class ActionRule(Enum):
    """What the SQL builder does with a rule value."""
    DO_NOTHING = "do_nothing"
    UPDATE = "update"
    INCREMENTAL_UPDATE = "incremental_update"
    CHECK = "check"


@dataclass(frozen=True)
class ValueRule:
    """Value returned by a store rule, with the action to apply."""
    value: Any
    action: ActionRule

    @classmethod
    def no_op(cls) -> ValueRule:
        return cls(None, ActionRule.DO_NOTHING)

    @classmethod
    def set_value(cls, value: Any) -> ValueRule:
        return cls(value, ActionRule.UPDATE)

    @classmethod
    def increment_by(cls, value: Any) -> ValueRule:
        return cls(value, ActionRule.INCREMENTAL_UPDATE)

    @classmethod
    def check_equals(cls, value: Any) -> ValueRule:
        return cls(value, ActionRule.CHECK)


class StoreRule(ABC):
    """
    Base class of field rules.

    Args:
        field_name: Attribute name of the bean field the rule applies to.

    Raises:
        InvalidArgumentError: field_name is None or empty.
    """

    def __init__(self, field_name: str):
        if not field_name:
            raise InvalidArgumentError("Field name is required", argument="field_name")
        self._field_name = field_name

    @property
    def field_name(self) -> str:
        return self._field_name

    @abstractmethod
    def get_insert_value(self, value: Any) -> ValueRule:
        """Value to insert, given the bean's current value."""

    @abstractmethod
    def get_update_value(self, value: Any) -> ValueRule:
        """Value to write on update, given the bean's current value."""

    @abstractmethod
    def get_where_clause(self, value: Any) -> ValueRule:
        """Extra predicate of the update WHERE clause, given the bean's current value."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(field_name={self._field_name!r})>"


# =============================================================================
# Audit rules
# =============================================================================


class CreationDateRule(StoreRule):
    """Stamps the creation date on insert; never rewritten afterwards."""

    def __init__(self, field_name: str = AuditFields.CREATION_DATE):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(datetime.now())

    def get_update_value(self, value: Any) -> ValueRule:
        return ValueRule.no_op()

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.no_op()


class ModificationDateRule(StoreRule):
    """Stamps the modification date on insert and on every update."""

    def __init__(self, field_name: str = AuditFields.MODIFICATION_DATE):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(datetime.now())

    def get_update_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(datetime.now())

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.no_op()


class CreationUserRule(StoreRule):
    """Stamps the current user id on insert."""

    def __init__(self, field_name: str = AuditFields.USER_ID_CREATION):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(get_current_user())

    def get_update_value(self, value: Any) -> ValueRule:
        return ValueRule.no_op()

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.no_op()


class ModificationUserRule(StoreRule):
    """Stamps the current user id on insert and on every update."""

    def __init__(self, field_name: str = AuditFields.USER_ID_MODIFICATION):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(get_current_user())

    def get_update_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(get_current_user())

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.no_op()


# =============================================================================
# Concurrency and lifecycle rules
# =============================================================================


class VersionRule(StoreRule):
    """
    Optimistic locking on a version column.

    Inserts 1, increments by 1 on every update, and only updates the row
    if its version still equals the one the caller read. A concurrent
    write therefore shows up as "zero rows affected".
    """

    def __init__(self, field_name: str = AuditFields.VERSION):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(1)

    def get_update_value(self, value: Any) -> ValueRule:
        return ValueRule.increment_by(1)

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.check_equals(value)


class ActivableRule(StoreRule):
    """
    Logical delete flag.

    New rows are always inserted active; updates write whatever the bean
    holds so that a logical delete can switch the flag off.
    """

    def __init__(self, field_name: str = AuditFields.IS_ACTIF):
        super().__init__(field_name)

    def get_insert_value(self, value: Any) -> ValueRule:
        return ValueRule.set_value(True)

    def get_update_value(self, value: Any) -> ValueRule:
        if value is None:
            return ValueRule.no_op()
        return ValueRule.set_value(value)

    def get_where_clause(self, value: Any) -> ValueRule:
        return ValueRule.no_op()


def default_rules() -> list[StoreRule]:
    """Audit rules every standard broker starts with."""
    return [
        CreationDateRule(AuditFields.CREATION_DATE),
        ModificationDateRule(AuditFields.MODIFICATION_DATE),
        CreationUserRule(AuditFields.USER_ID_CREATION),
        ModificationUserRule(AuditFields.USER_ID_MODIFICATION),
    ]
