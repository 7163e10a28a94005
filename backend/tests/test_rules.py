"""
Tests for the built-in store rules.

Tests verify:
- Audit rules stamp dates and the current user
- VersionRule inserts 1, increments and checks the read version
- ActivableRule inserts active rows and writes the flag on update
"""

from datetime import datetime

import pytest

from broker.rules import (
    ActionRule,
    ActivableRule,
    CreationDateRule,
    CreationUserRule,
    ModificationDateRule,
    ModificationUserRule,
    ValueRule,
    VersionRule,
    default_rules,
)
from shared.config.constants import AuditFields
from shared.infrastructure.context import user_context


class TestAuditRules:
    """Tests for the creation/modification rules."""

    def test_creation_date_set_on_insert_only(self):
        rule = CreationDateRule()

        inserted = rule.get_insert_value(None)

        assert inserted.action == ActionRule.UPDATE
        assert isinstance(inserted.value, datetime)
        assert rule.get_update_value(datetime(2000, 1, 1)).action == ActionRule.DO_NOTHING
        assert rule.get_where_clause(None).action == ActionRule.DO_NOTHING

    def test_modification_date_set_on_update(self):
        rule = ModificationDateRule()

        assert rule.get_update_value(None).action == ActionRule.UPDATE
        assert rule.get_insert_value(None).action == ActionRule.UPDATE

    def test_user_rules_read_context(self):
        with user_context("jdoe"):
            assert CreationUserRule().get_insert_value(None) == ValueRule("jdoe", ActionRule.UPDATE)
            assert ModificationUserRule().get_update_value(None) == ValueRule("jdoe", ActionRule.UPDATE)

        assert CreationUserRule().get_update_value("jdoe").action == ActionRule.DO_NOTHING

    def test_user_outside_context(self):
        assert ModificationUserRule().get_insert_value(None).value is None

    def test_default_rule_fields(self):
        assert [rule.field_name for rule in default_rules()] == AuditFields.ALL


class TestVersionRule:
    """Tests for optimistic locking."""

    def test_version_lifecycle(self):
        rule = VersionRule("version")

        assert rule.get_insert_value(None) == ValueRule.set_value(1)
        assert rule.get_update_value(3) == ValueRule.increment_by(1)
        assert rule.get_where_clause(3) == ValueRule.check_equals(3)

    def test_default_field(self):
        assert VersionRule().field_name == AuditFields.VERSION


class TestActivableRule:
    """Tests for the logical delete flag."""

    def test_insert_always_active(self):
        assert ActivableRule().get_insert_value(False) == ValueRule.set_value(True)

    @pytest.mark.parametrize("value,expected", [
        (False, ValueRule.set_value(False)),
        (True, ValueRule.set_value(True)),
        (None, ValueRule.no_op()),
    ])
    def test_update_writes_flag(self, value, expected):
        assert ActivableRule().get_update_value(value) == expected

    def test_repr(self):
        assert repr(ActivableRule("is_actif")) == "<ActivableRule(field_name='is_actif')>"
