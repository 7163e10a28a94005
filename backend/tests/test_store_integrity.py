"""
Tests for store construction, rule registration and row count checks.

Tests verify:
- Non persistable types are rejected with PersistenceConfigurationError
- One rule per field
- Exactly-one-row checks of load, update, insert and delete
- Optimistic locking failures are told apart from missing rows
"""

import pytest

from broker.criteria import FilterCriteria
from broker.rules import ValueRule, VersionRule
from broker.stores.sql_server import SqlServerStore
from shared.utils.exceptions import (
    InvalidArgumentError,
    OptimisticLockingError,
    PersistenceConfigurationError,
    TooManyRowsAffectedError,
    UnsupportedOperationError,
    ZeroRowsAffectedError,
)

from sample_beans import Bean, FixedRule, NoKey, NoTable, Product, TwoKeys, full_bean


@pytest.fixture
def store(recording_store):
    return recording_store(Bean, "test")


class TestStoreConstruction:
    """Tests for Store.__init__ validation."""

    def test_missing_datasource(self):
        with pytest.raises(InvalidArgumentError):
            SqlServerStore(Bean, "")

    def test_missing_table(self):
        """A type without a table name is not persistable."""
        with pytest.raises(PersistenceConfigurationError) as exc_info:
            SqlServerStore(NoTable, "test")

        assert exc_info.value.message.startswith(f"Broker<{NoTable.__module__}.NoTable>")
        assert "has no table name" in exc_info.value.message

    def test_missing_primary_key(self):
        with pytest.raises(PersistenceConfigurationError) as exc_info:
            SqlServerStore(NoKey, "test")

        assert "has no primary key defined" in exc_info.value.message

    def test_two_primary_keys(self):
        with pytest.raises(PersistenceConfigurationError) as exc_info:
            SqlServerStore(TwoKeys, "test")

        assert "more than one primary key" in exc_info.value.message

    def test_not_a_dataclass(self):
        class Plain:
            pass

        with pytest.raises(PersistenceConfigurationError):
            SqlServerStore(Plain, "test")


class TestStoreRules:
    """Tests for Store.add_rule()."""

    def test_add_and_get_rule(self, store):
        rule = VersionRule("data_int")

        store.add_rule(rule)

        assert store.get_store_rule("data_int") is rule
        assert store.rules == {"data_int": rule}

    def test_one_rule_per_field(self, store):
        store.add_rule(VersionRule("data_int"))

        with pytest.raises(InvalidArgumentError):
            store.add_rule(FixedRule("data_int"))

    def test_null_rule(self, store):
        with pytest.raises(InvalidArgumentError):
            store.add_rule(None)

    def test_rule_without_field(self):
        with pytest.raises(InvalidArgumentError):
            VersionRule("")


class TestRowCounts:
    """Tests for the exactly-one-row checks."""

    def test_load_zero_rows(self, store, fake_tx):
        with pytest.raises(ZeroRowsAffectedError) as exc_info:
            store.load(fake_tx, None, 1)

        assert exc_info.value.message == "Zero row returned"

    def test_load_two_rows(self, store, recorder, fake_tx):
        recorder.rows = [{"BEA_PK": 1}, {"BEA_PK": 1}]

        with pytest.raises(TooManyRowsAffectedError):
            store.load(fake_tx, None, 1)

    def test_load_null_key(self, store, fake_tx):
        with pytest.raises(InvalidArgumentError):
            store.load(fake_tx, None, None)

    def test_find_zero_rows_returns_none(self, store, fake_tx):
        criteria = FilterCriteria().equals("BEA_STRING", "missing")

        assert store.load_by_criteria(fake_tx, None, criteria, return_none_if_zero_row=True) is None

    def test_update_zero_rows(self, store, recorder, fake_tx):
        recorder.rowcount = 0

        with pytest.raises(ZeroRowsAffectedError) as exc_info:
            store.put(fake_tx, full_bean(pk=1))

        assert type(exc_info.value) is ZeroRowsAffectedError
        assert exc_info.value.message == "Zero record affected"

    def test_update_zero_rows_with_check_rule(self, store, recorder, fake_tx):
        """Zero rows on a version checked update is a concurrency conflict."""
        recorder.rowcount = 0
        store.add_rule(FixedRule("data_int", where=ValueRule.check_equals(2)))

        with pytest.raises(OptimisticLockingError):
            store.put(fake_tx, full_bean(pk=1))

    def test_update_two_rows(self, store, recorder, fake_tx):
        recorder.rowcount = 2

        with pytest.raises(TooManyRowsAffectedError) as exc_info:
            store.put(fake_tx, full_bean(pk=1))

        assert exc_info.value.rows == 2

    def test_insert_without_identity(self, store, recorder, fake_tx):
        recorder.scalar = None

        with pytest.raises(ZeroRowsAffectedError):
            store.put(fake_tx, full_bean())

    def test_remove_zero_rows(self, store, recorder, fake_tx):
        recorder.rowcount = 0

        with pytest.raises(ZeroRowsAffectedError) as exc_info:
            store.remove(fake_tx, 1)

        assert exc_info.value.message == "Zero row deleted"

    def test_remove_two_rows(self, store, recorder, fake_tx):
        recorder.rowcount = 2

        with pytest.raises(TooManyRowsAffectedError) as exc_info:
            store.remove(fake_tx, 1)

        assert exc_info.value.message == "Too many rows deleted"

    def test_remove_one_row(self, store, recorder, fake_tx):
        store.remove(fake_tx, 1)

        assert len(recorder.commands) == 1

    def test_put_all(self, store, recorder, fake_tx):
        beans = [full_bean(pk=1), full_bean(pk=2)]

        assert store.put_all(fake_tx, beans) is beans
        assert len(recorder.commands) == 2

    def test_usage_checks_unsupported(self, store, fake_tx):
        with pytest.raises(UnsupportedOperationError):
            store.is_used(fake_tx, 1)
        with pytest.raises(UnsupportedOperationError):
            store.are_used(fake_tx, [1, 2])

    def test_null_bean(self, recording_store, fake_tx):
        store = recording_store(Product, "test")

        with pytest.raises(InvalidArgumentError):
            store.put(fake_tx, None)
