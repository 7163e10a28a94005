"""
Property-based Testing with Hypothesis.

Invariants of the SQL builders that must hold for any input.
"""

from hypothesis import given, settings, strategies as st

from broker.criteria import FilterCriteria
from broker.query import ColumnSelector
from broker.stores.sql_server import SqlServerStore

from sample_beans import Bean, full_bean

COLUMNS = ["BEA_INT", "BEA_LONG", "BEA_STRING"]
UPDATABLE = [
    "BEA_LONG", "BEA_SHORT", "BEA_GUID", "BEA_FLOAT", "BEA_DOUBLE", "BEA_DECIMAL", "BEA_DATETIME",
    "BEA_CHARS", "BEA_CHAR", "BEA_BYTES", "BEA_BYTE", "BEA_BOOL", "BEA_INT", "BEA_STRING",
]

store = SqlServerStore(Bean, "test")


class TestCriteriaProperties:
    """Property-based tests for criteria binding."""

    @given(columns=st.lists(st.sampled_from(COLUMNS), min_size=1, max_size=12))
    @settings(max_examples=50)
    def test_every_predicate_binds_a_distinct_parameter(self, columns):
        """Property: n predicates bind n parameters, whatever the column repetitions."""
        criteria = FilterCriteria()
        for index, column in enumerate(columns):
            criteria.equals(column, index)
        command = store.create_command(None)

        clause = store.prepare_filter_criteria(criteria, command.parameters)

        assert len(command.parameters) == len(columns)
        assert clause.count(" and ") == len(columns) - 1
        assert sorted(command.parameters.as_dict().values()) == list(range(len(columns)))

    @given(values=st.lists(st.integers(), min_size=1, max_size=5))
    @settings(max_examples=30)
    def test_parameters_follow_predicate_order(self, values):
        """Property: col, col2, col3... receive the values in predicate order."""
        criteria = FilterCriteria()
        for value in values:
            criteria.equals("BEA_INT", value)
        command = store.create_command(None)

        store.prepare_filter_criteria(criteria, command.parameters)

        names = ["BEA_INT"] + [f"BEA_INT{i}" for i in range(2, len(values) + 1)]
        assert [command.parameters[name] for name in names] == values


class TestUpdateProperties:
    """Property-based tests for column restricted updates."""

    @given(selected=st.sets(st.sampled_from(UPDATABLE), min_size=1))
    @settings(max_examples=50)
    def test_update_writes_only_selected_columns(self, selected):
        """Property: SET holds exactly the selected columns, the key stays in WHERE."""
        bean = full_bean(pk=1)
        command = store.create_command(None)

        command.command_text = store.build_update_query(bean, ColumnSelector(selected))
        store.add_update_parameters(bean, command.parameters, ColumnSelector(selected))

        set_clause = command.command_text.split(" set ")[1].split(" where ")[0]
        assigned = {part.split(" = ")[0] for part in set_clause.split(", ")}
        assert assigned == selected
        assert set(command.parameters.names) == selected | {"BEA_PK"}
        assert command.command_text.endswith("where BEA_PK = @BEA_PK")
