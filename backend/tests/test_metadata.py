"""
Tests for bean metadata, criteria and query shaping.

Tests verify:
- Dataclass definitions: column mapping, kinds, order, unmapped fields
- DefinitionBuilder and registered definitions
- Row population and driver value coercion
- FilterCriteria building, from_bean and validation
- QueryParameter and ColumnSelector
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

import pytest

from broker.criteria import Expression, FilterCriteria
from broker.metadata import (
    DefinitionBuilder,
    ExtendedValue,
    FieldKind,
    column,
    get_definition,
    infer_kind,
    register_definition,
    unwrap_value,
)
from broker.query import ColumnSelector, QueryParameter, SortOrder
from shared.utils.exceptions import ConfigurationError, InvalidArgumentError, UnsupportedOperationError

from sample_beans import Bean, Country, Product


class TestBeanDefinition:
    """Tests for definitions built from dataclasses."""

    def test_columns_in_declaration_order(self):
        definition = get_definition(Bean)

        assert definition.table == "BEAN"
        assert definition.primary_key.column == "BEA_PK"
        assert [f.column for f in definition.fields][:3] == ["BEA_PK", "BEA_LONG", "BEA_SHORT"]

    def test_kinds_inferred_from_annotations(self):
        definition = get_definition(Bean)

        assert definition.get_field("data_guid").kind == FieldKind.GUID
        assert definition.get_field("data_decimal").kind == FieldKind.DECIMAL
        assert definition.get_field("data_bytes").is_binary
        assert definition.get_field("data_bool").kind == FieldKind.BOOLEAN
        assert definition.get_field("data_datetime").kind == FieldKind.DATETIME

    def test_unmapped_field(self):
        """Fields declared without column() exist on the bean but are not stored."""
        definition = get_definition(Product)
        selected = definition.get_field("selected")

        assert selected is not None
        assert not selected.is_mapped
        assert selected not in definition.mapped_fields

    def test_flags(self):
        product = get_definition(Product)
        country = get_definition(Country)

        assert product.get_field("creation_date").read_only
        assert country.is_reference
        assert [f.name for f in country.translatable_fields] == ["label"]

    def test_definition_from_instance_is_cached(self):
        assert get_definition(Bean()) is get_definition(Bean)

    def test_by_column_is_case_insensitive(self):
        assert get_definition(Bean).by_column("bea_string").name == "data_string"

    def test_default_column_name(self):
        @dataclass
        class Tag:
            code: str | None = column(primary_key=True)

        assert get_definition(Tag).primary_key.column == "CODE"

    def test_none_type(self):
        with pytest.raises(InvalidArgumentError):
            get_definition(None)

    @pytest.mark.parametrize("annotation,kind", [
        (int | None, FieldKind.INTEGER),
        (str, FieldKind.STRING),
        (uuid.UUID | None, FieldKind.GUID),
        (int | str, FieldKind.OTHER),
        (list[int], FieldKind.OTHER),
    ])
    def test_infer_kind(self, annotation, kind):
        assert infer_kind(annotation) == kind


class TestPopulate:
    """Tests for BeanDefinition.populate()."""

    def test_coerces_sqlite_values(self):
        definition = get_definition(Bean)
        row = {
            "BEA_PK": 1,
            "BEA_GUID": "12345678-1234-5678-1234-567812345678",
            "BEA_BOOL": 0,
            "BEA_DATETIME": "2024-01-31T12:00:00",
            "BEA_DECIMAL": 5.5,
        }

        bean = definition.populate(Bean(), row)

        assert bean.data_guid == uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert bean.data_bool is False
        assert bean.data_datetime == datetime(2024, 1, 31, 12, 0)
        assert bean.data_decimal == Decimal("5.5")

    def test_ignores_unknown_columns(self):
        bean = get_definition(Bean).populate(Bean(), {"OTHER": 1, "BEA_INT": 2})

        assert bean.data_int == 2


class TestDefinitionBuilder:
    """Tests for explicit definitions."""

    def test_build_and_register(self):
        class Currency:
            def __init__(self):
                self.code = None
                self.label = None

        definition = register_definition(
            DefinitionBuilder(Currency)
            .table("CURRENCY")
            .field("code", "CUR_CODE", kind=FieldKind.STRING, primary_key=True)
            .field("label", "CUR_LABEL", kind=FieldKind.STRING, translatable=True)
            .unmapped("cached")
            .reference()
            .build()
        )

        assert get_definition(Currency) is definition
        assert definition.is_reference
        assert [f.column for f in definition.mapped_fields] == ["CUR_CODE", "CUR_LABEL"]
        definition.check_persistable()

    def test_duplicate_field(self):
        builder = DefinitionBuilder(object).field("a").field("a")

        with pytest.raises(ConfigurationError):
            builder.build()


class TestExtendedValue:
    def test_unwrap(self):
        assert unwrap_value(ExtendedValue(3, metadata="unit")) == 3
        assert unwrap_value(3) == 3


class Cols(Enum):
    BEA_INT = "BEA_INT"


class TestFilterCriteria:
    """Tests for FilterCriteria."""

    def test_from_bean_skips_empty_values(self):
        """None and empty strings are not criteria; unmapped fields never are."""
        criteria = FilterCriteria.from_bean(Product(label="", price=Decimal("2"), selected=True))

        assert [(p.column_name, p.expression, p.value) for p in criteria] == [
            ("PRO_PRICE", Expression.EQUALS, Decimal("2")),
        ]

    def test_from_bean_with_expressions(self):
        criteria = FilterCriteria.from_bean(Bean(data_string="te"), {"BEA_STRING": Expression.STARTS_WITH})

        assert criteria.parameters[0].expression == Expression.STARTS_WITH

    def test_from_bean_unwraps_values(self):
        criteria = FilterCriteria.from_bean(Bean(data_int=ExtendedValue(4)))

        assert criteria.parameters[0].value == 4

    def test_from_none(self):
        with pytest.raises(InvalidArgumentError):
            FilterCriteria.from_bean(None)

    def test_value_required(self):
        with pytest.raises(InvalidArgumentError):
            FilterCriteria().equals("BEA_INT", None)

    def test_column_required(self):
        with pytest.raises(InvalidArgumentError):
            FilterCriteria().equals("", 1)

    def test_between_needs_two_bounds(self):
        with pytest.raises(UnsupportedOperationError):
            FilterCriteria().add_criteria("BEA_INT", Expression.BETWEEN, [1, 2, 3])

    def test_pattern_required(self):
        with pytest.raises(InvalidArgumentError):
            FilterCriteria().starts_with("BEA_STRING", "")

    def test_enum_column(self):
        criteria = FilterCriteria().equals(Cols.BEA_INT, 1)

        assert criteria.parameters[0].column_name == "BEA_INT"

    def test_and_criteria_returns_new_instance(self):
        left = FilterCriteria().equals("A", 1)
        right = FilterCriteria().equals("B", 2)

        combined = left & right

        assert [p.column_name for p in combined] == ["A", "B"]
        assert len(left) == 1

    def test_empty(self):
        assert FilterCriteria().is_empty()


class TestQuery:
    """Tests for QueryParameter and ColumnSelector."""

    def test_sort_condition(self):
        query = QueryParameter("PRO_LABEL", SortOrder.DESC).add_sort("PRO_ID")

        assert query.sort_condition == "PRO_LABEL desc, PRO_ID asc"
        assert query.is_sort_by("PRO_ID")
        assert query.get_sort_order("PRO_LABEL") == SortOrder.DESC

    def test_negative_limit(self):
        with pytest.raises(InvalidArgumentError):
            QueryParameter(limit=-1)

    def test_disable_pagination(self):
        query = QueryParameter(limit=10, offset=20)

        query.disable_pagination()

        assert query.row_cap == 0
        assert query.offset == 0

    def test_selector_is_case_insensitive(self):
        selector = ColumnSelector(["pro_label", Cols.BEA_INT])

        assert "PRO_LABEL" in selector
        assert "bea_int" in selector

    def test_selector_merge(self):
        merged = ColumnSelector(["A"]).merge(ColumnSelector(["B"]))

        assert merged.columns == frozenset({"A", "B"})
        assert ColumnSelector(["A"]).merge(None).columns == frozenset({"A"})
