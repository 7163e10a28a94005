"""
SQL Server store for translated reference data.

Translatable columns are read from the translation table in the active
language, falling back to the value stored on the row itself:

    select tab.COU_CODE, isnull(reflabel.TDR_VALEUR, tab.COU_LABEL) as COU_LABEL
    from COUNTRY tab
    left join TRADUCTION_REFERENCE reflabel on reflabel.TDR_TABLE = 'app.Country_.label'
        and reflabel.TDR_CODE = cast(tab.COU_CODE as varchar(50)) and reflabel.LAN_CODE = @lang

Writes are inherited unchanged: translations are written by ReferenceBroker.
The SQLite variant only differs by its null coalescing function.
"""

from __future__ import annotations

from broker.command import CommandParameters
from broker.criteria import FilterCriteria
from broker.metadata import BeanDefinition, FieldDescriptor
from broker.query import QueryParameter
from broker.stores.base import BeanT
from broker.stores.sql_server import SqlServerStore
from broker.stores.sqlite import SqliteStore
from shared.config.constants import SqlParameters, TranslationTable
from shared.infrastructure.context import get_current_language

# Parameter holding the active language code
LANGUAGE_PARAMETER = "lang"
TABLE_ALIAS = "tab"


def translation_table_key(definition: BeanDefinition, descriptor: FieldDescriptor) -> str:
    """Value of TDR_TABLE for the translations of one field."""
    return f"{definition.qualified_name}_.{descriptor.name}"


class ReferenceStoreMixin:
    """
    Select generation reading translatable columns in the active language.

    Mixed into a Store subclass; relies on its definition and dialect hooks.
    """

    # Function returning its first non-null argument
    null_function: str = "isnull"
    reserved_parameters = frozenset({SqlParameters.TOP, LANGUAGE_PARAMETER})

    def _join_alias(self, descriptor: FieldDescriptor) -> str:
        return f"ref{descriptor.name}"

    def _translated(self, descriptor: FieldDescriptor) -> str:
        return (
            f"{self.null_function}({self._join_alias(descriptor)}.{TranslationTable.VALUE}, "
            f"{TABLE_ALIAS}.{descriptor.column})"
        )

    def column_expression(self, column_name: str) -> str:
        if not self.definition.translatable_fields:
            return column_name
        descriptor = self.definition.by_column(column_name)
        if descriptor is not None and descriptor.translatable:
            return self._translated(descriptor)
        return f"{TABLE_ALIAS}.{column_name}"

    def build_select_query(
        self,
        criteria: FilterCriteria,
        max_rows: int,
        query: QueryParameter | None,
        parameters: CommandParameters,
    ) -> str:
        translatable = self.definition.translatable_fields
        if not translatable:
            return super().build_select_query(criteria, max_rows, query, parameters)

        columns = []
        for descriptor in self.definition.mapped_fields:
            if descriptor.is_binary:
                continue
            if descriptor.translatable:
                columns.append(f"{self._translated(descriptor)} as {descriptor.column}")
            else:
                columns.append(f"{TABLE_ALIAS}.{descriptor.column}")

        primary_key = self.definition.primary_key
        key_as_code = f"cast({TABLE_ALIAS}.{primary_key.column} as {TranslationTable.CODE_TYPE})"
        prefix = self.variable_prefix
        parts = ["select ", self.select_head(max_rows, parameters), ", ".join(columns)]
        parts.append(f" from {self.table} {TABLE_ALIAS}")
        for descriptor in translatable:
            alias = self._join_alias(descriptor)
            parts.append(
                f" left join {TranslationTable.NAME} {alias}"
                f" on {alias}.{TranslationTable.TABLE} = '{translation_table_key(self.definition, descriptor)}'"
                f" and {alias}.{TranslationTable.CODE} = {key_as_code}"
                f" and {alias}.{TranslationTable.LANGUAGE} = {prefix}{LANGUAGE_PARAMETER}"
            )
        parameters.add(LANGUAGE_PARAMETER, get_current_language())

        parts.append(self.prepare_filter_criteria(criteria, parameters, self.column_expression))
        parts.append(self.build_order_by(query))
        parts.append(self.select_tail(max_rows, parameters))
        return "".join(parts)


class ReferenceSqlServerStore(ReferenceStoreMixin, SqlServerStore[BeanT]):
    """SqlServerStore reading translatable columns in the active language."""

    null_function = "isnull"


class ReferenceSqliteStore(ReferenceStoreMixin, SqliteStore[BeanT]):
    """SqliteStore reading translatable columns in the active language."""

    null_function = "ifnull"
