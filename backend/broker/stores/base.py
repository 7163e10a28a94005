"""
Store: SQL generation and execution for one bean type.

The store owns the bean definition, the field rules, and the algorithms
that turn beans and criteria into parameterized INSERT, UPDATE, SELECT and
DELETE statements. Dialect subclasses supply the parameter prefix, the
string concatenation operator, limit syntax and identity retrieval.

Every operation receives the transaction it runs in as first argument.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, MutableSequence
from typing import Any, Generic, TypeVar

from broker.command import CommandParameters, SqlCommand
from broker.criteria import Expression, FilterCriteria
from broker.metadata import BeanDefinition, FieldDescriptor, FieldKind, get_definition, unwrap_value
from broker.query import ColumnSelector, QueryParameter
from broker.rules import ActionRule, StoreRule, ValueRule
from broker.transaction import Transaction
from shared.config.constants import NO_LIMIT, SqlParameters
from shared.config.logging import store_logger as logger
from shared.config.settings import settings
from shared.utils.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    OptimisticLockingError,
    PersistenceConfigurationError,
    RowOverflowError,
    TooManyRowsAffectedError,
    UnsupportedOperationError,
    UnsupportedRuleError,
    ZeroRowsAffectedError,
)

BeanT = TypeVar("BeanT")


class Store(ABC, Generic[BeanT]):
    """
    Base store with dialect independent SQL generation.

    Args:
        bean_type: Mapped bean type.
        datasource: Datasource the store reads and writes.

    Raises:
        InvalidArgumentError: datasource is missing.
        PersistenceConfigurationError: The type has no table name or not
            exactly one primary key.
    """

    # Dialect constants
    variable_prefix: str = "@"
    concat_operator: str = " + "
    # Parameters bound by the dialect itself, never given to criteria
    reserved_parameters: frozenset[str] = frozenset({SqlParameters.TOP})

    def __init__(self, bean_type: type[BeanT], datasource: str):
        if not datasource:
            raise InvalidArgumentError("Datasource name is required", argument="datasource")
        if bean_type is None:
            raise InvalidArgumentError("Bean type is required", argument="bean_type")

        try:
            definition = get_definition(bean_type)
            definition.check_persistable()
        except ConfigurationError as e:
            raise PersistenceConfigurationError(f"{bean_type.__module__}.{bean_type.__qualname__}", e) from e

        self._bean_type = bean_type
        self._datasource = datasource
        self._definition: BeanDefinition = definition
        self._rules: dict[str, StoreRule] = {}
        self.throw_on_overflow = settings.throw_on_overflow

    # =========================================================================
    # Properties and rules
    # =========================================================================

    @property
    def bean_type(self) -> type[BeanT]:
        return self._bean_type

    @property
    def datasource(self) -> str:
        return self._datasource

    @property
    def definition(self) -> BeanDefinition:
        return self._definition

    @property
    def table(self) -> str:
        return self._definition.table

    @property
    def rules(self) -> dict[str, StoreRule]:
        return dict(self._rules)

    def add_rule(self, rule: StoreRule) -> None:
        """
        Attach a field rule.

        Raises:
            InvalidArgumentError: rule is None or its field already has a rule.
        """
        if rule is None:
            raise InvalidArgumentError("Rule is required", argument="rule")
        if rule.field_name in self._rules:
            raise InvalidArgumentError(
                f"A rule is already registered for field '{rule.field_name}'",
                argument="rule",
                table=self.table,
            )
        self._rules[rule.field_name] = rule

    def get_store_rule(self, field_name: str) -> StoreRule | None:
        return self._rules.get(field_name)

    # =========================================================================
    # Dialect hooks
    # =========================================================================

    def create_command(self, tx: Transaction | None, command_text: str = "") -> SqlCommand:
        """Create a command on the transaction's connection, unbound without one."""
        connection = tx.connection if tx is not None else None
        return SqlCommand(connection, command_text, prefix=self.variable_prefix)

    def adapt_value(self, descriptor: FieldDescriptor | None, value: Any) -> Any:
        """Convert a value before binding. Dialects override for driver limitations."""
        return value

    def column_expression(self, column_name: str) -> str:
        """Left-hand side of a select criteria predicate on column_name."""
        return column_name

    def select_head(self, max_rows: int, parameters: CommandParameters) -> str:
        """Text inserted right after "select " (row limiting prefixes)."""
        return ""

    def select_tail(self, max_rows: int, parameters: CommandParameters) -> str:
        """Text appended at the end of a select (row limiting suffixes)."""
        return ""

    def identity_clause(self) -> str:
        """Statement appended to an insert to read back a database assigned key."""
        return ""

    @abstractmethod
    def execute_insert(self, tx: Transaction, command: SqlCommand) -> Any:
        """Run an insert whose key is assigned by the database and return that key."""

    # =========================================================================
    # Reads
    # =========================================================================

    def load(self, tx: Transaction, destination: BeanT | None, pk: Any) -> BeanT:
        """
        Load the bean with the given primary key into destination.

        Raises:
            InvalidArgumentError: pk is None.
            ZeroRowsAffectedError / TooManyRowsAffectedError: Not exactly one row.
        """
        if pk is None:
            raise InvalidArgumentError("Primary key is required", argument="pk")
        criteria = FilterCriteria.by_column(self._definition.primary_key.column, Expression.EQUALS, pk)
        command = self.get_select_command(tx, criteria, NO_LIMIT, None)
        return self._read_single(command, destination, return_none_if_zero_row=False)

    def load_by_criteria(
        self,
        tx: Transaction,
        destination: BeanT | None,
        criteria: FilterCriteria,
        return_none_if_zero_row: bool = False,
    ) -> BeanT | None:
        """Load the single bean matching criteria into destination."""
        if criteria is None:
            raise InvalidArgumentError("Criteria is required", argument="criteria")
        command = self.get_select_command(tx, criteria, NO_LIMIT, None)
        return self._read_single(command, destination, return_none_if_zero_row)

    def load_all(
        self,
        tx: Transaction,
        collection: MutableSequence[BeanT] | None,
        query: QueryParameter | None = None,
    ) -> MutableSequence[BeanT]:
        return self.load_all_by_criteria(tx, collection, FilterCriteria(), query)

    def load_all_by_criteria(
        self,
        tx: Transaction,
        collection: MutableSequence[BeanT] | None,
        criteria: FilterCriteria,
        query: QueryParameter | None = None,
    ) -> MutableSequence[BeanT]:
        """
        Append every bean matching criteria to collection.

        With a limit and throw_on_overflow, limit + 1 rows are requested and
        getting more than the limit raises instead of truncating.

        Raises:
            InvalidArgumentError: criteria is None.
            RowOverflowError: More rows than the requested limit.
        """
        if criteria is None:
            raise InvalidArgumentError("Criteria is required", argument="criteria")
        if collection is None:
            collection = []

        requested = NO_LIMIT
        offset = 0
        if query is not None:
            offset = query.offset
            if query.row_cap != NO_LIMIT:
                requested = offset + query.row_cap

        max_rows = self.get_max_row_count(requested)
        command = self.get_select_command(tx, criteria, max_rows, query)
        rows = command.execute_reader()

        if requested != NO_LIMIT and self.throw_on_overflow and len(rows) > requested:
            raise RowOverflowError(requested, len(rows), table=self.table)

        for row in rows[offset:]:
            collection.append(self._definition.populate(self._definition.new_instance(), row))
        return collection

    def get_max_row_count(self, max_rows: int) -> int:
        """Rows to request for a caller limit, one more when overflow must be detected."""
        if max_rows == NO_LIMIT:
            return NO_LIMIT
        return max_rows + 1 if self.throw_on_overflow else max_rows

    def _read_single(
        self,
        command: SqlCommand,
        destination: BeanT | None,
        return_none_if_zero_row: bool,
    ) -> BeanT | None:
        rows = command.execute_reader()
        if not rows:
            if return_none_if_zero_row:
                return None
            raise ZeroRowsAffectedError("Zero row returned", table=self.table)
        if len(rows) > 1:
            raise TooManyRowsAffectedError("Too many rows returned", rows=len(rows), table=self.table)
        target = destination if destination is not None else self._definition.new_instance()
        return self._definition.populate(target, rows[0])

    # =========================================================================
    # Writes
    # =========================================================================

    def put(self, tx: Transaction, bean: BeanT, column_selector: ColumnSelector | None = None) -> Any:
        """
        Insert or update a bean and return its primary key.

        A bean with a key is updated. A bean without one is inserted; GUID
        keys are generated locally, other keys are read back from the
        database. The key is written back on the bean.

        Raises:
            InvalidArgumentError: bean is None.
            ZeroRowsAffectedError / TooManyRowsAffectedError: The statement
                did not affect exactly one row.
            OptimisticLockingError: A version checked update matched no row.
        """
        if bean is None:
            raise InvalidArgumentError("Bean is required", argument="bean")

        primary_key = self._definition.primary_key
        pk_value = unwrap_value(self._definition.get_value(bean, primary_key))

        if pk_value is not None:
            self._update(tx, bean, pk_value, column_selector)
            return pk_value

        if primary_key.kind == FieldKind.GUID:
            pk_value = uuid.uuid4()
            self._insert_with_key(tx, bean, pk_value, column_selector)
        else:
            pk_value = self._insert(tx, bean, column_selector)

        self._definition.set_value(bean, primary_key, pk_value)
        return pk_value

    def put_all(self, tx: Transaction, beans: Iterable[BeanT]) -> Iterable[BeanT]:
        if beans is None:
            raise InvalidArgumentError("Collection is required", argument="beans")
        for item in beans:
            self.put(tx, item)
        return beans

    def _update(self, tx: Transaction, bean: BeanT, pk_value: Any, column_selector: ColumnSelector | None) -> None:
        command = self.create_command(tx, self.build_update_query(bean, column_selector))
        self.add_update_parameters(bean, command.parameters, column_selector)
        logger.debug("Update", table=self.table, sql=command.command_text)

        rows = command.execute_non_query()
        if rows == 0:
            if any(name.startswith(SqlParameters.RULE_PREFIX) for name in command.parameters.names):
                raise OptimisticLockingError(table=self.table, pk=pk_value)
            raise ZeroRowsAffectedError("Zero record affected", table=self.table, pk=pk_value)
        if rows > 1:
            raise TooManyRowsAffectedError("Too many records affected", rows=rows, table=self.table, pk=pk_value)

    def _insert(self, tx: Transaction, bean: BeanT, column_selector: ColumnSelector | None) -> Any:
        command = self.create_command(tx, self.build_insert_query(bean, column_selector))
        self.add_insert_parameters(bean, command.parameters, column_selector)
        logger.debug("Insert", table=self.table, sql=command.command_text)

        identity = self.execute_insert(tx, command)
        if identity is None:
            raise ZeroRowsAffectedError("Zero record affected", table=self.table)
        return identity

    def _insert_with_key(
        self,
        tx: Transaction,
        bean: BeanT,
        pk_value: Any,
        column_selector: ColumnSelector | None,
    ) -> None:
        command = self.create_command(tx, self.build_insert_query(bean, column_selector, with_key=True))
        self.add_insert_parameters(bean, command.parameters, column_selector, pk_value=pk_value)
        logger.debug("Insert with key", table=self.table, sql=command.command_text)

        rows = command.execute_non_query()
        if rows == 0:
            raise ZeroRowsAffectedError("Zero record affected", table=self.table)
        if rows > 1:
            raise TooManyRowsAffectedError("Too many records affected", rows=rows, table=self.table)

    # =========================================================================
    # Deletes
    # =========================================================================

    def remove(self, tx: Transaction, pk: Any) -> None:
        """
        Delete the row with the given primary key.

        Raises:
            InvalidArgumentError: pk is None.
            ZeroRowsAffectedError / TooManyRowsAffectedError: Not exactly one row deleted.
        """
        if pk is None:
            raise InvalidArgumentError("Primary key is required", argument="pk")
        criteria = FilterCriteria.by_column(self._definition.primary_key.column, Expression.EQUALS, pk)
        command = self.create_command(tx)
        command.command_text = self.build_delete_query(criteria, command.parameters)
        logger.debug("Delete", table=self.table, sql=command.command_text)

        rows = command.execute_non_query()
        if rows == 0:
            raise ZeroRowsAffectedError("Zero row deleted", table=self.table, pk=pk)
        if rows > 1:
            raise TooManyRowsAffectedError("Too many rows deleted", rows=rows, table=self.table, pk=pk)

    def remove_all_by_criteria(self, tx: Transaction, criteria: FilterCriteria) -> int:
        """
        Delete every row matching criteria and return the number deleted.

        Raises:
            InvalidArgumentError: criteria is None.
            UnsupportedOperationError: criteria is empty. A bulk delete must
                never empty a whole table by accident.
        """
        if criteria is None:
            raise InvalidArgumentError("Criteria is required", argument="criteria")
        if criteria.is_empty():
            raise UnsupportedOperationError(
                "Bulk delete requires at least one criterion",
                table=self.table,
            )
        command = self.create_command(tx)
        command.command_text = self.build_delete_query(criteria, command.parameters)
        logger.debug("Delete by criteria", table=self.table, sql=command.command_text)
        return command.execute_non_query()

    def is_used(self, tx: Transaction, pk: Any) -> bool:
        raise UnsupportedOperationError("is_used is not supported by SQL stores", table=self.table)

    def are_used(self, tx: Transaction, pks: Iterable[Any]) -> bool:
        raise UnsupportedOperationError("are_used is not supported by SQL stores", table=self.table)

    # =========================================================================
    # SQL builders
    # =========================================================================

    def _insert_fields(self, column_selector: ColumnSelector | None) -> list[FieldDescriptor]:
        return [
            f for f in self._definition.fields
            if f.is_mapped and not f.primary_key
            and (column_selector is None or f.column in column_selector)
        ]

    def _update_fields(self, column_selector: ColumnSelector | None) -> list[FieldDescriptor]:
        return [
            f for f in self._definition.fields
            if f.is_mapped and not f.primary_key and not f.read_only
            and (column_selector is None or f.column in column_selector)
        ]

    def updatable_columns(self, column_selector: ColumnSelector | None = None) -> list[str]:
        """Columns an update may write, before rules are applied."""
        return [f.column for f in self._update_fields(column_selector)]

    def _insert_rule(self, bean: BeanT, descriptor: FieldDescriptor) -> ValueRule | None:
        rule = self._rules.get(descriptor.name)
        if rule is None:
            return None
        value_rule = rule.get_insert_value(unwrap_value(self._definition.get_value(bean, descriptor)))
        if value_rule.action not in (ActionRule.DO_NOTHING, ActionRule.UPDATE):
            raise UnsupportedRuleError(descriptor.name, value_rule.action, "insert", table=self.table)
        return value_rule

    def build_insert_query(
        self,
        bean: BeanT,
        column_selector: ColumnSelector | None = None,
        with_key: bool = False,
    ) -> str:
        """
        INSERT statement for a bean.

        Fields whose insert rule answers DO_NOTHING are left out. Without a
        pre-generated key the dialect identity clause is appended.
        """
        columns = []
        if with_key:
            columns.append(self._definition.primary_key.column)
        for descriptor in self._insert_fields(column_selector):
            value_rule = self._insert_rule(bean, descriptor)
            if value_rule is not None and value_rule.action == ActionRule.DO_NOTHING:
                continue
            columns.append(descriptor.column)

        if columns:
            values = ", ".join(self.variable_prefix + c for c in columns)
            sql = f"insert into {self.table}({', '.join(columns)}) values ({values})"
        else:
            sql = f"insert into {self.table} default values"

        if not with_key:
            sql += self.identity_clause()
        return sql

    def add_insert_parameters(
        self,
        bean: BeanT,
        parameters: CommandParameters,
        column_selector: ColumnSelector | None = None,
        pk_value: Any = None,
    ) -> None:
        """Bind the values of the columns produced by build_insert_query()."""
        if pk_value is not None:
            primary_key = self._definition.primary_key
            parameters.add(primary_key.column, self.adapt_value(primary_key, pk_value))

        for descriptor in self._insert_fields(column_selector):
            value = unwrap_value(self._definition.get_value(bean, descriptor))
            value_rule = self._insert_rule(bean, descriptor)
            if value_rule is not None:
                if value_rule.action == ActionRule.DO_NOTHING:
                    continue
                value = value_rule.value
            parameters.add(descriptor.column, self.adapt_value(descriptor, value), binary=descriptor.is_binary)

    def _update_rule(self, bean: BeanT, descriptor: FieldDescriptor) -> tuple[StoreRule | None, ValueRule | None]:
        rule = self._rules.get(descriptor.name)
        if rule is None:
            return None, None
        return rule, rule.get_update_value(unwrap_value(self._definition.get_value(bean, descriptor)))

    def _where_rule(self, bean: BeanT, descriptor: FieldDescriptor, rule: StoreRule) -> ValueRule:
        value_rule = rule.get_where_clause(unwrap_value(self._definition.get_value(bean, descriptor)))
        if value_rule.action not in (ActionRule.DO_NOTHING, ActionRule.CHECK):
            raise UnsupportedRuleError(descriptor.name, value_rule.action, "where clause", table=self.table)
        return value_rule

    def build_update_query(self, bean: BeanT, column_selector: ColumnSelector | None = None) -> str:
        """
        UPDATE statement for a bean.

        SET skips the key, read-only fields and fields whose update rule
        answers DO_NOTHING; INCREMENTAL_UPDATE renders `col = col + @col`.
        The WHERE clause starts with the key predicate, then adds
        `and col = @RU_col` for each rule answering CHECK.
        """
        primary_key = self._definition.primary_key
        prefix = self.variable_prefix
        assignments = []
        where = [f"{primary_key.column} = {prefix}{primary_key.column}"]

        for descriptor in self._update_fields(column_selector):
            column_name = descriptor.column
            rule, value_rule = self._update_rule(bean, descriptor)
            if value_rule is None or value_rule.action == ActionRule.UPDATE:
                assignments.append(f"{column_name} = {prefix}{column_name}")
            elif value_rule.action == ActionRule.DO_NOTHING:
                continue
            elif value_rule.action == ActionRule.INCREMENTAL_UPDATE:
                assignments.append(f"{column_name} = {column_name} + {prefix}{column_name}")
            else:
                raise UnsupportedRuleError(descriptor.name, value_rule.action, "update", table=self.table)

            if rule is not None and self._where_rule(bean, descriptor, rule).action == ActionRule.CHECK:
                where.append(f"{column_name} = {prefix}{SqlParameters.RULE_PREFIX}{column_name}")

        if not assignments:
            raise UnsupportedOperationError("No column to update", table=self.table)
        return f"update {self.table} set {', '.join(assignments)} where {' and '.join(where)}"

    def add_update_parameters(
        self,
        bean: BeanT,
        parameters: CommandParameters,
        column_selector: ColumnSelector | None = None,
    ) -> None:
        """Bind the key, the SET values and the CHECK values of build_update_query()."""
        primary_key = self._definition.primary_key
        pk_value = unwrap_value(self._definition.get_value(bean, primary_key))
        parameters.add(primary_key.column, self.adapt_value(primary_key, pk_value))

        for descriptor in self._update_fields(column_selector):
            value = unwrap_value(self._definition.get_value(bean, descriptor))
            rule, value_rule = self._update_rule(bean, descriptor)
            if value_rule is not None:
                if value_rule.action == ActionRule.DO_NOTHING:
                    continue
                value = value_rule.value
            parameters.add(descriptor.column, self.adapt_value(descriptor, value), binary=descriptor.is_binary)

            if rule is not None:
                where_rule = self._where_rule(bean, descriptor, rule)
                if where_rule.action == ActionRule.CHECK:
                    parameters.add(
                        SqlParameters.RULE_PREFIX + descriptor.column,
                        self.adapt_value(descriptor, where_rule.value),
                    )

    def select_columns(self) -> list[str]:
        """Columns read back by selects: every mapped, non binary field."""
        return [f.column for f in self._definition.fields if f.is_mapped and not f.is_binary]

    def build_select_query(
        self,
        criteria: FilterCriteria,
        max_rows: int,
        query: QueryParameter | None,
        parameters: CommandParameters,
    ) -> str:
        """SELECT statement for criteria, limited to max_rows (0 for all)."""
        parts = ["select ", self.select_head(max_rows, parameters)]
        parts.append(", ".join(self.select_columns()))
        parts.append(f" from {self.table}")
        parts.append(self.prepare_filter_criteria(criteria, parameters, self.column_expression))
        parts.append(self.build_order_by(query))
        parts.append(self.select_tail(max_rows, parameters))
        return "".join(parts)

    def sort_column(self, key: str) -> str:
        """Column of a sort key given either as a bean field name or as a column name."""
        descriptor = self._definition.get_field(key)
        if descriptor is not None and descriptor.is_mapped:
            return descriptor.column
        return key

    def build_order_by(self, query: QueryParameter | None) -> str:
        """ORDER BY clause of query, empty when it has no sort."""
        if query is None or not query.sorted_fields:
            return ""
        sorts = ", ".join(
            f"{self.sort_column(key)} {query.get_sort_order(key).value}" for key in query.sorted_fields
        )
        return f" order by {sorts}"

    def get_select_command(
        self,
        tx: Transaction,
        criteria: FilterCriteria,
        max_rows: int,
        query: QueryParameter | None,
    ) -> SqlCommand:
        command = self.create_command(tx)
        command.command_text = self.build_select_query(criteria, max_rows, query, command.parameters)
        logger.debug("Select", table=self.table, sql=command.command_text)
        return command

    def build_delete_query(self, criteria: FilterCriteria, parameters: CommandParameters) -> str:
        return f"delete from {self.table}" + self.prepare_filter_criteria(criteria, parameters)

    def prepare_filter_criteria(
        self,
        criteria: FilterCriteria,
        parameters: CommandParameters,
        column_expression: Callable[[str], str] | None = None,
    ) -> str:
        """
        WHERE clause of criteria, binding its values into parameters.

        A column used several times binds `col`, then `col2`, `col3`...
        skipping any name already bound or reserved by the dialect.
        column_expression renders the left-hand side of each predicate;
        plain column names are used when omitted.
        """
        clause = []
        for index, param in enumerate(criteria.parameters):
            clause.append(" where " if index == 0 else " and ")

            suffixes = ("",)
            if param.expression == Expression.BETWEEN:
                suffixes = (SqlParameters.BETWEEN_LOWER, SqlParameters.BETWEEN_UPPER)
            name = self.free_parameter_name(param.column_name, parameters, suffixes)

            clause.append(column_expression(param.column_name) if column_expression else param.column_name)
            clause.append(self.get_sql_string(param.expression, name))

            descriptor = self._definition.by_column(param.column_name)
            if param.expression == Expression.BETWEEN:
                lower, upper = param.value
                parameters.add(name + SqlParameters.BETWEEN_LOWER, self.adapt_value(descriptor, lower))
                parameters.add(name + SqlParameters.BETWEEN_UPPER, self.adapt_value(descriptor, upper))
            elif param.expression not in (Expression.IS_NULL, Expression.IS_NOT_NULL):
                parameters.add(name, self.adapt_value(descriptor, unwrap_value(param.value)))
        return "".join(clause)

    def free_parameter_name(
        self,
        column_name: str,
        parameters: CommandParameters,
        suffixes: tuple[str, ...] = ("",),
    ) -> str:
        """
        First of `col`, `col2`, `col3`... whose bound names are all free.

        Names compare case-insensitively against the bound parameters and
        reserved_parameters.
        """
        taken = {n.lower() for n in parameters.names} | {n.lower() for n in self.reserved_parameters}
        name = column_name
        count = 1
        while any((name + suffix).lower() in taken for suffix in suffixes):
            count += 1
            name = f"{column_name}{count}"
        return name

    def get_sql_string(self, expression: Expression, name: str) -> str:
        """SQL fragment following the column for one criteria expression."""
        p = self.variable_prefix + name
        c = self.concat_operator
        if expression == Expression.EQUALS:
            return f" = {p}"
        if expression == Expression.NOT_EQUALS:
            return f" != {p}"
        if expression == Expression.GREATER:
            return f" > {p}"
        if expression == Expression.GREATER_OR_EQUALS:
            return f" >= {p}"
        if expression == Expression.LOWER:
            return f" < {p}"
        if expression == Expression.LOWER_OR_EQUALS:
            return f" <= {p}"
        if expression == Expression.BETWEEN:
            return f" BETWEEN {p}{SqlParameters.BETWEEN_LOWER} AND {p}{SqlParameters.BETWEEN_UPPER}"
        if expression == Expression.CONTAINS:
            return f" LIKE '%'{c}{p}{c}'%'"
        if expression == Expression.STARTS_WITH:
            return f" LIKE {p}{c}'%'"
        if expression == Expression.NOT_STARTS_WITH:
            return f" NOT LIKE {p}{c}'%'"
        if expression == Expression.ENDS_WITH:
            return f" LIKE '%'{c}{p}"
        if expression == Expression.IS_NULL:
            return " IS NULL"
        if expression == Expression.IS_NOT_NULL:
            return " IS NOT NULL"
        raise UnsupportedOperationError(f"Unsupported filter expression: {expression}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(table={self.table!r}, datasource={self._datasource!r})>"
