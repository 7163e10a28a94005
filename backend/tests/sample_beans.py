"""
Bean types and fakes shared by the broker tests.

RecordingCommand replaces database execution with canned results so that
the exact SQL text and parameters of a store can be asserted without a
connection.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from broker.command import SqlCommand
from broker.metadata import ChangeAction, bean, column
from broker.rules import StoreRule, ValueRule
from broker.stores.sql_server import SqlServerStore


# =============================================================================
# Beans
# =============================================================================


@bean("BEAN")
@dataclass
class Bean:
    """One column per storage kind."""
    pk: int | None = column("BEA_PK", primary_key=True)
    data_long: int | None = column("BEA_LONG")
    data_short: int | None = column("BEA_SHORT")
    data_guid: uuid.UUID | None = column("BEA_GUID")
    data_float: float | None = column("BEA_FLOAT")
    data_double: float | None = column("BEA_DOUBLE")
    data_decimal: Decimal | None = column("BEA_DECIMAL")
    data_datetime: datetime | None = column("BEA_DATETIME")
    data_chars: str | None = column("BEA_CHARS")
    data_char: str | None = column("BEA_CHAR")
    data_bytes: bytes | None = column("BEA_BYTES")
    data_byte: int | None = column("BEA_BYTE")
    data_bool: bool | None = column("BEA_BOOL")
    data_int: int | None = column("BEA_INT")
    data_string: str | None = column("BEA_STRING")


def full_bean(pk: int | None = None) -> Bean:
    return Bean(
        pk=pk,
        data_long=1,
        data_short=2,
        data_guid=uuid.UUID("12345678-1234-5678-1234-567812345678"),
        data_float=3.0,
        data_double=4.0,
        data_decimal=Decimal("5.5"),
        data_datetime=datetime(2024, 1, 31, 12, 0),
        data_chars="chars",
        data_char="c",
        data_bytes=b"\x01\x02",
        data_byte=7,
        data_bool=True,
        data_int=8,
        data_string="test",
    )


@bean("PRODUCT")
@dataclass
class Product:
    id: int | None = column("PRO_ID", primary_key=True)
    label: str | None = column("PRO_LABEL")
    price: Decimal | None = column("PRO_PRICE")
    version: int | None = column("PRO_VERSION")
    creation_date: datetime | None = column("PRO_CREATION_DATE", read_only=True)
    selected: bool = False


@bean("DOCUMENT")
@dataclass
class Document:
    id: uuid.UUID | None = column("DOC_ID", primary_key=True)
    title: str | None = column("DOC_TITLE")


@bean("CUSTOMER", logical_delete=True)
@dataclass
class Customer:
    id: int | None = column("CUS_ID", primary_key=True)
    name: str | None = column("CUS_NAME")
    is_actif: bool | None = column("CUS_IS_ACTIF")


@bean("COUNTRY", reference=True)
@dataclass
class Country:
    id: int | None = column("COU_ID", primary_key=True)
    label: str | None = column("COU_LABEL", translatable=True)
    iso: str | None = column("COU_ISO")


@bean("ORDER_LINE")
@dataclass
class OrderLine:
    id: int | None = column("ORL_ID", primary_key=True)
    quantity: int | None = column("ORL_QUANTITY")
    change_action: ChangeAction = ChangeAction.NONE


@dataclass
class NoTable:
    id: int | None = column("NOT_ID", primary_key=True)


@bean("NO_KEY")
@dataclass
class NoKey:
    label: str | None = column("NOK_LABEL")


@bean("TWO_KEYS")
@dataclass
class TwoKeys:
    left: int | None = column("TWK_LEFT", primary_key=True)
    right: int | None = column("TWK_RIGHT", primary_key=True)


# =============================================================================
# Rules
# =============================================================================


class FixedRule(StoreRule):
    """
    Rule returning preset answers.

    Unset answers write the bean value on insert and update and add no
    where predicate.
    """

    def __init__(
        self,
        field_name: str,
        insert: ValueRule | None = None,
        update: ValueRule | None = None,
        where: ValueRule | None = None,
    ):
        super().__init__(field_name)
        self.insert = insert
        self.update = update
        self.where = where

    def get_insert_value(self, value: Any) -> ValueRule:
        return self.insert or ValueRule.set_value(value)

    def get_update_value(self, value: Any) -> ValueRule:
        return self.update or ValueRule.set_value(value)

    def get_where_clause(self, value: Any) -> ValueRule:
        return self.where or ValueRule.no_op()


# =============================================================================
# Command recording
# =============================================================================


@dataclass
class CommandRecorder:
    """Canned results handed out by RecordingCommand, and the commands created."""
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 1
    scalar: Any = None
    commands: list[SqlCommand] = field(default_factory=list)

    @property
    def last(self) -> SqlCommand:
        return self.commands[-1]

    @property
    def texts(self) -> list[str]:
        return [c.command_text for c in self.commands]


class RecordingCommand(SqlCommand):
    def __init__(self, recorder: CommandRecorder, command_text: str = "", prefix: str = "@"):
        super().__init__(None, command_text, prefix)
        self._recorder = recorder
        recorder.commands.append(self)

    def execute_reader(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._recorder.rows]

    def execute_non_query(self) -> int:
        return self._recorder.rowcount

    def execute_scalar(self) -> Any:
        return self._recorder.scalar

    def execute_batch_scalar(self) -> Any:
        return self._recorder.scalar


def recording_store_type(recorder: CommandRecorder, base: type = SqlServerStore) -> type:
    """Subclass of a store type whose commands are recorded instead of executed."""

    class RecordingStore(base):
        def create_command(self, tx, command_text=""):
            return RecordingCommand(recorder, command_text, prefix=self.variable_prefix)

    return RecordingStore
