"""
Default translation collaborators of ReferenceBroker.

ContextResourceLoader reads the language codes from the execution context
and settings; TranslationTableWriter stores labels in the translation table.

Usage:
    registry.register_resource_services(
        ContextResourceLoader(),
        TranslationTableWriter("default"),
    )
"""

from __future__ import annotations

from typing import Any

from broker.command import SqlCommand
from broker.metadata import get_definition, unwrap_value
from broker.stores.reference import translation_table_key
from broker.transaction import Transaction, transaction_scope
from shared.config.constants import TranslationTable
from shared.config.logging import get_logger
from shared.infrastructure.context import get_current_language, get_default_language
from shared.utils.exceptions import InvalidArgumentError

logger = get_logger(__name__)

T = TranslationTable

DELETE_TRANSLATION = (
    f"delete from {T.NAME} where {T.TABLE} = @{T.TABLE} "
    f"and {T.CODE} = @{T.CODE} and {T.LANGUAGE} = @{T.LANGUAGE}"
)
DELETE_ALL_TRANSLATIONS = f"delete from {T.NAME} where {T.TABLE} = @{T.TABLE} and {T.CODE} = @{T.CODE}"
INSERT_TRANSLATION = (
    f"insert into {T.NAME}({T.TABLE}, {T.CODE}, {T.LANGUAGE}, {T.VALUE}) "
    f"values (@{T.TABLE}, @{T.CODE}, @{T.LANGUAGE}, @{T.VALUE})"
)


class ContextResourceLoader:
    """Language codes from language_context() and the default_language setting."""

    def load_default_language_code(self) -> str:
        return get_default_language()

    def load_current_language_code(self) -> str:
        return get_current_language()


class TranslationTableWriter:
    """
    Writes translated labels to the translation table.

    One row per (field, primary key, language); saving replaces the rows of
    the language being saved.
    """

    def __init__(self, datasource: str):
        if not datasource:
            raise InvalidArgumentError("Datasource name is required", argument="datasource")
        self._datasource = datasource

    def save_translation(
        self,
        bean_type: type,
        bean: Any,
        language_code: str,
        *,
        tx: Transaction | None = None,
    ) -> None:
        definition = get_definition(bean_type)
        fields = definition.translatable_fields
        if not fields:
            return
        code = str(unwrap_value(definition.get_value(bean, definition.primary_key)))

        with transaction_scope(self._datasource, tx) as t:
            for descriptor in fields:
                table_key = translation_table_key(definition, descriptor)

                delete = SqlCommand(t.connection, DELETE_TRANSLATION)
                delete.parameters.add(T.TABLE, table_key)
                delete.parameters.add(T.CODE, code)
                delete.parameters.add(T.LANGUAGE, language_code)
                delete.execute_non_query()

                value = unwrap_value(definition.get_value(bean, descriptor))
                if value is None:
                    continue
                insert = SqlCommand(t.connection, INSERT_TRANSLATION)
                insert.parameters.add(T.TABLE, table_key)
                insert.parameters.add(T.CODE, code)
                insert.parameters.add(T.LANGUAGE, language_code)
                insert.parameters.add(T.VALUE, value)
                insert.execute_non_query()

        logger.debug("Translations saved", bean_type=definition.qualified_name, code=code, language=language_code)

    def delete_translations(self, bean_type: type, primary_key: Any, *, tx: Transaction | None = None) -> None:
        definition = get_definition(bean_type)
        with transaction_scope(self._datasource, tx) as t:
            for descriptor in definition.translatable_fields:
                command = SqlCommand(t.connection, DELETE_ALL_TRANSLATIONS)
                command.parameters.add(T.TABLE, translation_table_key(definition, descriptor))
                command.parameters.add(T.CODE, str(primary_key))
                command.execute_non_query()
