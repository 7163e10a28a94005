"""
Tests for ReferenceBroker and the translation table collaborators.

Tests verify:
- Saving in the default language writes the row and its label translation
- Saving in another language keeps the row label and only adds a translation
- Reads return labels in the active language, falling back to the row
- Deleting removes the translations with the row
"""

from unittest.mock import MagicMock

import pytest

from broker.brokers.reference import ReferenceBroker, ResourceLoader, ResourceWriter
from broker.query import ColumnSelector
from broker.stores.reference import ReferenceSqliteStore
from broker.translations import ContextResourceLoader, TranslationTableWriter
from shared.infrastructure.context import language_context
from shared.utils.exceptions import InvalidArgumentError

from sample_beans import Country


@pytest.fixture
def broker(sqlite_registry, english):
    return ReferenceBroker(
        Country,
        "test",
        ContextResourceLoader(),
        TranslationTableWriter("test"),
        sqlite_registry,
    )


def translations(fetch):
    return fetch("select LAN_CODE, TDR_VALEUR from TRADUCTION_REFERENCE order by LAN_CODE")


class TestReferenceBrokerSetup:
    """Tests for ReferenceBroker construction."""

    def test_uses_translated_store(self, broker):
        assert isinstance(broker.store, ReferenceSqliteStore)

    def test_collaborators_required(self, sqlite_registry):
        with pytest.raises(InvalidArgumentError):
            ReferenceBroker(Country, "test", None, TranslationTableWriter("test"), sqlite_registry)
        with pytest.raises(InvalidArgumentError):
            ReferenceBroker(Country, "test", ContextResourceLoader(), None, sqlite_registry)

    def test_default_collaborators_match_protocols(self):
        assert isinstance(ContextResourceLoader(), ResourceLoader)
        assert isinstance(TranslationTableWriter("test"), ResourceWriter)


class TestReferenceBrokerSave:
    """Tests for ReferenceBroker.save() against SQLite."""

    def test_insert_in_default_language(self, broker, fetch):
        country = Country(label="Germany", iso="DE")

        pk = broker.save(country)

        assert country.id == pk
        assert fetch("select COU_LABEL, COU_ISO from COUNTRY") == [("Germany", "DE")]
        assert translations(fetch) == [("EN", "Germany")]

    def test_other_language_keeps_row_label(self, broker, fetch):
        """A German label is stored as a translation; the row keeps the English one."""
        country = Country(label="Germany", iso="DE")
        broker.save(country)

        with language_context("DE"):
            country.label = "Deutschland"
            country.iso = "DD"
            broker.save(country)

        assert fetch("select COU_LABEL, COU_ISO from COUNTRY") == [("Germany", "DD")]
        assert translations(fetch) == [("DE", "Deutschland"), ("EN", "Germany")]

    def test_default_language_updates_row(self, broker, fetch):
        country = Country(label="Germany", iso="DE")
        broker.save(country)

        country.label = "Federal Germany"
        broker.save(country)

        assert fetch("select COU_LABEL from COUNTRY") == [("Federal Germany",)]
        assert translations(fetch) == [("EN", "Federal Germany")]

    def test_reads_in_active_language(self, broker):
        country = Country(label="Germany", iso="DE")
        broker.save(country)
        with language_context("DE"):
            country.label = "Deutschland"
            broker.save(country)

        with language_context("DE"):
            assert broker.get(country.id).label == "Deutschland"
            assert [c.label for c in broker.get_all_by_criteria(Country(label="Deutschland"))] == ["Deutschland"]
        assert broker.get(country.id).label == "Germany"

    def test_missing_translation_falls_back_to_row(self, broker):
        country = Country(label="Germany", iso="DE")
        broker.save(country)

        with language_context("FR"):
            assert broker.get(country.id).label == "Germany"

    def test_save_all(self, broker, fetch):
        broker.save_all([Country(label="Spain", iso="ES"), Country(label="Italy", iso="IT")])

        assert fetch("select COU_LABEL from COUNTRY order by COU_ID") == [("Spain",), ("Italy",)]

    def test_delete_removes_translations(self, broker, fetch):
        country = Country(label="Germany", iso="DE")
        broker.save(country)
        with language_context("DE"):
            country.label = "Deutschland"
            broker.save(country)

        broker.delete(country.id)

        assert fetch("select count(*) from COUNTRY") == [(0,)]
        assert translations(fetch) == []


class TestReferenceBrokerCollaborators:
    """Tests for the calls made to the resource loader and writer."""

    def test_only_label_changed_in_other_language(self, sqlite_registry, fake_tx):
        """With nothing but translatable columns selected, only the translation is written."""
        loader = MagicMock()
        loader.load_default_language_code.return_value = "EN"
        loader.load_current_language_code.return_value = "DE"
        writer = MagicMock()
        broker = ReferenceBroker(Country, "test", loader, writer, sqlite_registry)
        country = Country(id=5, label="Deutschland", iso="DE")

        pk = broker.save(country, ColumnSelector(["COU_LABEL"]), tx=fake_tx)

        assert pk == 5
        writer.save_translation.assert_called_once_with(Country, country, "DE", tx=fake_tx)
        fake_tx.connection.execute.assert_not_called()

    def test_delete_calls_writer_first(self, sqlite_registry, fake_tx):
        writer = MagicMock()
        writer.delete_translations.side_effect = RuntimeError("translation store down")
        broker = ReferenceBroker(Country, "test", MagicMock(), writer, sqlite_registry)

        with pytest.raises(RuntimeError):
            broker.delete(5, tx=fake_tx)

        fake_tx.connection.execute.assert_not_called()
        assert fake_tx.rollback_only
