"""
Pytest configuration and fixtures for broker tests.
"""

import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from broker.registry import BrokerRegistry
from broker.stores.sqlite import SqliteStore
from broker.transaction import Transaction
from shared.config.settings import settings
from shared.infrastructure.db import dispose_engines, register_engine

from sample_beans import CommandRecorder, recording_store_type


# Datasource name used by every test
TEST_DATASOURCE = "test"

SCHEMA = [
    """
    create table PRODUCT (
        PRO_ID integer primary key autoincrement,
        PRO_LABEL varchar(100),
        PRO_PRICE varchar(20),
        PRO_VERSION integer,
        PRO_CREATION_DATE varchar(30)
    )
    """,
    """
    create table DOCUMENT (
        DOC_ID varchar(36) primary key,
        DOC_TITLE varchar(100)
    )
    """,
    """
    create table CUSTOMER (
        CUS_ID integer primary key autoincrement,
        CUS_NAME varchar(100),
        CUS_IS_ACTIF integer
    )
    """,
    """
    create table COUNTRY (
        COU_ID integer primary key autoincrement,
        COU_LABEL varchar(100),
        COU_ISO varchar(2)
    )
    """,
    """
    create table TRADUCTION_REFERENCE (
        TDR_TABLE varchar(200),
        TDR_CODE varchar(50),
        LAN_CODE varchar(2),
        TDR_VALEUR varchar(200)
    )
    """,
]


@pytest.fixture(scope="function")
def sqlite_engine():
    """
    Fresh SQLite in-memory database registered as the test datasource.
    StaticPool keeps one connection so every transaction sees the same data.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))

    register_engine(TEST_DATASOURCE, engine)
    try:
        yield engine
    finally:
        dispose_engines()


@pytest.fixture
def fetch(sqlite_engine):
    """Run a raw query against the test database and return its rows."""
    def _fetch(sql: str, **params):
        with sqlite_engine.connect() as conn:
            return [tuple(row) for row in conn.execute(text(sql), params)]
    return _fetch


@pytest.fixture
def english(monkeypatch):
    """Pin the default language to EN."""
    monkeypatch.setattr(settings, "default_language", "EN")


@pytest.fixture
def recorder():
    """Canned command results, see sample_beans.CommandRecorder."""
    return CommandRecorder()


@pytest.fixture
def recording_store(recorder):
    """SQL Server store type whose commands are recorded, not executed."""
    return recording_store_type(recorder)


@pytest.fixture
def fake_tx():
    """Transaction on a mocked connection; broker calls joining it never open one."""
    return Transaction(MagicMock(), TEST_DATASOURCE)


@pytest.fixture
def registry(recording_store):
    """Registry whose test datasource uses the recording store."""
    reg = BrokerRegistry(default_datasource=TEST_DATASOURCE)
    reg.register_store(TEST_DATASOURCE, recording_store)
    yield reg
    reg.clear()


@pytest.fixture
def sqlite_registry(sqlite_engine):
    """Registry whose test datasource is the in-memory SQLite database."""
    reg = BrokerRegistry(default_datasource=TEST_DATASOURCE)
    reg.register_store(TEST_DATASOURCE, SqliteStore)
    yield reg
    reg.clear()
