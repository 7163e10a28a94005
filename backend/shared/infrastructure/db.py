"""
Database engines for the broker datasources.

Each datasource name maps to one SQLAlchemy engine. Engines are created
lazily from settings (database_url for the default datasource, the
datasources mapping for the others) or registered explicitly.

Usage:
    from shared.infrastructure.db import get_engine, register_engine

    register_engine("reporting", create_engine("sqlite:///reporting.db"))
    with get_engine("reporting").connect() as conn:
        ...
"""

import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import ConfigurationError, InvalidArgumentError

logger = get_logger(__name__)

_engines: dict[str, Engine] = {}
_engines_lock = threading.Lock()


def _create_engine(name: str) -> Engine:
    url = settings.datasource_url(name)
    if url is None:
        raise ConfigurationError(
            f"Datasource '{name}' is not configured",
            datasource=name,
        )

    if url.startswith("sqlite"):
        # SQLite needs neither pool sizing nor a connect timeout
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.echo_sql,
        )
    else:
        engine = create_engine(
            url,
            pool_pre_ping=settings.pool_pre_ping,  # Verify connections before using
            pool_recycle=settings.pool_recycle,
            echo=settings.echo_sql,
        )

    logger.info("Engine created", datasource=name, dialect=engine.dialect.name)
    return engine


def get_engine(name: str | None = None) -> Engine:
    """
    Get or create the engine of a datasource.

    Uses a double-check pattern so that concurrent first calls create
    a single engine.

    Raises:
        ConfigurationError: The datasource has no connection URL.
    """
    name = name or settings.default_datasource
    engine = _engines.get(name)
    if engine is None:
        with _engines_lock:
            engine = _engines.get(name)
            if engine is None:
                engine = _create_engine(name)
                _engines[name] = engine
    return engine


def register_engine(name: str, engine: Engine) -> None:
    """Bind a datasource name to an existing engine (tests, embedded use)."""
    if not name:
        raise InvalidArgumentError("Datasource name is required", argument="name")
    if engine is None:
        raise InvalidArgumentError("Engine is required", argument="engine")
    with _engines_lock:
        _engines[name] = engine


def dispose_engines() -> None:
    """Dispose and forget every engine. Call at shutdown or between tests."""
    with _engines_lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()


def check_connection(name: str | None = None) -> bool:
    """
    Ping a datasource.

    Returns True when a trivial statement succeeds, False otherwise.
    """
    from sqlalchemy import text

    try:
        with get_engine(name).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Datasource check failed", datasource=name, error=str(e))
        return False


def safe_commit(connection: Connection) -> None:
    """
    Safe commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        connection.commit()
    except Exception:
        connection.rollback()
        raise
