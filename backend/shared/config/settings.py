"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Broker settings with defaults for development."""

    # Database
    # Connection URL of the default datasource
    database_url: str = "mssql+pyodbc://sa:sa@localhost:1433/broker?driver=ODBC+Driver+18+for+SQL+Server"
    # Extra named datasources: BROKER_DATASOURCES='{"reporting": "sqlite:///reporting.db"}'
    datasources: dict[str, str] = {}
    default_datasource: str = "default"
    # Store dialect used when a datasource has no registered store type
    default_store: str = "sqlserver"  # "sqlserver" or "sqlite"
    echo_sql: bool = False  # Set to True for SQL logging through SQLAlchemy

    # Engine pool
    pool_pre_ping: bool = True
    pool_recycle: int = 1800  # Recycle connections after 30 minutes

    # Store behavior
    # Request limit + 1 rows so that an oversized result raises instead of being truncated
    throw_on_overflow: bool = True

    # Reference data translations
    default_language: str = "EN"

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = ""  # Empty = DEBUG when debug else INFO

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "BROKER_"
        case_sensitive = False

    def datasource_url(self, name: str) -> str | None:
        """
        Resolve the connection URL of a named datasource.

        The default datasource falls back to database_url.
        Returns None when the datasource is not configured.
        """
        if name in self.datasources:
            return self.datasources[name]
        if name == self.default_datasource:
            return self.database_url
        return None

    def validate_production(self) -> list[str]:
        """
        Validate settings for production deployments.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if self.echo_sql:
                errors.append("ECHO_SQL must be False in production")

            if self.database_url.startswith("sqlite"):
                errors.append("DATABASE_URL must not point to SQLite in production")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

# Direct access to commonly used settings
DATABASE_URL = settings.database_url
DEFAULT_DATASOURCE = settings.default_datasource
