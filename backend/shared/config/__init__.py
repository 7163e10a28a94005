"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, DATABASE_URL, DEFAULT_DATASOURCE
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    NO_LIMIT,
    AuditFields,
    SqlParameters,
    TranslationTable,
    StoreDialects,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    "DEFAULT_DATASOURCE",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "NO_LIMIT",
    "AuditFields",
    "SqlParameters",
    "TranslationTable",
    "StoreDialects",
]
