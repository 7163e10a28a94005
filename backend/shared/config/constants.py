"""
Centralized constants for the persistence broker.
Avoids magic strings for audit field names, SQL parameter names and
the translation table layout.

Usage:
    from shared.config.constants import AuditFields, NO_LIMIT

    if broker.store.get_store_rule(AuditFields.CREATION_DATE):
        ...
"""

from typing import Final


# =============================================================================
# Row limits
# =============================================================================

# A max row count of zero means "no limit"
NO_LIMIT: Final[int] = 0


# =============================================================================
# Audit / lifecycle field names
# =============================================================================


class AuditFields:
    """Attribute names picked up by the default store rules."""

    CREATION_DATE: Final[str] = "creation_date"
    MODIFICATION_DATE: Final[str] = "modification_date"
    USER_ID_CREATION: Final[str] = "user_id_creation"
    USER_ID_MODIFICATION: Final[str] = "user_id_modification"
    VERSION: Final[str] = "version"

    # Boolean flag used by logical delete
    IS_ACTIF: Final[str] = "is_actif"

    ALL: Final[list[str]] = [CREATION_DATE, MODIFICATION_DATE, USER_ID_CREATION, USER_ID_MODIFICATION]


# =============================================================================
# Generated SQL parameter names
# =============================================================================


class SqlParameters:
    """Parameter names and suffixes used by the store SQL builders."""

    TOP: Final[str] = "top"
    # Prefix of the where-clause parameters added by CHECK rules
    RULE_PREFIX: Final[str] = "RU_"
    # Suffixes of the two BETWEEN bounds
    BETWEEN_LOWER: Final[str] = "T1"
    BETWEEN_UPPER: Final[str] = "T2"


# =============================================================================
# Reference data translation table
# =============================================================================


class TranslationTable:
    """Layout of the table holding reference data translations."""

    NAME: Final[str] = "TRADUCTION_REFERENCE"
    TABLE: Final[str] = "TDR_TABLE"
    CODE: Final[str] = "TDR_CODE"
    # Keys are stored as text; row keys are cast to it in joins
    CODE_TYPE: Final[str] = "varchar(50)"
    VALUE: Final[str] = "TDR_VALEUR"
    LANGUAGE: Final[str] = "LAN_CODE"


class StoreDialects:
    """Names accepted by the default_store setting."""

    SQL_SERVER: Final[str] = "sqlserver"
    SQLITE: Final[str] = "sqlite"

    ALL: Final[list[str]] = [SQL_SERVER, SQLITE]
