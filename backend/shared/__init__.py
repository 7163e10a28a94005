"""
Shared module for the ambient concerns of the broker.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Audit field names, SQL parameter names, translation table

- shared.infrastructure: Database and execution context
  - db.py: SQLAlchemy engines per datasource, safe_commit()
  - context.py: Current user and language

- shared.utils: Utilities
  - exceptions.py: Persistence exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.config.constants import AuditFields, NO_LIMIT
    from shared.infrastructure.db import get_engine, register_engine
    from shared.infrastructure.context import user_context
    from shared.utils.exceptions import ZeroRowsAffectedError
"""

# Import from the canonical paths documented above.
