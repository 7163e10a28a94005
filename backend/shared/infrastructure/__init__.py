"""
Infrastructure module: Database engines and execution context.

Provides:
- Datasource engines (db.py)
- Current user and language context (context.py)
"""

from shared.infrastructure.db import (
    get_engine,
    register_engine,
    dispose_engines,
    check_connection,
    safe_commit,
)
from shared.infrastructure.context import (
    get_current_user,
    set_current_user,
    reset_current_user,
    user_context,
    UserContextFilter,
    get_current_language,
    get_default_language,
    language_context,
)

__all__ = [
    # db
    "get_engine",
    "register_engine",
    "dispose_engines",
    "check_connection",
    "safe_commit",
    # context
    "get_current_user",
    "set_current_user",
    "reset_current_user",
    "user_context",
    "UserContextFilter",
    "get_current_language",
    "get_default_language",
    "language_context",
]
