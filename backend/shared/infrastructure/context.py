"""
Execution context of the broker.

Holds the id of the user the current operation runs for and the language
reference data is read and written in. Audit rules (creation/modification
user) read the user when stamping beans, and log records carry it through
UserContextFilter.

Usage:
    from shared.infrastructure.context import user_context

    with user_context("jdoe"):
        broker.save(product)

    with language_context("DE"):
        country_broker.save(country)
"""

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

from shared.config.settings import settings

# Context variable for the current user (thread and task safe)
current_user_var: ContextVar[str | int | None] = ContextVar("current_user", default=None)
current_language_var: ContextVar[str | None] = ContextVar("current_language", default=None)


def get_current_user() -> str | int | None:
    """Get the id of the user the current operation runs for."""
    return current_user_var.get()


def set_current_user(user_id: str | int | None):
    """
    Set the current user id.

    Returns the token to pass to reset_current_user().
    """
    return current_user_var.set(user_id)


def reset_current_user(token) -> None:
    """Restore the user id that was active before set_current_user()."""
    current_user_var.reset(token)


@contextmanager
def user_context(user_id: str | int | None) -> Generator[None, None, None]:
    """
    Run a block of broker calls on behalf of a user.

    Usage:
        with user_context(42):
            broker.save(bean)
    """
    token = current_user_var.set(user_id)
    try:
        yield
    finally:
        current_user_var.reset(token)


class UserContextFilter:
    """
    Logging filter that adds user_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(UserContextFilter())
    """

    def filter(self, record) -> bool:
        user_id = current_user_var.get()
        record.user_id = str(user_id) if user_id is not None else "-"
        return True


def get_current_language() -> str:
    """Get the active language code, the configured default when none is set."""
    language = current_language_var.get()
    return (language or settings.default_language).upper()


def get_default_language() -> str:
    return settings.default_language.upper()


@contextmanager
def language_context(language: str | None) -> Generator[None, None, None]:
    """Read and write translated reference data in another language."""
    token = current_language_var.set(language)
    try:
        yield
    finally:
        current_language_var.reset(token)
