"""Organization context management using contextvars.

This module provides context variables for tracking the current
organization, user and language throughout a request lifecycle.
"""

import contextvars
import uuid

from memberhub.exceptions import OrganizationContextError, UserContextError

# Context variables for request-scoped data
_organization_id: contextvars.ContextVar[uuid.UUID | None] = contextvars.ContextVar(
    "organization_id", default=None
)
_current_user_id: contextvars.ContextVar[uuid.UUID | None] = contextvars.ContextVar(
    "current_user_id", default=None
)
_current_language: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "current_language", default=None
)


# === Organization Context ===

def get_organization_id() -> uuid.UUID:
    """Get the current organization ID.

    Raises:
        OrganizationContextError: If organization context is not set
    """
    oid = _organization_id.get()
    if oid is None:
        raise OrganizationContextError("Organization context is not set")
    return oid


def get_organization_id_or_none() -> uuid.UUID | None:
    """Get the current organization ID or None if not set."""
    return _organization_id.get()


def set_organization_id(oid: uuid.UUID | None) -> None:
    """Set the current organization ID."""
    _organization_id.set(oid)


# === User Context ===

def get_current_user_id() -> uuid.UUID:
    """Get the current user ID.

    Raises:
        UserContextError: If user context is not set
    """
    uid = _current_user_id.get()
    if uid is None:
        raise UserContextError("User context is not set")
    return uid


def get_current_user_id_or_none() -> uuid.UUID | None:
    """Get the current user ID or None if not set."""
    return _current_user_id.get()


def set_current_user_id(uid: uuid.UUID | None) -> None:
    """Set the current user ID."""
    _current_user_id.set(uid)


# === Language Context ===

def get_current_language() -> str | None:
    """Get the language of the current response, or None if not chosen yet."""
    return _current_language.get()


def set_current_language(lang: str | None) -> None:
    """Switch the language for the remainder of the current response."""
    _current_language.set(lang)


# === Utility Functions ===

def clear_all_context() -> None:
    """Clear all context variables.

    Call this at the end of each request to prevent context leakage.
    """
    _organization_id.set(None)
    _current_user_id.set(None)
    _current_language.set(None)
