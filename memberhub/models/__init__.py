"""SQLAlchemy models for MemberHub."""

from memberhub.models.base import Base, BaseModel, OrganizationScopedModel, TimestampMixin
from memberhub.models.organization import ORGANIZATION_FIELD_PREFIX, Organization
from memberhub.models.preference import Preference, get_default_preferences
from memberhub.models.text import SYSTEM_MAIL_PREFIX, SYSTEM_MAIL_TEXTS, OrganizationText
from memberhub.models.user import User
from memberhub.models.auto_login import AutoLogin, generate_auto_login_token
from memberhub.models.reference import (
    DEFAULT_CATEGORIES,
    DEFAULT_ROLES,
    Category,
    CategoryType,
    Membership,
    OrganizationRole,
)

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "OrganizationScopedModel",
    "TimestampMixin",
    # Organization
    "Organization",
    "ORGANIZATION_FIELD_PREFIX",
    # Preferences
    "Preference",
    "get_default_preferences",
    # Texts
    "OrganizationText",
    "SYSTEM_MAIL_PREFIX",
    "SYSTEM_MAIL_TEXTS",
    # User
    "User",
    # Auto login
    "AutoLogin",
    "generate_auto_login_token",
    # Reference data
    "Category",
    "CategoryType",
    "OrganizationRole",
    "Membership",
    "DEFAULT_CATEGORIES",
    "DEFAULT_ROLES",
]
