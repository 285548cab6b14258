"""Service layer for business logic."""

from memberhub.services.auth_service import AuthService, get_auth_service
from memberhub.services.backup_service import DatabaseDumper
from memberhub.services.email_service import EmailService
from memberhub.services.folder_protection import FolderProtector
from memberhub.services.i18n_service import I18nService, get_i18n_service
from memberhub.services.organization_service import OrganizationService
from memberhub.services.preference_service import PreferenceForm, PreferenceUpdater
from memberhub.services.settings_manager import SettingsManager

__all__ = [
    "AuthService",
    "get_auth_service",
    "DatabaseDumper",
    "EmailService",
    "FolderProtector",
    "I18nService",
    "get_i18n_service",
    "OrganizationService",
    "PreferenceForm",
    "PreferenceUpdater",
    "SettingsManager",
]
