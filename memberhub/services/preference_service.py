"""Validation and persistence of submitted organization preference forms."""

import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.config import Settings, settings as app_settings
from memberhub.exceptions import InvalidInputException, TransactionFailure
from memberhub.models import (
    ORGANIZATION_FIELD_PREFIX,
    SYSTEM_MAIL_PREFIX,
    SYSTEM_MAIL_TEXTS,
    AutoLogin,
    Organization,
    OrganizationText,
)
from memberhub.services.i18n_service import I18nService
from memberhub.services.settings_manager import SettingsManager, is_disabled
from memberhub.utils.org_context import get_current_language, set_current_language
from memberhub.utils.security import CSRF_FIELD_NAME

logger = logging.getLogger(__name__)

# Submitted keys that control the request and are never persisted
RESERVED_KEYS = frozenset({"save", CSRF_FIELD_NAME})

AUTO_LOGIN_KEY = "enable_auto_login"
TEMPLATE_EXTENSIONS = (".tpl", ".html", ".txt")

FOLDER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")
PREFERENCE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,49}$")
SYSTEM_MAIL_NAME_PATTERN = re.compile(r"^SYSMAIL_[A-Z0-9_]{1,92}$")


class PreferenceForm(str, Enum):
    """The preference forms an administrator can submit."""

    COMMON = "Common"
    SECURITY = "Security"
    REGIONAL_SETTINGS = "RegionalSettings"
    EMAIL_DISPATCH = "EmailDispatch"
    SYSTEM_NOTIFICATIONS = "SystemNotifications"
    MESSAGES = "Messages"
    PHOTOS = "Photos"


@dataclass(frozen=True)
class FormDefinition:
    """Fields shown by a preference form; checkboxes are submitted only when ticked."""

    fields: tuple[str, ...]
    checkboxes: tuple[str, ...] = ()


FORM_DEFINITIONS: dict[PreferenceForm, FormDefinition] = {
    PreferenceForm.COMMON: FormDefinition(
        fields=("org_longname", "org_homepage", "theme", "homepage_logout", "homepage_login"),
        checkboxes=(
            "enable_rss",
            "system_cookie_note",
            "system_search_similar",
            "system_browser_update_check",
            "system_js_editor_enabled",
            "system_show_create_edit",
        ),
    ),
    PreferenceForm.SECURITY: FormDefinition(
        fields=("logout_minutes", "password_min_strength", "system_hashing_cost"),
        checkboxes=(
            AUTO_LOGIN_KEY,
            "enable_password_recovery",
            "security_login_email_address_enabled",
        ),
    ),
    PreferenceForm.REGIONAL_SETTINGS: FormDefinition(
        fields=("system_language", "system_timezone", "system_date", "system_time", "system_currency"),
    ),
    PreferenceForm.EMAIL_DISPATCH: FormDefinition(
        fields=(
            "mail_send_method",
            "mail_sendmail_address",
            "mail_sendmail_name",
            "mail_character_encoding",
            "mail_smtp_host",
            "mail_smtp_port",
            "mail_smtp_secure",
            "mail_smtp_user",
            "mail_smtp_password",
            "mail_resend_api_key",
        ),
        checkboxes=("mail_recipients_with_roles", "mail_into_to", "mail_smtp_auth"),
    ),
    PreferenceForm.SYSTEM_NOTIFICATIONS: FormDefinition(
        fields=("system_notifications_role", *SYSTEM_MAIL_TEXTS),
        checkboxes=(
            "system_notifications_enabled",
            "system_notifications_new_entries",
            "system_notifications_profile_changes",
        ),
    ),
    PreferenceForm.MESSAGES: FormDefinition(
        fields=("mail_template", "mail_max_receiver"),
        checkboxes=(
            "mail_module_enabled",
            "mail_html_registered_users",
            "mail_save_attachments",
            "mail_delivery_confirmation",
        ),
    ),
    PreferenceForm.PHOTOS: FormDefinition(
        fields=("photo_ecard_scale", "photo_ecard_template", "photo_show_mode", "photo_thumbs_page"),
        checkboxes=(
            "photo_module_enabled",
            "photo_ecard_enabled",
            "photo_download_enabled",
            "photo_keep_original",
        ),
    ),
}


class Destination(str, Enum):
    """Backing store a submitted key is written to."""

    ORGANIZATION = "organization"
    TEXT = "text"
    PREFERENCE = "preference"


def route_key(key: str) -> Destination:
    """Pick the backing store for a submitted key from its prefix alone."""
    if key.startswith(ORGANIZATION_FIELD_PREFIX):
        return Destination.ORGANIZATION
    if key.startswith(SYSTEM_MAIL_PREFIX):
        return Destination.TEXT
    return Destination.PREFERENCE


def get_form(form_name: str | None) -> PreferenceForm:
    """Look up a form by name.

    Raises:
        InvalidInputException: If no form with that name exists
    """
    try:
        return PreferenceForm(form_name)
    except ValueError:
        raise InvalidInputException(
            "InvalidPageView",
            "errors.invalid_page_view",
            message=f"Unknown preferences form: {form_name!r}",
        ) from None


def is_valid_folder_name(name: str | None) -> bool:
    """Check that a value can safely be used as a single folder or file name."""
    return bool(name) and FOLDER_NAME_PATTERN.fullmatch(name) is not None and ".." not in name


def template_label(file_name: str) -> str:
    """Human-readable label of a template file (``event_invite.html`` -> ``Event invite``)."""
    label = file_name
    for extension in TEMPLATE_EXTENSIONS:
        label = label.replace(extension, "")
    label = re.sub(r"[_-]", " ", label)
    return label[:1].upper() + label[1:]


def resolve_template_file(folder: Path, label: str) -> str:
    """Find the template file in ``folder`` whose label matches ``label``.

    Returns:
        The file name, or an empty string if no file matches
    """
    if not folder.is_dir():
        logger.warning(f"Template folder {folder} does not exist")
        return ""

    file_name = ""
    for path in sorted(folder.iterdir()):
        if path.is_file() and template_label(path.name) == label:
            file_name = path.name
    return file_name


class PreferenceUpdater:
    """Applies a submitted preference form to the current organization.

    Validation runs first and raises before anything is written. The
    persistence pass then routes every submitted key to exactly one store:
    the organization record, an organization text or the preference table.
    """

    def __init__(
        self,
        db: AsyncSession,
        organization: Organization,
        settings_manager: SettingsManager,
        i18n: I18nService,
        config: Settings = app_settings,
    ):
        self.db = db
        self.organization = organization
        self.settings_manager = settings_manager
        self.i18n = i18n
        self.config = config

        self._validators: dict[PreferenceForm, Callable[[dict[str, str]], Awaitable[None]]] = {
            PreferenceForm.COMMON: self._validate_common,
            PreferenceForm.SECURITY: self._validate_security,
            PreferenceForm.REGIONAL_SETTINGS: self._validate_regional_settings,
            PreferenceForm.MESSAGES: self._validate_messages,
            PreferenceForm.PHOTOS: self._validate_photos,
        }

    async def apply(self, form_name: str, submitted: Mapping[str, str]) -> None:
        """Validate and persist a submitted preference form.

        Raises:
            InvalidInputException: If the form or one of its values is invalid
            TransactionFailure: If the database rejects the changes
        """
        form = get_form(form_name)
        values = self._normalize(form, submitted)

        self._check_keys(values)
        validator = self._validators.get(form)
        if validator is not None:
            await validator(values)

        try:
            await self._persist(values)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Saving preferences form {form.value} failed: {e}")
            raise TransactionFailure() from e

        logger.info(
            f"Saved preferences form {form.value} for organization {self.organization.shortname}"
        )

        await self.settings_manager.reload()
        self._refresh_language()

    def _normalize(self, form: PreferenceForm, submitted: Mapping[str, str]) -> dict[str, str]:
        """Copy the submission and fill in unticked checkboxes with ``"0"``."""
        values = {key: "" if value is None else str(value) for key, value in submitted.items()}
        for checkbox in FORM_DEFINITIONS[form].checkboxes:
            values.setdefault(checkbox, "0")
        return values

    def _check_keys(self, values: dict[str, str]) -> None:
        """Reject keys that no store can accept before anything is written."""
        for key in values:
            if key in RESERVED_KEYS:
                continue
            destination = route_key(key)
            if destination is Destination.ORGANIZATION:
                valid = key in Organization.FORM_FIELDS
            elif destination is Destination.TEXT:
                valid = SYSTEM_MAIL_NAME_PATTERN.fullmatch(key) is not None
            else:
                valid = PREFERENCE_NAME_PATTERN.fullmatch(key) is not None
            if not valid:
                raise InvalidInputException(
                    "InvalidField",
                    "errors.field_unknown",
                    params={"field": key},
                    message=f"Unknown preference field: {key}",
                )

    async def _validate_common(self, values: dict[str, str]) -> None:
        theme = values.get("theme")
        if not is_valid_folder_name(theme) or not (
            self.config.themes_dir / theme / "index.html"
        ).is_file():
            raise InvalidInputException("InvalidTheme", "preferences.invalid_theme")

    async def _validate_security(self, values: dict[str, str]) -> None:
        # Disabling auto login must reach the persistence pass so the saved logins get purged
        if is_disabled(values.get(AUTO_LOGIN_KEY)) and self.settings_manager.get_bool(AUTO_LOGIN_KEY):
            values[AUTO_LOGIN_KEY] = "0"

    async def _validate_regional_settings(self, values: dict[str, str]) -> None:
        language = values.get("system_language")
        if not is_valid_folder_name(language) or not self.i18n.has_language(language):
            raise InvalidInputException(
                "MissingRequiredField",
                "errors.field_empty",
                params={"field": "preferences.fields.system_language"},
            )

    async def _validate_messages(self, values: dict[str, str]) -> None:
        self._resolve_template(values, "mail_template", self.config.mail_templates_dir)

    async def _validate_photos(self, values: dict[str, str]) -> None:
        self._resolve_template(values, "photo_ecard_template", self.config.ecard_templates_dir)

    def _resolve_template(self, values: dict[str, str], key: str, folder: Path) -> None:
        """Replace a submitted template label with the real file name."""
        label = values.get(key)
        if label is None or label == self.settings_manager.get_string(key):
            return
        values[key] = resolve_template_file(folder, label)

    async def _persist(self, values: dict[str, str]) -> None:
        for key, value in values.items():
            if key in RESERVED_KEYS:
                continue

            destination = route_key(key)
            if destination is Destination.ORGANIZATION:
                self.organization.set_value(key, value)
            elif destination is Destination.TEXT:
                await self._write_text(key, value)
            elif (
                key == AUTO_LOGIN_KEY
                and is_disabled(value)
                and self.settings_manager.get_bool(AUTO_LOGIN_KEY)
            ):
                await self._purge_auto_logins()
                await self.settings_manager.set(key, value)
            else:
                await self.settings_manager.set(key, value)

    async def _write_text(self, name: str, text: str) -> None:
        result = await self.db.execute(
            select(OrganizationText).where(
                OrganizationText.organization_id == self.organization.id,
                OrganizationText.name == name,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = OrganizationText(organization_id=self.organization.id, name=name)
            self.db.add(row)
        row.text = text

    async def _purge_auto_logins(self) -> None:
        """Delete every saved auto login once the feature is switched off."""
        result = await self.db.execute(delete(AutoLogin))
        logger.info(f"Auto login disabled, deleted {result.rowcount} saved logins")

    def _refresh_language(self) -> None:
        language = self.settings_manager.get_string("system_language")
        if language and get_current_language() != language:
            set_current_language(language)
