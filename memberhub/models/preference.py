"""Preference model: generic per-organization key-value settings."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.models.base import OrganizationScopedModel


class Preference(OrganizationScopedModel):
    """A single preference value of an organization.

    Values are always stored as strings; typed access happens in the
    settings manager.
    """

    __tablename__ = "preferences"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_preferences_org_name"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")


def get_default_preferences() -> dict[str, str]:
    """Get the preference set every new organization starts with."""
    return {
        # Common
        "theme": "simple",
        "homepage_logout": "/",
        "homepage_login": "/",
        "enable_rss": "1",
        "system_cookie_note": "1",
        "system_search_similar": "1",
        "system_browser_update_check": "0",
        "system_js_editor_enabled": "1",
        "system_show_create_edit": "1",
        # Security
        "enable_auto_login": "1",
        "logout_minutes": "20",
        "enable_password_recovery": "1",
        "password_min_strength": "1",
        "system_hashing_cost": "10",
        "security_login_email_address_enabled": "0",
        # Organization
        "email_administrator": "",
        "system_organization_select": "0",
        # Regional settings
        "system_language": "en",
        "system_timezone": "Europe/Berlin",
        "system_date": "d.m.Y",
        "system_time": "H:i",
        "system_currency": "EUR",
        # Email dispatch
        "mail_send_method": "smtp",
        "mail_sendmail_address": "",
        "mail_sendmail_name": "",
        "mail_recipients_with_roles": "1",
        "mail_into_to": "0",
        "mail_character_encoding": "utf-8",
        "mail_smtp_host": "",
        "mail_smtp_port": "587",
        "mail_smtp_auth": "1",
        "mail_smtp_secure": "tls",
        "mail_smtp_user": "",
        "mail_smtp_password": "",
        "mail_resend_api_key": "",
        # Messages
        "mail_module_enabled": "1",
        "mail_html_registered_users": "1",
        "mail_template": "default.html",
        "mail_max_receiver": "10",
        "mail_save_attachments": "1",
        "mail_delivery_confirmation": "0",
        # System notifications
        "system_notifications_enabled": "0",
        "system_notifications_new_entries": "0",
        "system_notifications_profile_changes": "0",
        "system_notifications_role": "",
        # Photos
        "photo_module_enabled": "1",
        "photo_ecard_enabled": "1",
        "photo_ecard_scale": "500",
        "photo_ecard_template": "postcard.tpl",
        "photo_show_mode": "1",
        "photo_thumbs_page": "16",
        "photo_download_enabled": "0",
        "photo_keep_original": "0",
    }
