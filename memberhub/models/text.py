"""OrganizationText model for long per-organization texts (notification mails)."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from memberhub.models.base import OrganizationScopedModel

# Form keys with this prefix are stored as organization texts
SYSTEM_MAIL_PREFIX = "SYSMAIL_"


class OrganizationText(OrganizationScopedModel):
    """Text blob keyed by (organization, name), e.g. ``SYSMAIL_REGISTRATION_CONFIRMATION``."""

    __tablename__ = "texts"
    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_texts_org_name"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")


# Notification texts shown in the system notifications form
SYSTEM_MAIL_TEXTS = (
    "SYSMAIL_REGISTRATION_CONFIRMATION",
    "SYSMAIL_REGISTRATION_NEW",
    "SYSMAIL_REGISTRATION_APPROVED",
    "SYSMAIL_REGISTRATION_REFUSED",
    "SYSMAIL_LOGIN_INFORMATION",
    "SYSMAIL_PASSWORD_RESET",
)
