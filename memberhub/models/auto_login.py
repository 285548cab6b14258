"""AutoLogin model: persisted tokens that restore a session without a password."""

import secrets
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberhub.models.base import OrganizationScopedModel


def generate_auto_login_token() -> str:
    """Generate a random auto-login token."""
    return secrets.token_urlsafe(48)


class AutoLogin(OrganizationScopedModel):
    """A "remember me" token of a user.

    All rows are deleted when an administrator disables auto-login.
    """

    __tablename__ = "auto_logins"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, default=generate_auto_login_token
    )
    session_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    user = relationship("User", back_populates="auto_logins")
