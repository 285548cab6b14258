"""Baseline reference data every organization owns: categories, roles, memberships."""

import uuid
from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from memberhub.models.base import BaseModel, OrganizationScopedModel


class CategoryType(str, Enum):
    """What a category groups."""

    ROLE = "ROL"
    EVENT = "EVT"
    LINK = "LNK"
    ANNOUNCEMENT = "ANN"


class Category(OrganizationScopedModel):
    """Named group for roles, events, links or announcements."""

    __tablename__ = "categories"

    type: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class OrganizationRole(OrganizationScopedModel):
    """A role (group) of an organization that users can be members of."""

    __tablename__ = "roles"

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_administrator: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    memberships = relationship("Membership", back_populates="role", lazy="selectin")


class Membership(BaseModel):
    """Membership of a user in a role."""

    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("role_id", "user_id", name="uq_memberships_role_user"),
    )

    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    end_date: Mapped[date] = mapped_column(
        Date, nullable=False, default=lambda: date(9999, 12, 31)
    )
    is_leader: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    role = relationship("OrganizationRole", back_populates="memberships")


# (type, name, is_default) in display order
DEFAULT_CATEGORIES = [
    (CategoryType.ROLE, "Common", True),
    (CategoryType.ROLE, "Groups", False),
    (CategoryType.ROLE, "Courses", False),
    (CategoryType.ROLE, "Teams", False),
    (CategoryType.EVENT, "Common", True),
    (CategoryType.EVENT, "Training", False),
    (CategoryType.LINK, "Common", True),
    (CategoryType.ANNOUNCEMENT, "Common", True),
]

# (name, description, is_administrator, is_default); all in the default role category
DEFAULT_ROLES = [
    ("Administrator", "Group of system administrators", True, False),
    ("Association's board", "Administrative board of the association", False, False),
    ("Member", "All members of the organization", False, True),
]
