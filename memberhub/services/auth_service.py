"""Authentication service: current user lookup and administrator checks."""

import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.exceptions import NotFoundException
from memberhub.models import Membership, OrganizationRole, User


class AuthService:
    """Service for handling authentication and authorization lookups."""

    async def get_current_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        """Get the current user by ID.

        Raises:
            NotFoundException: If user not found or inactive
        """
        result = await db.execute(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        user = result.scalar_one_or_none()

        if not user:
            raise NotFoundException("User")

        return user

    async def is_administrator(
        self, db: AsyncSession, user_id: uuid.UUID, organization_id: uuid.UUID
    ) -> bool:
        """Check whether the user currently belongs to an administrator role of the organization."""
        today = date.today()
        result = await db.execute(
            select(Membership.id)
            .join(OrganizationRole, Membership.role_id == OrganizationRole.id)
            .where(
                Membership.user_id == user_id,
                OrganizationRole.organization_id == organization_id,
                OrganizationRole.is_administrator.is_(True),
                Membership.start_date <= today,
                Membership.end_date >= today,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


# Singleton instance
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
