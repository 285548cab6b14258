"""Organization service: lookups and provisioning of new organizations."""

import logging
import re
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.config import Settings, settings as app_settings
from memberhub.exceptions import (
    DuplicateResourceException,
    InvalidInputException,
    NotFoundException,
    TransactionFailure,
)
from memberhub.models import (
    DEFAULT_CATEGORIES,
    DEFAULT_ROLES,
    Category,
    CategoryType,
    Membership,
    Organization,
    OrganizationRole,
    User,
    get_default_preferences,
)
from memberhub.services.settings_manager import (
    SettingsManager,
    set_preference_for_all_organizations,
)

logger = logging.getLogger(__name__)

# Letters, digits and the punctuation .-_+@
SHORTNAME_PATTERN = re.compile(r"^[A-Za-z0-9.\-_+@]+$")
ORGANIZATION_SELECT_KEY = "system_organization_select"


class OrganizationService:
    """Service for looking up and creating organizations."""

    def __init__(self, db: AsyncSession, config: Settings = app_settings):
        self.db = db
        self.config = config

    async def get_organization(self, organization_id: uuid.UUID) -> Organization:
        """Get an organization by ID."""
        organization = await self.db.get(Organization, organization_id)
        if not organization:
            raise NotFoundException("Organization")
        return organization

    async def get_by_shortname(self, shortname: str) -> Organization | None:
        """Get an organization by its short name."""
        result = await self.db.execute(
            select(Organization).where(Organization.shortname == shortname)
        )
        return result.scalar_one_or_none()

    async def count(self) -> int:
        """Count all organizations of the installation."""
        result = await self.db.execute(select(func.count(Organization.id)))
        return result.scalar() or 0

    async def create(
        self,
        short_name: str,
        long_name: str,
        admin_email: str,
        system_language: str,
        created_by: User | None = None,
    ) -> uuid.UUID:
        """Create a new organization with default preferences and basic data.

        Args:
            short_name: Unique abbreviation of the organization
            long_name: Full name of the organization
            admin_email: Address stored as ``email_administrator``
            system_language: Language stored as ``system_language``
            created_by: User that becomes member of the new administrator role

        Returns:
            ID of the new organization

        Raises:
            InvalidInputException: If a name is missing or the short name has invalid characters
            DuplicateResourceException: If the short name is already taken
            TransactionFailure: If the database rejects the new data
        """
        short_name = (short_name or "").strip()
        long_name = (long_name or "").strip()

        if not short_name or not long_name:
            raise InvalidInputException("IncompleteName", "organizations.name_incomplete")

        if await self.get_by_shortname(short_name) is not None:
            raise DuplicateResourceException(
                "DuplicateShortName",
                "organizations.shortname_exists",
                params={"name": short_name},
            )

        if not SHORTNAME_PATTERN.fullmatch(short_name):
            raise InvalidInputException(
                "InvalidCharacters",
                "errors.field_invalid_char",
                params={"field": "organizations.fields.shortname"},
            )

        logger.info(f"Creating organization {short_name!r}")

        try:
            organization = Organization(
                shortname=short_name,
                longname=long_name,
                homepage=self.config.app_base_url,
            )
            self.db.add(organization)
            await self.db.flush()

            preferences = get_default_preferences()
            preferences["email_administrator"] = admin_email
            preferences["system_language"] = system_language

            settings_manager = await SettingsManager(self.db, organization.id).load()
            await settings_manager.set_many(preferences, update_existing=False)

            await self.create_basic_data(organization, created_by)

            # Show the organization selection at login as soon as there is a choice
            if await self.count() >= 2:
                await set_preference_for_all_organizations(self.db, ORGANIZATION_SELECT_KEY, "1")

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Creating organization {short_name!r} failed: {e}")
            raise TransactionFailure() from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Organization {short_name!r} created with id {organization.id}")
        return organization.id

    async def create_basic_data(
        self, organization: Organization, created_by: User | None = None
    ) -> None:
        """Create the categories and roles every organization starts with."""
        role_category: Category | None = None
        for sequence, (category_type, name, is_default) in enumerate(DEFAULT_CATEGORIES, start=1):
            category = Category(
                organization_id=organization.id,
                type=category_type.value,
                name=name,
                sequence=sequence,
                is_default=is_default,
            )
            self.db.add(category)
            if category_type is CategoryType.ROLE and is_default:
                role_category = category
        await self.db.flush()

        admin_role: OrganizationRole | None = None
        for name, description, is_administrator, is_default in DEFAULT_ROLES:
            role = OrganizationRole(
                organization_id=organization.id,
                category_id=role_category.id,
                name=name,
                description=description,
                is_administrator=is_administrator,
                is_default=is_default,
            )
            self.db.add(role)
            if is_administrator:
                admin_role = role
        await self.db.flush()

        if created_by is not None:
            self.db.add(Membership(role_id=admin_role.id, user_id=created_by.id))
            await self.db.flush()
