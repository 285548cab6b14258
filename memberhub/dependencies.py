"""Request-scoped dependencies shared by the web routes."""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from markupsafe import Markup
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.config import settings
from memberhub.database import get_db
from memberhub.exceptions import NotAuthorizedException, NotFoundException
from memberhub.models import Organization, User
from memberhub.services.auth_service import get_auth_service
from memberhub.services.i18n_service import I18nService, get_i18n_service
from memberhub.services.organization_service import OrganizationService
from memberhub.services.settings_manager import SettingsManager
from memberhub.templates_config import templates
from memberhub.utils.org_context import (
    get_current_language,
    get_current_user_id_or_none,
    get_organization_id_or_none,
    set_current_language,
)

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Everything a request handler needs about the current request.

    Passed explicitly to services instead of reaching for globals.
    """

    request: Request
    db: AsyncSession
    organization: Organization
    user: User
    settings: SettingsManager
    i18n: I18nService
    is_administrator: bool

    @property
    def language(self) -> str:
        """Language of the current response."""
        return get_current_language() or settings.default_language

    def t(self, key: str, **kwargs) -> str:
        """Translate a key into the language of the current response."""
        return self.i18n.t(key, self.language, **kwargs)

    def t_markup(self, key: str, **kwargs) -> Markup:
        """Translate a key for html output, escaping the interpolated values."""
        return self.i18n.t_markup(key, self.language, **kwargs)


def get_templates():
    """Dependency returning the shared Jinja2 templates."""
    return templates


async def get_request_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Load the current user, organization and preferences.

    Raises:
        NotAuthorizedException: If the request is not authenticated
    """
    user_id = get_current_user_id_or_none()
    organization_id = get_organization_id_or_none()
    if not user_id or not organization_id:
        raise NotAuthorizedException("Authentication required")

    auth_service = get_auth_service()
    try:
        user = await auth_service.get_current_user(db, user_id)
        organization = await OrganizationService(db).get_organization(organization_id)
    except NotFoundException:
        logger.warning(f"Token of user {user_id} refers to a missing user or organization")
        raise NotAuthorizedException("Authentication required") from None

    settings_manager = await SettingsManager(db, organization_id).load()
    is_administrator = await auth_service.is_administrator(db, user_id, organization_id)

    if get_current_language() is None:
        set_current_language(
            settings_manager.get_string("system_language") or settings.default_language
        )

    return RequestContext(
        request=request,
        db=db,
        organization=organization,
        user=user,
        settings=settings_manager,
        i18n=get_i18n_service(),
        is_administrator=is_administrator,
    )
