"""Organization preferences web routes.

``/modules/preferences`` shows the overview page with one panel per
preference form. Every panel loads its form from
``/modules/preferences/function?mode=html_form&form=<name>`` and submits it
to ``mode=save``. The other modes create organizations, protect the data
folder, send a test mail and export a database backup.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from markupsafe import escape
from sqlalchemy import select

from memberhub.config import settings
from memberhub.dependencies import RequestContext, get_request_context, get_templates
from memberhub.exceptions import (
    InvalidInputException,
    MemberHubException,
    MessageRendered,
    NotAuthorizedException,
)
from memberhub.models import SYSTEM_MAIL_TEXTS, OrganizationRole, OrganizationText
from memberhub.services.backup_service import DatabaseDumper
from memberhub.services.email_service import EmailService
from memberhub.services.folder_protection import FolderProtector
from memberhub.services.organization_service import OrganizationService
from memberhub.services.preference_service import (
    FORM_DEFINITIONS,
    PreferenceForm,
    PreferenceUpdater,
    get_form,
    template_label,
)
from memberhub.utils.security import CSRF_FIELD_NAME, create_csrf_token, validate_csrf_token
from memberhub.web.message import MessagePresenter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/modules/preferences", tags=["preferences"])

PREFERENCES_URL = "/modules/preferences"


class PreferencesMode(str, Enum):
    SAVE = "save"
    HTML_FORM = "html_form"
    NEW_ORG_DIALOG = "new_org_dialog"
    NEW_ORG_CREATE = "new_org_create"
    HTACCESS = "htaccess"
    TEST_EMAIL = "test_email"
    BACKUP = "backup"


Submission = dict[str, str]
ModeHandler = Callable[[RequestContext, str | None, Submission], Awaitable[Response]]


def list_themes(themes_dir: Path | None = None) -> list[str]:
    """Names of all installed themes."""
    themes_dir = themes_dir or settings.themes_dir
    if not themes_dir.is_dir():
        return []
    return sorted(
        path.name for path in themes_dir.iterdir() if (path / "index.html").is_file()
    )


def list_template_labels(folder: Path) -> list[str]:
    """Labels of all template files of a folder, as offered in the select boxes."""
    if not folder.is_dir():
        return []
    return sorted({template_label(path.name) for path in folder.iterdir() if path.is_file()})


def available_languages(ctx: RequestContext) -> list[str]:
    return [lang for lang in settings.supported_languages_list if ctx.i18n.has_language(lang)]


async def read_submission(request: Request) -> Submission:
    """Read the submitted form fields; file uploads are ignored."""
    if request.method != "POST":
        return {}
    form_data = await request.form()
    return {key: value for key, value in form_data.items() if isinstance(value, str)}


# --- html_form renderers ---------------------------------------------------


async def _common_context(ctx: RequestContext) -> dict[str, Any]:
    return {"themes": list_themes()}


async def _regional_settings_context(ctx: RequestContext) -> dict[str, Any]:
    return {"languages": available_languages(ctx)}


async def _system_notifications_context(ctx: RequestContext) -> dict[str, Any]:
    result = await ctx.db.execute(
        select(OrganizationText).where(OrganizationText.organization_id == ctx.organization.id)
    )
    texts = {row.name: row.text or "" for row in result.scalars()}
    roles = await ctx.db.execute(
        select(OrganizationRole)
        .where(OrganizationRole.organization_id == ctx.organization.id)
        .order_by(OrganizationRole.name)
    )
    return {
        "texts": {name: texts.get(name, "") for name in SYSTEM_MAIL_TEXTS},
        "roles": list(roles.scalars()),
    }


async def _messages_context(ctx: RequestContext) -> dict[str, Any]:
    return {
        "mail_templates": list_template_labels(settings.mail_templates_dir),
        "selected_template": template_label(ctx.settings.get_string("mail_template")),
    }


async def _photos_context(ctx: RequestContext) -> dict[str, Any]:
    return {
        "ecard_templates": list_template_labels(settings.ecard_templates_dir),
        "selected_template": template_label(ctx.settings.get_string("photo_ecard_template")),
    }


async def _no_context(ctx: RequestContext) -> dict[str, Any]:
    return {}


FORM_RENDERERS: dict[PreferenceForm, tuple[str, Callable[[RequestContext], Awaitable[dict]]]] = {
    PreferenceForm.COMMON: ("preferences/forms/common.html", _common_context),
    PreferenceForm.SECURITY: ("preferences/forms/security.html", _no_context),
    PreferenceForm.REGIONAL_SETTINGS: (
        "preferences/forms/regional_settings.html",
        _regional_settings_context,
    ),
    PreferenceForm.EMAIL_DISPATCH: ("preferences/forms/email_dispatch.html", _no_context),
    PreferenceForm.SYSTEM_NOTIFICATIONS: (
        "preferences/forms/system_notifications.html",
        _system_notifications_context,
    ),
    PreferenceForm.MESSAGES: ("preferences/forms/messages.html", _messages_context),
    PreferenceForm.PHOTOS: ("preferences/forms/photos.html", _photos_context),
}


def _base_context(ctx: RequestContext) -> dict[str, Any]:
    return {
        "request": ctx.request,
        "organization": ctx.organization,
        "current_user": ctx.user,
        "preferences": ctx.settings.all(),
        "csrf_token": create_csrf_token(ctx.user.id),
        "csrf_field": CSRF_FIELD_NAME,
        "theme": ctx.settings.get_string("theme"),
        "lang": ctx.language,
    }


# --- mode handlers -----------------------------------------------------------


async def save_preferences(ctx: RequestContext, form: str | None, submitted: Submission) -> Response:
    """Validate and store a submitted preference form."""
    validate_csrf_token(submitted.get(CSRF_FIELD_NAME), ctx.user.id)

    updater = PreferenceUpdater(ctx.db, ctx.organization, ctx.settings, ctx.i18n)
    await updater.apply(form, submitted)

    return JSONResponse({"status": "success", "message": ctx.t("preferences.saved")})


async def render_form(ctx: RequestContext, form: str | None, submitted: Submission) -> Response:
    """Render the html of one preference form."""
    preference_form = get_form(form)
    template_name, build_context = FORM_RENDERERS[preference_form]

    context = _base_context(ctx)
    context.update(
        {
            "form": preference_form,
            "checkboxes": FORM_DEFINITIONS[preference_form].checkboxes,
            "action_url": f"{PREFERENCES_URL}/function?mode=save&form={preference_form.value}",
        }
    )
    context.update(await build_context(ctx))

    html = get_templates().get_template(template_name).render(context)
    return HTMLResponse(html)


async def new_organization_dialog(
    ctx: RequestContext, form: str | None, submitted: Submission
) -> Response:
    """Show the form to create a new organization."""
    params = ctx.request.query_params
    context = _base_context(ctx)
    context.update(
        {
            "short_name": params.get("short_name", ""),
            "long_name": params.get("long_name", ""),
            "admin_email": params.get("admin_email", ctx.settings.get_string("email_administrator")),
            "action_url": f"{PREFERENCES_URL}/function?mode={PreferencesMode.NEW_ORG_CREATE.value}",
            "hide_menu": True,
        }
    )
    return get_templates().TemplateResponse(ctx.request, "organizations/new_dialog.html", context)


async def create_organization(
    ctx: RequestContext, form: str | None, submitted: Submission
) -> Response:
    """Create a new organization and show the result."""
    validate_csrf_token(submitted.get(CSRF_FIELD_NAME), ctx.user.id)

    long_name = submitted.get("long_name", "").strip()
    service = OrganizationService(ctx.db)
    await service.create(
        short_name=submitted.get("short_name", ""),
        long_name=long_name,
        admin_email=submitted.get("admin_email", "").strip(),
        system_language=ctx.settings.get_string("system_language") or ctx.language,
        created_by=ctx.user,
    )

    presenter = MessagePresenter.for_context(ctx)
    presenter.set_forward_url(PREFERENCES_URL)
    await presenter.render(
        ctx.t_markup("organizations.created", name=long_name),
        headline=ctx.t("organizations.new_headline"),
    )


async def protect_data_folder(
    ctx: RequestContext, form: str | None, submitted: Submission
) -> Response:
    """Write the htaccess file of the data folder and report the protection state."""
    protected = FolderProtector(settings.data_dir).protect()
    return PlainTextResponse(ctx.t("common.on") if protected else ctx.t("common.off"))


async def send_test_email(ctx: RequestContext, form: str | None, submitted: Submission) -> Response:
    """Send a test mail with the current email dispatch preferences."""
    organization = ctx.organization
    email_service = EmailService(ctx.settings)
    await email_service.send_test_email(
        to=ctx.user.email,
        recipient_name=ctx.user.full_name,
        subject=ctx.t("email.test_subject", organization=organization.longname),
        content=ctx.t(
            "email.test_content",
            organization=organization.longname,
            homepage=organization.homepage or settings.app_base_url,
        ),
        sender_role=ctx.t("preferences.administrator"),
        organization_name=organization.longname,
    )

    presenter = MessagePresenter.for_context(ctx)
    presenter.set_forward_url(f"{PREFERENCES_URL}?show_option=email_dispatch")
    await presenter.render(ctx.t_markup("email.test_sent", email=ctx.user.email))


async def export_backup(ctx: RequestContext, form: str | None, submitted: Submission) -> Response:
    """Stream a compressed dump of the database."""
    dumper = DatabaseDumper()
    await dumper.create()
    logger.info(f"Database backup exported by user {ctx.user.id}")
    return dumper.export()


MODE_HANDLERS: dict[PreferencesMode, ModeHandler] = {
    PreferencesMode.SAVE: save_preferences,
    PreferencesMode.HTML_FORM: render_form,
    PreferencesMode.NEW_ORG_DIALOG: new_organization_dialog,
    PreferencesMode.NEW_ORG_CREATE: create_organization,
    PreferencesMode.HTACCESS: protect_data_folder,
    PreferencesMode.TEST_EMAIL: send_test_email,
    PreferencesMode.BACKUP: export_backup,
}


def get_mode(mode: str | None) -> PreferencesMode:
    try:
        return PreferencesMode(mode)
    except ValueError:
        raise InvalidInputException(
            "InvalidPageView",
            "errors.invalid_page_view",
            message=f"Unknown preferences mode: {mode!r}",
        ) from None


async def show_error(ctx: RequestContext, mode: str | None, message: str, status_code: int) -> Response:
    """Format an error for the active mode."""
    if mode in (PreferencesMode.SAVE.value, PreferencesMode.HTML_FORM.value):
        # These errors are returned, not raised, so the session must not be committed
        await ctx.db.rollback()
        if mode == PreferencesMode.SAVE.value:
            return JSONResponse({"status": "error", "message": message}, status_code=status_code)
        return PlainTextResponse(message, status_code=status_code)

    # The presenter rolls the session back itself
    presenter = MessagePresenter.for_context(ctx)
    await presenter.render(escape(message))


# --- routes --------------------------------------------------------------------


@router.get("", response_class=HTMLResponse)
async def preferences_index(
    show_option: str | None = None,
    ctx: RequestContext = Depends(get_request_context),
):
    """Preferences overview with one panel per form."""
    if not ctx.is_administrator:
        raise NotAuthorizedException()

    context = _base_context(ctx)
    context.update(
        {
            "forms": list(PreferenceForm),
            "show_option": show_option or "",
            "function_url": f"{PREFERENCES_URL}/function",
            "backup_supported": DatabaseDumper().is_supported(),
        }
    )
    return get_templates().TemplateResponse(ctx.request, "preferences/index.html", context)


@router.api_route("/function", methods=["GET", "POST"])
async def preferences_function(
    mode: str | None = None,
    form: str | None = None,
    ctx: RequestContext = Depends(get_request_context),
):
    """Run one function of the preferences module."""
    try:
        if not ctx.is_administrator:
            raise NotAuthorizedException()

        handler = MODE_HANDLERS[get_mode(mode)]
        submitted = await read_submission(ctx.request)
        return await handler(ctx, form, submitted)
    except MessageRendered:
        raise
    except MemberHubException as e:
        logger.warning(f"Preferences {mode} failed: {e.message}")
        return await show_error(ctx, mode, e.translate(ctx.i18n, ctx.language), e.status_code)
    except Exception:
        logger.exception(f"Unexpected error in preferences {mode}")
        return await show_error(ctx, mode, ctx.t("errors.generic"), 500)
