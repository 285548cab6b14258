"""Simple presentation of messages to the user.

A :class:`MessagePresenter` shows a headline, a message and buttons either
as a complete themed page, as an HTML fragment (for pages that are already
being delivered or for modal dialogs) or as bare text for AJAX callers.
It can send the user on to a URL after confirming the message, ask a yes/no
question, or redirect automatically after a delay.

Showing a message ends the request: :meth:`MessagePresenter.render` never
returns but raises :class:`~memberhub.exceptions.MessageRendered`, which the
application turns into the HTTP response.

Example::

    presenter = MessagePresenter.for_context(ctx)
    presenter.set_forward_url("/modules/preferences?show_option=email_dispatch")
    await presenter.render(ctx.t("email.sent"))
"""

from enum import Enum
from typing import NoReturn

from fastapi import Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from markupsafe import Markup
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.templating import Jinja2Templates

from memberhub.config import settings
from memberhub.exceptions import MessageRendered
from memberhub.services.i18n_service import I18nService, get_i18n_service
from memberhub.templates_config import templates as default_templates
from memberhub.utils.html import strip_tags
from memberhub.utils.org_context import get_current_language

DEFAULT_THEME = "simple"


class PresenterState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    RENDERED = "rendered"


class ButtonMode(str, Enum):
    """Buttons shown below a message."""

    NONE = "none"
    BACK = "back"
    FORWARD = "forward"
    YES_NO = "yes_no"


class MessagePresenter:
    """Builds and shows a message page, fragment or text for the current request."""

    def __init__(
        self,
        request: Request,
        db: AsyncSession | None = None,
        language: str | None = None,
        theme: str = DEFAULT_THEME,
        headers_sent: bool = False,
        templates: Jinja2Templates = default_templates,
        i18n: I18nService | None = None,
    ):
        self.request = request
        self.db = db
        self.language = language or get_current_language() or settings.default_language
        self.theme = theme or DEFAULT_THEME
        self.headers_sent = headers_sent
        self.templates = templates
        self.i18n = i18n or get_i18n_service()

        self.inline = False
        self.forward_url = ""
        self.timer = 0
        self.include_theme_body = True
        self.text_only = False
        self.html_text_only = False
        self.buttons_visible = True
        self.yes_no_buttons = False
        self.modal = False

        self.state = PresenterState.UNINITIALIZED

    @classmethod
    def for_context(cls, ctx, **kwargs) -> "MessagePresenter":
        """Create a presenter for a request context (see ``memberhub.dependencies``)."""
        return cls(
            ctx.request,
            db=ctx.db,
            language=ctx.language,
            theme=ctx.settings.get_string("theme"),
            i18n=ctx.i18n,
            **kwargs,
        )

    def _configure(self) -> None:
        if self.state is PresenterState.RENDERED:
            raise RuntimeError("The message was already rendered")
        self.state = PresenterState.CONFIGURED

    def hide_buttons(self) -> None:
        """No button will be shown below the message."""
        self._configure()
        self.buttons_visible = False

    def show_in_modal_window(self) -> None:
        """Render the message as the content of a modal dialog."""
        self._configure()
        self.modal = True
        self.inline = True

    def set_forward_url(self, url: str, timer_ms: int = 0) -> None:
        """Send the user to ``url`` after confirming the message.

        With ``timer_ms`` > 0 a full page redirects there on its own after that many milliseconds.
        """
        self._configure()
        self.forward_url = url
        self.timer = timer_ms

    def set_forward_yes_no(self, url: str) -> None:
        """Ask a yes/no question; "yes" goes to ``url``, "no" goes back."""
        self._configure()
        self.forward_url = url
        self.yes_no_buttons = True

    def show_text_only(self, enabled: bool = True) -> None:
        """Output only the message text without any markup."""
        self._configure()
        self.text_only = enabled

    def show_html_text_only(self, enabled: bool = True) -> None:
        """Output only the message text including its markup."""
        self._configure()
        self.html_text_only = enabled

    def show_theme_body(self, enabled: bool = True) -> None:
        """Include the custom header and body html of the theme in the page."""
        self._configure()
        self.include_theme_body = enabled

    @property
    def button_mode(self) -> ButtonMode:
        if not self.buttons_visible:
            return ButtonMode.NONE
        if self.forward_url:
            return ButtonMode.YES_NO if self.yes_no_buttons else ButtonMode.FORWARD
        # A modal dialog is closed with its own close button
        return ButtonMode.NONE if self.modal else ButtonMode.BACK

    def _is_inline(self) -> bool:
        return self.inline or self.headers_sent

    def compose(self, content: str, headline: str) -> str:
        """Render the message html (dialog or message block including buttons)."""
        template = self.templates.get_template("message/fragment.html")
        return template.render(
            content=Markup(content),
            headline=headline,
            modal=self.modal,
            inline=self._is_inline(),
            button_mode=self.button_mode.value,
            forward_url=self.forward_url,
            lang=self.language,
        )

    def build_response(self, content: str, headline: str = "") -> Response:
        """Build the response for the configured display mode."""
        if not headline:
            headline = self.i18n.t("message.note", self.language)

        if self.text_only:
            return PlainTextResponse(strip_tags(content))
        if self.html_text_only:
            return HTMLResponse(content)

        html = self.compose(content, headline)
        if self._is_inline():
            return HTMLResponse(html)

        return self.templates.TemplateResponse(
            self.request,
            "message/page.html",
            {
                "headline": headline,
                "body": Markup(html),
                "theme": self.theme,
                "include_theme_body": self.include_theme_body,
                "hide_menu": True,
                "forward_url": self.forward_url,
                "timer": self.timer,
                "lang": self.language,
            },
        )

    async def render(self, content: str, headline: str = "") -> NoReturn:
        """Show the message and end the request.

        ``content`` is html; values typed by users must be escaped by the caller
        (see :meth:`~memberhub.services.i18n_service.I18nService.t_markup`).

        Any open database transaction is rolled back first, so nothing that
        led up to the message gets committed.

        Raises:
            MessageRendered: Always; carries the response for the transport layer
        """
        if self.state is PresenterState.RENDERED:
            raise RuntimeError("The message was already rendered")

        if self.db is not None:
            await self.db.rollback()

        response = self.build_response(content, headline)
        self.state = PresenterState.RENDERED
        raise MessageRendered(response)
