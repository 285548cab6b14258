"""Custom exception classes and global exception handlers."""

import logging
import traceback
from typing import Any

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.templating import Jinja2Templates

logger = logging.getLogger(__name__)


class MemberHubException(Exception):
    """Base exception for all MemberHub-specific errors.

    ``message_key`` is a translation key; ``params`` are interpolated into the
    translated text when the error is shown to the user.
    """

    message_key = "errors.generic"

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 400,
        message_key: str | None = None,
        params: dict[str, Any] | None = None,
    ):
        if message_key is not None:
            self.message_key = message_key
        self.params = params or {}
        self.message = message or self.message_key
        self.status_code = status_code
        super().__init__(self.message)

    def translate(self, i18n, lang: str) -> str:
        """Render the user-facing message in the given language."""
        # Parameters may themselves be translation keys; unknown keys come back unchanged
        params = {
            key: i18n.t(value, lang) if isinstance(value, str) else value
            for key, value in self.params.items()
        }
        translated = i18n.t(self.message_key, lang, **params)
        if translated == self.message_key and self.message != self.message_key:
            return self.message
        return translated


class NotAuthorizedException(MemberHubException):
    """The current user is not allowed to perform the action."""

    message_key = "errors.no_rights"

    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message, 403)


class NotFoundException(MemberHubException):
    """Resource not found exception."""

    message_key = "errors.not_found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", 404, params={"resource": resource})


class InvalidInputException(MemberHubException):
    """Submitted data failed validation.

    ``kind`` names the failed rule (``InvalidTheme``, ``MissingRequiredField``,
    ``InvalidCharacters``, ``IncompleteName``, ``InvalidPageView``,
    ``InvalidCsrfToken``).
    """

    def __init__(
        self,
        kind: str,
        message_key: str,
        params: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.kind = kind
        super().__init__(message, 422, message_key=message_key, params=params)


class DuplicateResourceException(MemberHubException):
    """Resource conflict exception."""

    def __init__(self, kind: str, message_key: str, params: dict[str, Any] | None = None):
        self.kind = kind
        super().__init__(None, 409, message_key=message_key, params=params)


class TransactionFailure(MemberHubException):
    """A database transaction could not be completed."""

    message_key = "errors.database"

    def __init__(self, message: str = "The database transaction failed"):
        super().__init__(message, 500)


class DeliveryFailure(MemberHubException):
    """An email could not be delivered."""

    message_key = "email.not_sent"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Email could not be sent: {reason}", 502, params={"reason": reason})


class UnsupportedConfiguration(MemberHubException):
    """The requested function is not available for this installation."""

    message_key = "errors.module_disabled"

    def __init__(self, message: str = "This function is not available"):
        super().__init__(message, 400)


class OrganizationContextError(MemberHubException):
    """Organization context not set error."""

    def __init__(self, message: str = "Organization context is required"):
        super().__init__(message, 400)


class UserContextError(MemberHubException):
    """User context not set error."""

    def __init__(self, message: str = "User context is required"):
        super().__init__(message, 401)


class MessageRendered(Exception):
    """Raised by the message presenter to end the request with its response."""

    def __init__(self, response: Response):
        self.response = response
        super().__init__("message rendered")


def wants_json(request: Request) -> bool:
    """Check if request expects JSON (API) or HTML (web)."""
    return (
        request.url.path.startswith("/api/")
        or "application/json" in request.headers.get("accept", "")
        or request.headers.get("content-type", "").startswith("application/json")
    )


def create_exception_handlers(templates: Jinja2Templates):
    """Create exception handlers that use the provided templates."""

    async def message_rendered_handler(request: Request, exc: MessageRendered):
        """Hand the response of a rendered message to the transport layer."""
        return exc.response

    async def memberhub_exception_handler(request: Request, exc: MemberHubException):
        """Handle MemberHub custom exceptions."""
        logger.warning(
            f"MemberHubException on {request.method} {request.url.path}: "
            f"{exc.message} (status={exc.status_code})"
        )

        if wants_json(request):
            return JSONResponse(
                status_code=exc.status_code,
                content={"status": "error", "message": exc.message},
            )

        return templates.TemplateResponse(
            request,
            "errors/generic.html",
            {
                "message": exc.message,
                "status_code": exc.status_code,
            },
            status_code=exc.status_code,
        )

    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(f"Unhandled exception on {request.method} {request.url.path}")
        logger.error(f"Exception: {type(exc).__name__}: {exc}")
        tb_lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        logger.error("".join(tb_lines))

        if wants_json(request):
            return JSONResponse(
                status_code=500,
                content={
                    "status": "error",
                    "message": "An unexpected error occurred",
                },
            )

        return HTMLResponse(
            content="<h1>500 Internal Server Error</h1><p>An unexpected error occurred.</p>",
            status_code=500,
        )

    return {
        MessageRendered: message_rendered_handler,
        MemberHubException: memberhub_exception_handler,
        Exception: generic_exception_handler,
    }
