"""Email service supporting SMTP and Resend providers.

The transport configuration is part of the organization preferences
(``mail_send_method``, ``mail_smtp_*``, ``mail_resend_api_key``) and can be
changed by administrators in the "EmailDispatch" preferences form.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

import aiosmtplib
import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from memberhub.config import get_settings
from memberhub.exceptions import DeliveryFailure
from memberhub.services.settings_manager import SettingsManager
from memberhub.utils.html import strip_tags

logger = logging.getLogger(__name__)
settings = get_settings()


class EmailService:
    """Service for sending emails of one organization via SMTP or Resend."""

    def __init__(self, settings_manager: SettingsManager):
        """Initialize the email service."""
        self.settings_manager = settings_manager
        templates_path = Path(__file__).parent.parent / "templates" / "emails"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_path)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render an email template with the given context."""
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)

    def _load_config(self) -> dict[str, Any]:
        """Collect the transport configuration from the organization preferences."""
        prefs = self.settings_manager
        return {
            "provider": prefs.get_string("mail_send_method") or "smtp",
            "from_email": prefs.get_string("mail_sendmail_address")
            or prefs.get_string("email_administrator")
            or settings.email_from_address,
            "from_name": prefs.get_string("mail_sendmail_name") or settings.email_from_name,
            "html": prefs.get_bool("mail_html_registered_users"),
            "charset": prefs.get_string("mail_character_encoding") or "utf-8",
            "smtp_host": prefs.get_string("mail_smtp_host"),
            "smtp_port": prefs.get_int("mail_smtp_port", 587),
            "smtp_auth": prefs.get_bool("mail_smtp_auth"),
            "smtp_secure": prefs.get_string("mail_smtp_secure"),
            "smtp_username": prefs.get_string("mail_smtp_user"),
            "smtp_password": prefs.get_string("mail_smtp_password"),
            "resend_api_key": prefs.get_string("mail_resend_api_key"),
        }

    async def _send_via_smtp(
        self,
        config: dict[str, Any],
        from_address: str,
        recipients: list[str],
        subject: str,
        body: str,
    ) -> str:
        """Send email via SMTP."""
        msg = MIMEMultipart("alternative")
        msg["From"] = from_address
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "html" if config["html"] else "plain", config["charset"]))

        # "ssl" = implicit TLS (usually port 465), "tls" = STARTTLS
        if config["smtp_secure"] == "ssl":
            tls_kwargs = {"use_tls": True, "start_tls": False}
        else:
            tls_kwargs = {"use_tls": False, "start_tls": config["smtp_secure"] == "tls"}

        credentials = {}
        if config["smtp_auth"]:
            credentials = {
                "username": config["smtp_username"] or None,
                "password": config["smtp_password"] or None,
            }

        await aiosmtplib.send(
            msg,
            hostname=config["smtp_host"],
            port=config["smtp_port"],
            recipients=recipients,
            timeout=30,
            **credentials,
            **tls_kwargs,
        )

        return f"smtp-{id(msg)}"

    async def _send_via_resend(
        self,
        config: dict[str, Any],
        from_address: str,
        recipients: list[str],
        subject: str,
        body: str,
    ) -> str:
        """Send email via Resend."""
        resend.api_key = config["resend_api_key"]

        params: dict[str, Any] = {
            "from": from_address,
            "to": recipients,
            "subject": subject,
            "html" if config["html"] else "text": body,
        }

        result = resend.Emails.send(params)
        return result.get("id", "resend-ok")

    async def send(
        self,
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict[str, Any],
        from_name: str | None = None,
    ) -> str:
        """Send an email using a Jinja2 template.

        Returns:
            A message ID string

        Raises:
            DeliveryFailure: If the transport is not configured or refused the mail
        """
        config = self._load_config()
        provider = config["provider"]

        if provider == "smtp" and not config["smtp_host"]:
            raise DeliveryFailure("no SMTP server configured")
        if provider == "resend" and not config["resend_api_key"]:
            raise DeliveryFailure("no Resend API key configured")

        recipients = to if isinstance(to, list) else [to]

        try:
            body = self._render_template(template_name, {**context, "html": config["html"]})
            if not config["html"]:
                body = strip_tags(body)

            sender_name = from_name or config["from_name"]
            from_address = f"{sender_name} <{config['from_email']}>"

            if provider == "resend":
                result_id = await self._send_via_resend(
                    config, from_address, recipients, subject, body
                )
            else:
                result_id = await self._send_via_smtp(
                    config, from_address, recipients, subject, body
                )
        except Exception as e:
            logger.error(f"Failed to send email via {provider} to {recipients}: {e}")
            raise DeliveryFailure(str(e)) from e

        logger.info(f"Email sent via {provider} to {recipients}: {result_id}")
        return result_id

    async def send_test_email(
        self,
        to: str,
        recipient_name: str,
        subject: str,
        content: str,
        sender_role: str,
        organization_name: str = "",
    ) -> str:
        """Send the test mail of the email dispatch preferences.

        The mail is signed with the sender role and the organization name.
        """
        return await self.send(
            to=to,
            subject=subject,
            template_name="test_email.html",
            context={
                "recipient_name": recipient_name,
                "content": content,
                "sender_role": sender_role,
                "organization_name": organization_name or settings.app_name,
            },
        )
