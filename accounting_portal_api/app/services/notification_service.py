"""
Email notifications for new service requests and client profiles.

When a request is submitted the practice mailbox receives a summary of
the submitted fields, and the client receives a short confirmation if
their email address is known.  Delivery is a side channel: a failed
email never fails the submission.  ``NotificationService.notify``
therefore catches delivery errors, logs them as a
``notification_failed`` event and records them in the audit log so
staff can follow up.  Profile updates reach staff as a "New User
Information" email through the same delivery path.
"""

from __future__ import annotations

import asyncio
import html
import logging
import re
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from accounting_portal_api.app.core.config import settings
from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.audit_service import AuditService
from accounting_portal_api.app.services.catalog import ServiceTypeConfig


logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """Email message to be sent."""

    to: str
    subject: str
    body_text: str
    body_html: Optional[str] = None
    reply_to: Optional[str] = None


class SMTPMailer:
    """Sends ``EmailMessage`` objects through the configured SMTP server."""

    def is_configured(self) -> bool:
        return bool(settings.email_enabled and settings.smtp_host)

    def send(self, message: EmailMessage) -> None:
        """Deliver ``message``.  SMTP errors propagate to the caller."""
        msg = MIMEMultipart("alternative")
        msg["From"] = settings.email_from
        msg["To"] = message.to
        msg["Subject"] = message.subject
        if message.reply_to:
            msg["Reply-To"] = message.reply_to
        msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, "html", "utf-8"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
            if settings.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(settings.email_from, [message.to], msg.as_string())
        logger.info("Email sent to %s: %s", message.to, message.subject)


def _humanize(key: str) -> str:
    """Turn ``taxFileNumber`` into ``Tax File Number``."""
    words = re.sub(r"(?<!^)(?=[A-Z])", " ", key)
    return words[:1].upper() + words[1:]


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, dict):
        return ", ".join(f"{_humanize(k)}: {_format_value(v)}" for k, v in value.items())
    if isinstance(value, list):
        return "; ".join(_format_value(v) for v in value)
    return str(value)


def _render_table_html(title: str, rows: Sequence[Tuple[str, str]]) -> str:
    body = "".join(
        f"<tr><th align=\"left\">{html.escape(label)}</th><td>{html.escape(value)}</td></tr>"
        for label, value in rows
    )
    title = html.escape(title)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"UTF-8\">"
        f"<title>{title}</title></head><body>"
        f"<h2>{title}</h2><table>{body}</table>"
        "</body></html>"
    )


def _field_rows(keys: Iterable[str], payload: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [
        (_humanize(key), _format_value(payload[key]))
        for key in keys
        if key in payload and payload[key] not in (None, "")
    ]


def render_request_html(config: ServiceTypeConfig, payload: Dict[str, Any], user: UserContext) -> str:
    """Render the HTML body listing the submitted fields.

    All user-supplied values are escaped.
    """
    rows = [
        ("Client", user.display_name or "Client"),
        ("Email", user.email or "Not provided"),
    ]
    rows.extend(_field_rows(config.fields, payload))
    return _render_table_html(f"{config.label} Request", rows)


class NotificationService:
    """Builds and delivers request and profile notifications."""

    mailer = SMTPMailer()

    @classmethod
    def build_messages(
        cls,
        config: ServiceTypeConfig,
        payload: Dict[str, Any],
        user: UserContext,
    ) -> List[EmailMessage]:
        """Return the staff notification and, if possible, the client confirmation."""
        client_name = user.display_name or "Client"
        body_html = render_request_html(config, payload, user)
        messages = [
            EmailMessage(
                to=settings.admin_email or settings.email_from,
                subject=f"New {config.label} Request: {client_name}",
                body_text=f"New {config.label} request from {client_name}. Please check the details.",
                body_html=body_html,
                reply_to=user.email or None,
            )
        ]
        if user.email:
            messages.append(
                EmailMessage(
                    to=user.email,
                    subject=f"Your {config.label} Request Confirmation",
                    body_text=(
                        f"Thank you for submitting your {config.label.lower()} request. "
                        "We will process it shortly."
                    ),
                    body_html=body_html,
                )
            )
        return messages

    @classmethod
    def build_profile_message(
        cls,
        fields: Sequence[str],
        payload: Dict[str, Any],
        user: UserContext,
    ) -> EmailMessage:
        """Return the staff email announcing new client information."""
        rows = [("Email", user.email or "Not provided")]
        rows.extend(_field_rows(fields, payload))
        return EmailMessage(
            to=settings.admin_email or settings.email_from,
            subject="New User Information",
            body_text="New User Information",
            body_html=_render_table_html("New User Information", rows),
            reply_to=user.email or None,
        )

    @classmethod
    async def notify(
        cls,
        config: ServiceTypeConfig,
        payload: Dict[str, Any],
        user: UserContext,
        request_id: Optional[str] = None,
    ) -> bool:
        """Send the notifications for a submitted request.

        Returns ``True`` when every message was delivered.  Delivery
        errors are logged and audited, never raised.
        """
        messages = cls.build_messages(config, payload, user)
        return await cls._deliver(messages, user, config.slug, request_id)

    @classmethod
    async def notify_profile(
        cls,
        fields: Sequence[str],
        payload: Dict[str, Any],
        user: UserContext,
        profile_id: Optional[str] = None,
    ) -> bool:
        """Tell staff about updated client information.  Never raises."""
        message = cls.build_profile_message(fields, payload, user)
        return await cls._deliver([message], user, "profile", profile_id)

    @classmethod
    async def _deliver(
        cls,
        messages: List[EmailMessage],
        user: UserContext,
        object_type: str,
        object_id: Optional[str],
    ) -> bool:
        if not cls.mailer.is_configured():
            logger.info(
                "Email delivery disabled; skipping %s notification for %s",
                object_type,
                object_id,
            )
            return False
        delivered = True
        for message in messages:
            try:
                await asyncio.to_thread(cls.mailer.send, message)
            except Exception as e:
                delivered = False
                logger.warning(
                    "Failed to send %s notification for %s to %s: %s",
                    object_type,
                    object_id,
                    message.to,
                    e,
                    extra={
                        "event": "notification_failed",
                        "object_type": object_type,
                        "object_id": object_id,
                    },
                )
                try:
                    await AuditService.log(
                        user_id=user.user_id,
                        action="notification_failed",
                        object_type=object_type,
                        object_id=object_id,
                        details={"to": message.to, "subject": message.subject, "error": str(e)},
                    )
                except Exception:
                    logger.exception("Failed to record notification failure for %s", object_id)
        return delivered
