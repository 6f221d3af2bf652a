"""Tests for request notification emails."""

from accounting_portal_api.app.schemas.user import UserContext
from accounting_portal_api.app.services.audit_service import AuditService
from accounting_portal_api.app.services.catalog import get_service_type
from accounting_portal_api.app.services.notification_service import (
    NotificationService,
    SMTPMailer,
    render_request_html,
)

from conftest import run


def test_build_messages_for_user_with_email(user):
    config = get_service_type("tax-return-copy")
    messages = NotificationService.build_messages(config, {"year": "2023"}, user)
    staff_message, confirmation = messages
    assert staff_message.to == "office@example.com"
    assert staff_message.subject == "New Tax Return Copy Request: Una Client"
    assert confirmation.to == "una@example.com"
    assert confirmation.subject == "Your Tax Return Copy Request Confirmation"


def test_build_messages_without_client_email():
    config = get_service_type("tax-return-copy")
    user = UserContext(user_id="u9")
    messages = NotificationService.build_messages(config, {"year": "2023"}, user)
    assert len(messages) == 1
    assert messages[0].subject == "New Tax Return Copy Request: Client"
    assert messages[0].reply_to is None


def test_rendered_html_escapes_values(user):
    config = get_service_type("update-address")
    payload = {"oldAddress": "<script>alert(1)</script>", "newAddress": "5 Pitt St"}
    body = render_request_html(config, payload, user)
    assert "<script>" not in body
    assert "&lt;script&gt;" in body
    assert "Old Address" in body


def test_notify_skips_when_not_configured(user, mailer):
    mailer.configured = False
    config = get_service_type("payment-plan")
    assert run(NotificationService.notify(config, {}, user, "r1")) is False
    assert mailer.sent == []


def test_notify_failure_is_audited_not_raised(user, mailer):
    mailer.fail = True
    config = get_service_type("payment-plan")
    assert run(NotificationService.notify(config, {"amount": 5}, user, "r1")) is False
    logs = run(AuditService.list_logs(action="notification_failed", object_id="r1"))
    assert {log.details["to"] for log in logs} == {"office@example.com", "una@example.com"}


def test_smtp_mailer_requires_host(monkeypatch):
    from accounting_portal_api.app.core.config import settings

    monkeypatch.setattr(settings, "email_enabled", True)
    monkeypatch.setattr(settings, "smtp_host", "")
    assert not SMTPMailer().is_configured()
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    assert SMTPMailer().is_configured()
