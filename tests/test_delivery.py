import pytest
from twilio.base.exceptions import TwilioException

from dental_booking.core.config import settings
from dental_booking.services import email_service, sms_service


class _ExplodingSMTP:
    def __init__(self, *args, **kwargs):
        raise OSError("connection refused")


def test_email_disabled_without_smtp_settings(monkeypatch):
    monkeypatch.setattr(email_service.smtplib, "SMTP", _ExplodingSMTP)
    assert not settings.email_enabled
    email_service.send_email("patient@example.com", "subject", "body")


def test_email_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_user", "user")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    monkeypatch.setattr(settings, "from_email", "clinic@example.com")
    monkeypatch.setattr(email_service.smtplib, "SMTP", _ExplodingSMTP)

    email_service.send_email("patient@example.com", "subject", "body")

    assert "Failed to send email to patient@example.com" in caplog.text


class _FakeMessages:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent: list[dict] = []

    def create(self, **kwargs):
        if self.error:
            raise self.error
        self.sent.append(kwargs)
        return type("Message", (), {"sid": "SM123"})()


class _FakeClient:
    def __init__(self, messages: _FakeMessages) -> None:
        self.messages = messages


@pytest.fixture
def twilio_configured(monkeypatch):
    monkeypatch.setattr(settings, "twilio_account_sid", "AC123")
    monkeypatch.setattr(settings, "twilio_auth_token", "token")
    monkeypatch.setattr(settings, "twilio_from_number", "+15550001111")


def test_sms_disabled_without_twilio_settings(monkeypatch):
    def _no_client():
        raise AssertionError("client must not be built")

    monkeypatch.setattr(sms_service, "_twilio_client", _no_client)
    sms_service.send_sms("+421900111222", "hello")


def test_sms_sent_through_twilio(monkeypatch, twilio_configured):
    messages = _FakeMessages()
    monkeypatch.setattr(sms_service, "_twilio_client", lambda: _FakeClient(messages))

    sms_service.send_sms("+421900111222", "hello")

    assert messages.sent == [{"body": "hello", "from_": "+15550001111", "to": "+421900111222"}]


def test_sms_failure_is_logged_not_raised(monkeypatch, twilio_configured, caplog):
    messages = _FakeMessages(error=TwilioException("invalid number"))
    monkeypatch.setattr(sms_service, "_twilio_client", lambda: _FakeClient(messages))

    sms_service.send_sms("+421900111222", "hello")

    assert "Failed to send SMS to +421900111222" in caplog.text
