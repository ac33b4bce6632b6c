import time as time_module
from datetime import date, time

import pytest

from dental_booking.services import notification_service
from dental_booking.services.notification_service import (
    build_confirmation_email,
    cancellation_link,
    format_slot_datetime,
    notify_reservation_cancelled,
    notify_reservation_confirmed,
)
from tests.conftest import RecordingSink


@pytest.fixture
def server_timezone(monkeypatch):
    def _set(tz: str) -> None:
        monkeypatch.setenv("TZ", tz)
        time_module.tzset()

    yield _set
    monkeypatch.undo()
    time_module.tzset()


@pytest.mark.parametrize("tz", ["UTC", "Pacific/Kiritimati", "America/Los_Angeles", "Europe/Bratislava"])
def test_format_is_timezone_invariant(server_timezone, tz):
    server_timezone(tz)
    assert format_slot_datetime(date(2025, 3, 10), time(9, 0, 0)) == ("10/03/2025", "09:00")


def test_format_truncates_seconds():
    assert format_slot_datetime(date(2025, 12, 1), time(16, 45, 59)) == ("01/12/2025", "16:45")


def test_cancellation_link_uses_base_url():
    assert cancellation_link("abc123") == "https://clinic.example/cancel?token=abc123"


def test_confirmation_email_contains_details_and_link():
    subject, body = build_confirmation_email(
        "patient@example.com", "+421900111222", date(2025, 3, 10), time(9, 0), "abc123"
    )
    assert "confirmed" in subject.lower()
    assert "10/03/2025" in body
    assert "09:00" in body
    assert "+421900111222" in body
    assert "https://clinic.example/cancel?token=abc123" in body


def test_confirmed_sends_email_and_sms():
    sink = RecordingSink()
    notify_reservation_confirmed(sink, "patient@example.com", "+421900111222", date(2025, 3, 10), time(9, 0), "tok")
    assert [e[0] for e in sink.emails] == ["patient@example.com"]
    assert [s[0] for s in sink.sms] == ["+421900111222"]
    assert "10/03/2025" in sink.sms[0][1]


def test_cancelled_sends_email_and_sms_with_booking_link():
    sink = RecordingSink()
    notify_reservation_cancelled(sink, "patient@example.com", "+421900111222", date(2025, 3, 10), time(9, 0))
    assert "cancelled" in sink.emails[0][1].lower()
    assert "https://clinic.example/" in sink.emails[0][2]
    assert "https://clinic.example/" in sink.sms[0][1]


def test_email_failure_does_not_stop_sms():
    class BrokenEmailSink(RecordingSink):
        def send_email(self, to, subject, body):
            raise ConnectionError("smtp down")

    sink = BrokenEmailSink()
    notify_reservation_confirmed(sink, "patient@example.com", "+421900111222", date(2025, 3, 10), time(9, 0), "tok")
    assert len(sink.sms) == 1


def test_default_sink_delegates_to_providers(monkeypatch):
    calls = []
    monkeypatch.setattr(notification_service, "send_email", lambda *a: calls.append(("email", a)))
    monkeypatch.setattr(notification_service, "send_sms", lambda *a: calls.append(("sms", a)))
    sink = notification_service.DefaultNotificationSink()
    sink.send_email("a@example.com", "s", "b")
    sink.send_sms("+1", "b")
    assert calls == [("email", ("a@example.com", "s", "b")), ("sms", ("+1", "b"))]
