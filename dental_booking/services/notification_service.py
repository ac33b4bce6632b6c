"""Patient notifications for bookings and cancellations.

The workflows never call this directly: routes queue ``notify_*`` as background
tasks once the transaction has committed, so delivery latency or failure cannot
affect the reservation state.
"""
import logging
from datetime import date, time
from typing import Protocol

from dental_booking.core.config import settings
from dental_booking.services.email_service import send_email
from dental_booking.services.sms_service import send_sms

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def send_email(self, to: str, subject: str, body: str) -> None: ...

    def send_sms(self, to: str, body: str) -> None: ...


class DefaultNotificationSink:
    """SMTP email plus Twilio SMS."""

    def send_email(self, to: str, subject: str, body: str) -> None:
        send_email(to, subject, body)

    def send_sms(self, to: str, body: str) -> None:
        send_sms(to, body)


def format_slot_datetime(slot_date: date, slot_time: time) -> tuple[str, str]:
    """Return (DD/MM/YYYY, HH:MM) from the stored calendar fields, with no timezone shift."""
    formatted_date = f"{slot_date.day:02d}/{slot_date.month:02d}/{slot_date.year:04d}"
    formatted_time = f"{slot_time.hour:02d}:{slot_time.minute:02d}"
    return formatted_date, formatted_time


def cancellation_link(token: str) -> str:
    return f"{settings.base_url.rstrip('/')}/cancel?token={token}"


def booking_link() -> str:
    return f"{settings.base_url.rstrip('/')}/"


def build_confirmation_email(
    email: str, phone: str, slot_date: date, slot_time: time, token: str
) -> tuple[str, str]:
    date_str, time_str = format_slot_datetime(slot_date, slot_time)
    subject = f"Reservation confirmed – {settings.clinic_name}"
    body = f"""Hello,

your reservation at {settings.clinic_name} has been confirmed.

Date: {date_str}
Time: {time_str}
Phone: {phone}
Email: {email}

If you wish to cancel your appointment, use this link:
{cancellation_link(token)}

We look forward to your visit!
{settings.clinic_name}"""
    return subject, body


def build_cancellation_email(slot_date: date, slot_time: time) -> tuple[str, str]:
    date_str, time_str = format_slot_datetime(slot_date, slot_time)
    subject = f"Reservation cancelled – {settings.clinic_name}"
    body = f"""Hello,

your reservation at {settings.clinic_name} on {date_str} at {time_str} has been cancelled.

You can book a new appointment here:
{booking_link()}

{settings.clinic_name}"""
    return subject, body


def _deliver(kind: str, to: str, send, *args) -> None:
    try:
        send(to, *args)
    except Exception as e:
        logger.exception("%s notification to %s failed: %s", kind, to, e)


def notify_reservation_confirmed(
    sink: NotificationSink,
    email: str,
    phone: str,
    slot_date: date,
    slot_time: time,
    token: str,
) -> None:
    subject, body = build_confirmation_email(email, phone, slot_date, slot_time, token)
    _deliver("Email", email, sink.send_email, subject, body)
    date_str, time_str = format_slot_datetime(slot_date, slot_time)
    _deliver(
        "SMS",
        phone,
        sink.send_sms,
        f"Your reservation at {settings.clinic_name} on {date_str} at {time_str} is confirmed.",
    )


def notify_reservation_cancelled(
    sink: NotificationSink,
    email: str,
    phone: str,
    slot_date: date,
    slot_time: time,
) -> None:
    subject, body = build_cancellation_email(slot_date, slot_time)
    _deliver("Email", email, sink.send_email, subject, body)
    date_str, time_str = format_slot_datetime(slot_date, slot_time)
    _deliver(
        "SMS",
        phone,
        sink.send_sms,
        f"Your reservation at {settings.clinic_name} on {date_str} at {time_str} has been cancelled. "
        f"Book again: {booking_link()}",
    )
