from dental_booking.core.db import get_session
from dental_booking.services.notification_service import DefaultNotificationSink, NotificationSink

_default_sink = DefaultNotificationSink()


def get_notification_sink() -> NotificationSink:
    """Overridden in tests with a recording sink."""
    return _default_sink


__all__ = ["get_session", "get_notification_sink"]
