import logging
from functools import lru_cache

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from dental_booking.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _twilio_client() -> Client:
    return Client(settings.twilio_account_sid, settings.twilio_auth_token)


def send_sms(to_phone: str, body: str) -> None:
    """Send an SMS through Twilio (blocking). Use from background task.

    Delivery failures are logged, never raised.
    """
    if not settings.sms_enabled:
        logger.debug("SMS disabled (Twilio not configured), skipping send to %s", to_phone)
        return
    try:
        message = _twilio_client().messages.create(
            body=body,
            from_=settings.twilio_from_number,
            to=to_phone,
        )
        logger.info("SMS sent to %s: %s", to_phone, message.sid)
    except TwilioException as e:
        logger.error("Failed to send SMS to %s: %s", to_phone, e)
    except Exception as e:
        logger.exception("Failed to send SMS to %s: %s", to_phone, e)
