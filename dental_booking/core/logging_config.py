import logging

from dental_booking.core.config import settings

_JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}'


def configure_logging() -> None:
    """Console logging per environment, plus WARNING and ERROR records appended to the error log file."""
    if settings.env != "production":
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO, format=_JSON_FORMAT)
    if settings.error_log_file:
        handler = logging.FileHandler(settings.error_log_file, encoding="utf-8")
        handler.setLevel(logging.WARNING)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)
