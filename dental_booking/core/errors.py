"""Failures raised by the booking services and mapped to HTTP responses in main."""


class BookingError(Exception):
    """Base class. ``message`` is safe to show to the client."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(BookingError):
    """Time slot or reservation does not exist."""

    status_code = 404


class ConflictError(BookingError):
    """Time slot already taken, or removal of an occupied slot."""

    status_code = 400


class InternalError(BookingError):
    """Broken invariant or store failure."""

    status_code = 500


__all__ = [
    "BookingError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
