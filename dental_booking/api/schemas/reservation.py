from pydantic import BaseModel


class CreateReservationRequest(BaseModel):
    # Presence is checked by the booking workflow so that blanks and omissions fail the same way
    phone: str | None = None
    email: str | None = None
    timeslot_id: int | None = None


class CancelReservationRequest(BaseModel):
    cancellation_token: str | None = None


class MessageResponse(BaseModel):
    message: str
