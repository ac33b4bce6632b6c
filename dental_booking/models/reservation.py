from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


class Reservation(SQLModel, table=True):
    __tablename__ = "reservations"
    id: int | None = Field(default=None, primary_key=True)
    phone: str
    email: str
    time_slot_id: int = Field(foreign_key="time_slots.id", unique=True, index=True)  # one reservation per slot
    cancellation_token: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
