from datetime import date, time

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class TimeSlotBase(SQLModel):
    date: date
    time: time


class TimeSlot(TimeSlotBase, table=True):
    __tablename__ = "time_slots"
    __table_args__ = (UniqueConstraint("date", "time", name="uq_time_slots_date_time"),)
    id: int | None = Field(default=None, primary_key=True)
    # Owned by the reservation workflows: true iff a reservation references this slot
    is_taken: bool = Field(default=False)


class TimeSlotCreate(TimeSlotBase):
    pass


class TimeSlotPublic(TimeSlotBase):
    id: int
    is_taken: bool
