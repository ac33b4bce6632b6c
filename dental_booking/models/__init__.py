from dental_booking.models.time_slot import TimeSlot, TimeSlotCreate, TimeSlotPublic
from dental_booking.models.reservation import Reservation

__all__ = [
    "TimeSlot",
    "TimeSlotCreate",
    "TimeSlotPublic",
    "Reservation",
]
