from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from dental_booking.api.deps import get_session
from dental_booking.api.schemas.reservation import MessageResponse
from dental_booking.models.time_slot import TimeSlot, TimeSlotCreate, TimeSlotPublic
from dental_booking.services.slot_service import create_slot, list_slots, remove_slot

router = APIRouter(prefix="/timeslots", tags=["timeslots"])


def _to_public(slot: TimeSlot) -> TimeSlotPublic:
    return TimeSlotPublic(id=slot.id, date=slot.date, time=slot.time, is_taken=slot.is_taken)


@router.get("", response_model=list[TimeSlotPublic])
async def get_all_timeslots(session: AsyncSession = Depends(get_session)) -> list[TimeSlotPublic]:
    """All slots ordered by time of day."""
    slots = await list_slots(session)
    return [_to_public(s) for s in slots]


@router.post("", response_model=TimeSlotPublic, status_code=status.HTTP_201_CREATED)
async def add_timeslot(
    body: TimeSlotCreate,
    session: AsyncSession = Depends(get_session),
) -> TimeSlotPublic:
    slot = await create_slot(session, body.date, body.time)
    return _to_public(slot)


@router.delete("/{timeslot_id}", response_model=MessageResponse)
async def delete_timeslot(
    timeslot_id: int,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await remove_slot(session, timeslot_id)
    return MessageResponse(message="Time slot deleted.")
