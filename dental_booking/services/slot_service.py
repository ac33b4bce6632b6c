import logging
from datetime import date, time

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dental_booking.core.errors import ConflictError, NotFoundError
from dental_booking.models.time_slot import TimeSlot

logger = logging.getLogger(__name__)

# Primary keys are INTEGER (int4) columns
MAX_SLOT_ID = 2**31 - 1


async def list_slots(session: AsyncSession) -> list[TimeSlot]:
    result = await session.execute(
        select(TimeSlot).order_by(TimeSlot.time, TimeSlot.date, TimeSlot.id)
    )
    return list(result.scalars().all())


async def get_slot_for_update(session: AsyncSession, slot_id: int) -> TimeSlot | None:
    """Load a slot and lock its row until the surrounding transaction ends."""
    if not 0 < slot_id <= MAX_SLOT_ID:
        return None
    result = await session.execute(
        select(TimeSlot).where(TimeSlot.id == slot_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def create_slot(session: AsyncSession, slot_date: date, slot_time: time) -> TimeSlot:
    slot = TimeSlot(date=slot_date, time=slot_time.replace(microsecond=0, tzinfo=None))
    try:
        async with session.begin():
            session.add(slot)
            await session.flush()
    except IntegrityError as e:
        logger.info("Slot %s %s already exists: %s", slot_date, slot_time, e.orig)
        raise ConflictError("A time slot already exists at this date and time.") from e
    return slot


async def remove_slot(session: AsyncSession, slot_id: int) -> None:
    """Delete a free slot. The existence/occupancy check and the delete share one locked transaction."""
    async with session.begin():
        slot = await get_slot_for_update(session, slot_id)
        if slot is None:
            raise NotFoundError("Time slot does not exist.")
        if slot.is_taken:
            raise ConflictError("Cannot delete an occupied time slot. Cancel its reservation first.")
        await session.execute(delete(TimeSlot).where(TimeSlot.id == slot_id))
    logger.info("Time slot %d deleted", slot_id)
