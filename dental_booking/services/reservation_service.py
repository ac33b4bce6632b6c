"""Booking and cancellation workflows.

These are the only writers of ``TimeSlot.is_taken`` and of reservation rows. Each
runs in a single transaction: the slot flag and the reservation row change
together or not at all. Row locks (``SELECT ... FOR UPDATE``) and a conditional
update serialize concurrent attempts on the same slot inside the database, so
several server processes can share one store.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dental_booking.core.errors import ConflictError, InternalError, NotFoundError, ValidationError
from dental_booking.models.reservation import Reservation
from dental_booking.models.time_slot import TimeSlot
from dental_booking.services.notification_service import format_slot_datetime
from dental_booking.services.slot_service import get_slot_for_update

logger = logging.getLogger(__name__)

CANCELLATION_TOKEN_BYTES = 16


@dataclass(frozen=True)
class BookingResult:
    reservation_id: int
    timeslot_id: int
    date: date
    time: time
    phone: str
    email: str
    cancellation_token: str


@dataclass(frozen=True)
class CancellationResult:
    timeslot_id: int
    date: date
    time: time
    phone: str
    email: str

    @property
    def date_display(self) -> str:
        return format_slot_datetime(self.date, self.time)[0]

    @property
    def time_display(self) -> str:
        return format_slot_datetime(self.date, self.time)[1]


def new_cancellation_token() -> str:
    return secrets.token_hex(CANCELLATION_TOKEN_BYTES)


def _clean(value: str | None) -> str:
    return (value or "").strip()


async def book(
    session: AsyncSession, phone: str | None, email: str | None, timeslot_id: int | None
) -> BookingResult:
    """Reserve a free slot for the given contact.

    Raises ValidationError for missing input, NotFoundError for an unknown slot and
    ConflictError when the slot is already taken (including losing a concurrent race).
    """
    phone = _clean(phone)
    email = _clean(email)
    if not phone or not email or not timeslot_id:
        raise ValidationError("Missing data: phone, email and timeslot_id are required.")

    token = new_cancellation_token()
    try:
        async with session.begin():
            slot = await get_slot_for_update(session, timeslot_id)
            if slot is None:
                raise NotFoundError("Time slot does not exist.")
            if slot.is_taken:
                raise ConflictError("Time slot is already taken.")
            claimed = await session.execute(
                update(TimeSlot)
                .where(TimeSlot.id == timeslot_id, TimeSlot.is_taken.is_(False))
                .values(is_taken=True)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                raise ConflictError("Time slot is already taken.")
            reservation = Reservation(
                phone=phone,
                email=email,
                time_slot_id=timeslot_id,
                cancellation_token=token,
            )
            session.add(reservation)
            await session.flush()
            result = BookingResult(
                reservation_id=reservation.id,
                timeslot_id=slot.id,
                date=slot.date,
                time=slot.time,
                phone=phone,
                email=email,
                cancellation_token=token,
            )
    except IntegrityError as e:
        logger.warning("Reservation insert for slot %s rejected by constraint: %s", timeslot_id, e.orig)
        raise ConflictError("Time slot is already taken.") from e
    logger.info("Reservation %d created for time slot %d", result.reservation_id, result.timeslot_id)
    return result


async def cancel(session: AsyncSession, cancellation_token: str | None) -> CancellationResult:
    """Delete the reservation owning the token and free its slot.

    A token works once: a second attempt, sequential or concurrent, raises NotFoundError.
    """
    token = _clean(cancellation_token)
    if not token:
        raise ValidationError("Missing cancellation token.")

    async with session.begin():
        found = await session.execute(
            select(Reservation).where(Reservation.cancellation_token == token).with_for_update()
        )
        reservation = found.scalar_one_or_none()
        if reservation is None:
            raise NotFoundError("Reservation does not exist or was already cancelled.")
        slot = await get_slot_for_update(session, reservation.time_slot_id)
        if slot is None:
            logger.error(
                "Reservation %d references missing time slot %d", reservation.id, reservation.time_slot_id
            )
            raise InternalError("Inconsistent time slot reference.")
        deleted = await session.execute(
            delete(Reservation)
            .where(Reservation.id == reservation.id)
            .execution_options(synchronize_session=False)
        )
        if deleted.rowcount != 1:
            raise NotFoundError("Reservation does not exist or was already cancelled.")
        slot.is_taken = False
        result = CancellationResult(
            timeslot_id=slot.id,
            date=slot.date,
            time=slot.time,
            phone=reservation.phone,
            email=reservation.email,
        )
    logger.info("Reservation %d cancelled, time slot %d freed", reservation.id, slot.id)
    return result
