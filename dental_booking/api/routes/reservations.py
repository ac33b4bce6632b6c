from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dental_booking.api.deps import get_notification_sink, get_session
from dental_booking.api.schemas.reservation import (
    CancelReservationRequest,
    CreateReservationRequest,
    MessageResponse,
)
from dental_booking.services.notification_service import (
    NotificationSink,
    notify_reservation_cancelled,
    notify_reservation_confirmed,
)
from dental_booking.services.reservation_service import book, cancel

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("", response_model=MessageResponse)
async def create_reservation(
    body: CreateReservationRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
) -> MessageResponse:
    result = await book(session, body.phone, body.email, body.timeslot_id)
    # Committed. The token only travels in the notification, never in the response.
    background_tasks.add_task(
        notify_reservation_confirmed,
        sink,
        email=result.email,
        phone=result.phone,
        slot_date=result.date,
        slot_time=result.time,
        token=result.cancellation_token,
    )
    return MessageResponse(message="Reservation successful!")


@router.post("/cancel", response_model=MessageResponse)
async def cancel_reservation(
    body: CancelReservationRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    sink: NotificationSink = Depends(get_notification_sink),
) -> MessageResponse:
    result = await cancel(session, body.cancellation_token)
    background_tasks.add_task(
        notify_reservation_cancelled,
        sink,
        email=result.email,
        phone=result.phone,
        slot_date=result.date,
        slot_time=result.time,
    )
    return MessageResponse(
        message=f"Reservation on {result.date_display} at {result.time_display} has been cancelled."
    )
