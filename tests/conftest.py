import os

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ["ERROR_LOG_FILE"] = ""
os.environ["ENV"] = "test"
os.environ["BASE_URL"] = "https://clinic.example"
os.environ["SMTP_HOST"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""

from datetime import date, time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from dental_booking.api.deps import get_notification_sink
from dental_booking.core import db
from dental_booking.main import app
from dental_booking.models.reservation import Reservation
from dental_booking.models.time_slot import TimeSlot


class RecordingSink:
    def __init__(self) -> None:
        self.emails: list[tuple[str, str, str]] = []
        self.sms: list[tuple[str, str]] = []

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.emails.append((to, subject, body))

    def send_sms(self, to: str, body: str) -> None:
        self.sms.append((to, body))


@pytest.fixture
async def engine(tmp_path):
    eng = db.init_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    await db.init_db()
    yield eng
    await eng.dispose()
    db.engine = None
    db.async_session_maker = None


@pytest.fixture
async def session(engine):
    async with db.async_session_maker() as s:
        yield s


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
async def client(engine, sink):
    app.dependency_overrides[get_notification_sink] = lambda: sink
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_slot(engine):
    async def _make(
        slot_date: date = date(2025, 3, 10),
        slot_time: time = time(9, 0),
        slot_id: int | None = None,
    ) -> TimeSlot:
        async with db.async_session_maker() as s:
            async with s.begin():
                slot = TimeSlot(id=slot_id, date=slot_date, time=slot_time)
                s.add(slot)
            return slot

    return _make


async def fetch_state() -> tuple[dict[int, bool], dict[int, Reservation]]:
    """Slot id -> is_taken, and slot id -> reservation, read in a fresh session."""
    async with db.async_session_maker() as s:
        slots = (await s.execute(select(TimeSlot))).scalars().all()
        reservations = (await s.execute(select(Reservation))).scalars().all()
    return {slot.id: slot.is_taken for slot in slots}, {r.time_slot_id: r for r in reservations}


async def assert_slots_match_reservations() -> None:
    taken, reserved = await fetch_state()
    assert set(reserved) <= set(taken)
    for slot_id, is_taken in taken.items():
        assert is_taken == (slot_id in reserved), f"slot {slot_id}"
