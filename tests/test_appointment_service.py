from datetime import date, timedelta

import pytest

from app.core.errors import SlotAlreadyBookedError
from app.models.appointment import Appointment, AppointmentCreate
from app.models.order import Order
from app.services.appointment_service import (
    create_appointment,
    delete_appointment_by_date_and_slot,
    delete_appointments_older_than,
    get_appointment_by_date_and_slot,
    list_appointments_for_date,
    list_upcoming_appointments,
)

DAY = date(2026, 10, 19)


def _data(slot: int, d: date = DAY, creator: str | None = "whatsapp:+911111111111", name: str = "Rahul"):
    return AppointmentCreate(
        first_name=name,
        last_name="Shah",
        mobile="9876543210",
        date=d,
        slot_index=slot,
        creator_number=creator,
        notes="Ring fitting",
    )


async def test_create_sets_display_time_from_slot(session):
    appt = await create_appointment(session, _data(6))
    assert appt.id is not None
    assert appt.time == "2:00 PM"
    assert appt.full_name == "Rahul Shah"


async def test_same_slot_same_day_is_rejected(session):
    await create_appointment(session, _data(3))
    with pytest.raises(SlotAlreadyBookedError):
        await create_appointment(session, _data(3, name="Other"))
    # Session is usable again after the failed insert
    rows = await list_appointments_for_date(session, DAY)
    assert [a.first_name for a in rows] == ["Rahul"]


async def test_same_slot_other_day_is_fine(session):
    await create_appointment(session, _data(3))
    await create_appointment(session, _data(3, d=DAY + timedelta(days=1)))
    assert len(await list_appointments_for_date(session, DAY + timedelta(days=1))) == 1


async def test_list_for_date_is_ordered_by_slot(session):
    for slot in (9, 0, 4):
        await create_appointment(session, _data(slot))
    rows = await list_appointments_for_date(session, DAY)
    assert [a.slot_index for a in rows] == [0, 4, 9]


async def test_find_and_delete_by_date_and_slot(session):
    await create_appointment(session, _data(1))
    assert (await get_appointment_by_date_and_slot(session, DAY, 1)) is not None
    assert (await get_appointment_by_date_and_slot(session, DAY, 2)) is None

    assert await delete_appointment_by_date_and_slot(session, DAY, 1) == 1
    assert await delete_appointment_by_date_and_slot(session, DAY, 1) == 0
    assert (await get_appointment_by_date_and_slot(session, DAY, 1)) is None


async def test_list_upcoming_filters_dates_and_missing_creator(session):
    await create_appointment(session, _data(0))
    await create_appointment(session, _data(1, creator=None))
    await create_appointment(session, _data(2, d=DAY + timedelta(days=1)))
    await create_appointment(session, _data(3, d=DAY + timedelta(days=2)))

    rows = await list_upcoming_appointments(session, [DAY, DAY + timedelta(days=1)])
    assert [(a.date, a.slot_index) for a in rows] == [(DAY, 0), (DAY + timedelta(days=1), 2)]
    assert await list_upcoming_appointments(session, []) == []


async def test_retention_deletes_only_old_dates(session):
    await create_appointment(session, _data(0, d=DAY - timedelta(days=40)))
    await create_appointment(session, _data(0, d=DAY - timedelta(days=5)))
    n = await delete_appointments_older_than(session, 30, DAY)
    await session.commit()
    assert n == 1
    assert len(await list_appointments_for_date(session, DAY - timedelta(days=5))) == 1


async def test_created_at_is_timezone_aware(session):
    appt = Appointment(first_name="Rahul", mobile="1", date=DAY, time="11:00 AM", slot_index=0)
    assert appt.created_at.tzinfo is not None
    assert Appointment.__table__.c.created_at.type.timezone is True
    assert Order.__table__.c.created_at.type.timezone is True

    stored = await create_appointment(session, _data(0))
    assert stored.id is not None
    assert stored.created_at is not None
