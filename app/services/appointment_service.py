import logging
from collections.abc import Iterable
from datetime import date, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import SlotAlreadyBookedError, StorageError
from app.models.appointment import Appointment, AppointmentCreate
from app.services.time_slots import slot_to_display_time

logger = logging.getLogger(__name__)


async def create_appointment(session: AsyncSession, data: AppointmentCreate) -> Appointment:
    """Insert and commit one booking.

    No availability pre-check: the (date, slot_index) unique constraint decides,
    so two racing bookings cannot both succeed.
    """
    appointment = Appointment(
        first_name=data.first_name,
        last_name=data.last_name,
        mobile=data.mobile,
        date=data.date,
        time=slot_to_display_time(data.slot_index),
        slot_index=data.slot_index,
        creator_number=data.creator_number,
        notes=data.notes,
    )
    try:
        session.add(appointment)
        await session.commit()
        await session.refresh(appointment)
    except IntegrityError as e:
        await session.rollback()
        logger.info("Slot %s on %s already booked", data.slot_index, data.date)
        raise SlotAlreadyBookedError() from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Insert appointment failed: %s", e)
        raise StorageError() from e
    return appointment


async def get_appointment_by_date_and_slot(
    session: AsyncSession, d: date, slot_index: int
) -> Appointment | None:
    try:
        result = await session.execute(
            select(Appointment).where(Appointment.date == d, Appointment.slot_index == slot_index)
        )
        return result.scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.exception("Lookup appointment failed: %s", e)
        raise StorageError() from e


async def list_appointments_for_date(session: AsyncSession, d: date) -> list[Appointment]:
    try:
        result = await session.execute(
            select(Appointment).where(Appointment.date == d).order_by(Appointment.slot_index)
        )
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.exception("List appointments failed: %s", e)
        raise StorageError() from e


async def delete_appointment_by_date_and_slot(session: AsyncSession, d: date, slot_index: int) -> int:
    """Returns rows removed; 0 means nothing was booked there."""
    try:
        result = await session.execute(
            delete(Appointment).where(Appointment.date == d, Appointment.slot_index == slot_index)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.exception("Delete appointment failed: %s", e)
        raise StorageError() from e
    return result.rowcount or 0


async def list_upcoming_appointments(session: AsyncSession, dates: Iterable[date]) -> list[Appointment]:
    """Appointments on any of `dates` that have someone to remind."""
    dates = list(dates)
    if not dates:
        return []
    try:
        result = await session.execute(
            select(Appointment)
            .where(Appointment.date.in_(dates), Appointment.creator_number.is_not(None))
            .order_by(Appointment.date, Appointment.slot_index)
        )
        return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.exception("List upcoming appointments failed: %s", e)
        raise StorageError() from e


async def delete_appointments_older_than(session: AsyncSession, days: int, today: date) -> int:
    """Delete appointments dated more than `days` before `today`. Returns count deleted."""
    cutoff = today - timedelta(days=days)
    result = await session.execute(delete(Appointment).where(Appointment.date < cutoff))
    await session.flush()
    return result.rowcount or 0
