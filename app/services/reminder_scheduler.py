"""
In-process reminder timers for booked appointments.

Each appointment id maps to at most one pending asyncio timer that fires
`lead_minutes` before the slot starts and sends a WhatsApp reminder. Timers
live only in memory; `restore_from_store` rebuilds them for today and tomorrow
when the process starts.
"""

import asyncio
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.clock import Clock
from app.core.errors import NotificationError
from app.models.appointment import Appointment
from app.services.appointment_service import list_upcoming_appointments
from app.services.time_slots import slot_start_time, slot_to_display_time

logger = logging.getLogger(__name__)


def build_reminder_message(appointment: Appointment) -> str:
    lines = [
        "⏰ *Appointment Reminder*",
        f"👤 {appointment.full_name}",
        f"📱 {appointment.mobile}",
        f"🕒 {slot_to_display_time(appointment.slot_index)}",
    ]
    if appointment.notes:
        lines.append(f"📝 {appointment.notes}")
    return "\n".join(lines)


class ReminderScheduler:
    def __init__(
        self,
        notifier,
        clock: Clock,
        session_maker: async_sessionmaker[AsyncSession],
        lead_minutes: int = 10,
        stale_grace_minutes: int = 30,
    ) -> None:
        self._notifier = notifier
        self._clock = clock
        self._session_maker = session_maker
        self._lead = timedelta(minutes=lead_minutes)
        self._stale_grace = timedelta(minutes=stale_grace_minutes)
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._deliveries: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._timers)

    def is_scheduled(self, appointment_id: int) -> bool:
        return appointment_id in self._timers

    def schedule(self, appointment: Appointment, notify: list[str] | None = None) -> bool:
        """Register (or replace) the reminder for one appointment.

        Returns False when nothing was scheduled: the reminder instant is more
        than the grace period in the past, or there is nobody to notify.
        """
        appointment_id = appointment.id
        self.cancel(appointment_id)

        recipients = [a for a in (notify or [appointment.creator_number]) if a]
        if not recipients:
            logger.info("Appointment %s has no reminder recipient, not scheduling", appointment_id)
            return False

        slot_start = self._clock.combine(appointment.date, slot_start_time(appointment.slot_index))
        remind_at = slot_start - self._lead
        now = self._clock.now()
        if now - remind_at > self._stale_grace:
            logger.info(
                "Skipping stale reminder for appointment %s (was due %s)", appointment_id, remind_at.isoformat()
            )
            return False

        delay = max((remind_at - now).total_seconds(), 0.0)
        message = build_reminder_message(appointment)
        loop = asyncio.get_running_loop()
        self._timers[appointment_id] = loop.call_later(delay, self._fire, appointment_id, message, recipients)
        logger.info(
            "Reminder for appointment %s scheduled at %s (in %.0fs)", appointment_id, remind_at.isoformat(), delay
        )
        return True

    def cancel(self, appointment_id: int | None) -> bool:
        """Cancel a pending reminder. No-op (False) if none is registered or it already fired."""
        handle = self._timers.pop(appointment_id, None)
        if handle is None:
            return False
        handle.cancel()
        logger.info("Reminder for appointment %s cancelled", appointment_id)
        return True

    def _fire(self, appointment_id: int, message: str, recipients: list[str]) -> None:
        self._timers.pop(appointment_id, None)
        logger.info("Reminder for appointment %s firing", appointment_id)
        task = asyncio.create_task(self._deliver(appointment_id, message, recipients))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, appointment_id: int, message: str, recipients: list[str]) -> None:
        # Best effort: each recipient gets one attempt, failures are only logged
        for address in recipients:
            try:
                await self._notifier.send(address, message)
            except NotificationError as e:
                logger.warning("Reminder for appointment %s to %s failed: %s", appointment_id, address, e)
            except Exception as e:
                logger.exception("Reminder for appointment %s to %s crashed: %s", appointment_id, address, e)

    async def restore_from_store(self) -> int:
        """Re-create timers for today's and tomorrow's bookings. Returns the number scheduled."""
        dates = [self._clock.today(), self._clock.tomorrow()]
        async with self._session_maker() as session:
            appointments = await list_upcoming_appointments(session, dates)
        scheduled = 0
        for appointment in appointments:
            try:
                if self.schedule(appointment):
                    scheduled += 1
            except Exception as e:
                logger.exception("Could not restore reminder for appointment %s: %s", appointment.id, e)
        logger.info("Restored %d of %d upcoming reminder(s)", scheduled, len(appointments))
        return scheduled

    async def drain(self) -> None:
        """Wait for reminders that already fired to finish sending."""
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries), return_exceptions=True)

    def shutdown(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        for task in self._deliveries:
            task.cancel()
