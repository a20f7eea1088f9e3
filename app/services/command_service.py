"""
WhatsApp bot command handling.

One inbound message in, exactly one reply string out. Appointment commands
(/a, /at, /slots, /reschedule) drive the slot store and the reminder
scheduler; /order, /repair and /delivery create order records.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from functools import partial

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock
from app.core.errors import BotError, FormatError, StorageError
from app.models.appointment import AppointmentCreate
from app.models.order import OrderCreate
from app.services.appointment_service import (
    create_appointment,
    delete_appointment_by_date_and_slot,
    get_appointment_by_date_and_slot,
    list_appointments_for_date,
)
from app.services.order_service import ORDER_TYPES, create_order, parse_amount
from app.services.reminder_scheduler import ReminderScheduler
from app.services.time_slots import (
    all_slots,
    parse_strict_time_to_slot,
    parse_time_to_slot,
    slot_to_display_range,
    slot_to_display_time,
)

logger = logging.getLogger(__name__)

_COMMAND_RE = re.compile(r"^/(\w+)\s*(.*)$", re.DOTALL)
_DAY_WORD_RE = re.compile(r"\b(today|tomorrow)\b", re.IGNORECASE)

SEPARATOR_INFO = "⚠️ *IMPORTANT:* Separate each detail with a COMMA ( , )"

GENERAL_HELP = (
    "👋 *Jewelry Bot Help*\n\n"
    "To see the format for a specific type, send one of these commands:\n\n"
    "👉 */help order* (New Orders)\n"
    "👉 */help repair* (Repairs)\n"
    "👉 */help delivery* (Shipments)\n"
    "👉 */help appointment* (Appointments)\n\n"
    "⚠️ Always use COMMAS ( , ) to separate details."
)

UNKNOWN_COMMAND_REPLY = (
    "👋 Send */help order*, */help repair*, */help delivery* or */help appointment* for instructions."
)

SERVER_ERROR_REPLY = "❌ Server Error"

TOPIC_HELP = {
    "repair": (
        f"🛠 *REPAIR Order Format*\n{SEPARATOR_INFO}\n\n"
        "*Command:*\n/repair Name, Mobile, Address, Total, Advance, Karigar, Notes\n\n"
        "*Example:*\n/repair Deepa Ben, 9925042620, Ahmedabad, 300, 300, HariBabu, Ring repair"
    ),
    "delivery": (
        f"🚚 *DELIVERY Order Format*\n{SEPARATOR_INFO}\n\n"
        "*Command:*\n/delivery Name, Mobile, Address, Total, Advance, TrackingNumber, Notes\n\n"
        "*Example:*\n/delivery Priya, 9876543210, 56 Park Ave, 20000, 20000, TRACK123, Ship urgent"
    ),
    "order": (
        f"💍 *NEW ORDER Format*\n{SEPARATOR_INFO}\n\n"
        "*Command:*\n/order Name, Mobile, Address, Total, Advance, Notes\n\n"
        "*Example:*\n/order Amit, 9988776655, 21 Sector 4, 50000, 10000, Gold Chain design"
    ),
    "appointment": (
        f"📅 *APPOINTMENT Format*\n{SEPARATOR_INFO}\n\n"
        "*Book today:*\n/a Name, Mobile, Time, Notes\n"
        "*Book tomorrow:*\n/at Name, Mobile, Time, Notes\n\n"
        "*Example:*\n/a Rahul, 9876543210, 2:00 PM, Ring fitting\n\n"
        "*See slots:* /slots or /slots tomorrow\n"
        "*Free a slot:* /reschedule 2:00 PM [tomorrow]\n\n"
        "Time must look like 11:30 AM. Slots run 11:00 AM to 7:30 PM."
    ),
}


@dataclass
class InboundMessage:
    body: str
    sender: str
    media_url: str | None = None


def _split_fields(payload: str) -> list[str]:
    return [s.strip() for s in payload.split(",")]


def _split_name(raw: str) -> tuple[str, str]:
    first, _, last = raw.strip().partition(" ")
    return first, last.strip()


class CommandInterpreter:
    def __init__(self, scheduler: ReminderScheduler, clock: Clock) -> None:
        self.scheduler = scheduler
        self.clock = clock
        self._handlers = {
            "help": self._help,
            "slots": self._slots,
            "reschedule": self._reschedule,
            "a": partial(self._book, force_tomorrow=False),
            "at": partial(self._book, force_tomorrow=True),
        }
        for command, order_type in ORDER_TYPES.items():
            self._handlers[command] = partial(self._create_order, order_type=order_type)

    async def handle(self, session: AsyncSession, message: InboundMessage) -> str:
        text = (message.body or "").strip()
        logger.info("Msg from %s: %s", message.sender, text)
        m = _COMMAND_RE.match(text)
        handler = self._handlers.get(m.group(1).lower()) if m else None
        if handler is None:
            return UNKNOWN_COMMAND_REPLY
        try:
            return await handler(session, m.group(2).strip(), message)
        except BotError as e:
            return e.reply
        except Exception as e:
            logger.exception("Command %r from %s failed: %s", text, message.sender, e)
            return SERVER_ERROR_REPLY

    def _target_date(self, tomorrow: bool) -> date:
        return self.clock.tomorrow() if tomorrow else self.clock.today()

    async def _help(self, session: AsyncSession, payload: str, message: InboundMessage) -> str:
        topic = payload.lower()
        for key, text in TOPIC_HELP.items():
            if key in topic:
                return text
        return GENERAL_HELP

    async def _slots(self, session: AsyncSession, payload: str, message: InboundMessage) -> str:
        target = self._target_date("tomorrow" in payload.lower())
        booked = {a.slot_index: a for a in await list_appointments_for_date(session, target)}

        free_lines = [slot_to_display_range(i) for i in all_slots() if i not in booked]
        booked_lines = [
            f"{slot_to_display_range(i)}: {a.full_name} ({a.mobile})" for i, a in sorted(booked.items())
        ]
        parts = [f"📅 *Slots for {target.isoformat()}*", "", f"✅ *Free ({len(free_lines)}):*"]
        parts.extend(free_lines or ["None"])
        parts.extend(["", f"❌ *Booked ({len(booked_lines)}):*"])
        parts.extend(booked_lines or ["None"])
        return "\n".join(parts)

    async def _reschedule(self, session: AsyncSession, payload: str, message: InboundMessage) -> str:
        text = payload.lower()
        target = self._target_date("tomorrow" in text)
        slot = parse_time_to_slot(_DAY_WORD_RE.sub("", text).strip())
        if slot is None:
            raise FormatError(
                "❌ *Invalid Time*\nExample: */reschedule 11:30 AM* or */reschedule 11:30 AM tomorrow*"
            )

        display = slot_to_display_time(slot)
        existing = await get_appointment_by_date_and_slot(session, target, slot)
        if existing is not None:
            # Keep loaded attributes if the delete fails and the session rolls back
            session.expunge(existing)
            self.scheduler.cancel(existing.id)
        try:
            removed = await delete_appointment_by_date_and_slot(session, target, slot)
        except StorageError:
            if existing is not None:
                self.scheduler.schedule(existing)
            raise
        if not removed:
            return f"ℹ️ Nothing found at {display} on {target.isoformat()}."
        logger.info("Cleared slot %s on %s (requested by %s)", slot, target, message.sender)
        return f"✅ Slot {display} on {target.isoformat()} is now free.\nBook again with */a* or */at*."

    async def _book(
        self, session: AsyncSession, payload: str, message: InboundMessage, force_tomorrow: bool
    ) -> str:
        if "," not in payload:
            raise FormatError(
                "❌ *Comma missing*\nSeparate details with commas.\n"
                "Example: */a Rahul, 9876543210, 2:00 PM, Ring fitting*"
            )
        args = _split_fields(payload)
        if len(args) < 2 or not args[0] or not args[1]:
            raise FormatError("❌ *Invalid Format*\nName and Mobile are mandatory.\nTry: */help appointment*")

        first_name, last_name = _split_name(args[0])
        mobile = args[1]
        time_field = args[2] if len(args) > 2 else ""
        notes = ", ".join(args[3:])

        target = self._target_date(force_tomorrow or "tomorrow" in time_field.lower())
        slot = parse_strict_time_to_slot(_DAY_WORD_RE.sub("", time_field).strip())

        appointment = await create_appointment(
            session,
            AppointmentCreate(
                first_name=first_name,
                last_name=last_name,
                mobile=mobile,
                date=target,
                slot_index=slot,
                creator_number=message.sender or None,
                notes=notes,
            ),
        )
        logger.info("Appointment %s booked for %s slot %s", appointment.id, target, slot)
        self.scheduler.schedule(appointment, notify=[message.sender])

        lines = [
            f"✅ *Appointment Booked!* (ID: {appointment.id})",
            f"👤 {appointment.full_name}",
            f"📱 {appointment.mobile}",
            f"📅 {appointment.date.isoformat()}",
            f"⏰ {appointment.time}",
        ]
        if notes:
            lines.append(f"📝 {notes}")
        return "\n".join(lines)

    async def _create_order(
        self, session: AsyncSession, payload: str, message: InboundMessage, order_type: str
    ) -> str:
        args = _split_fields(payload)
        if len(args) < 2 or not args[0] or not args[1]:
            raise FormatError(
                f"❌ *Invalid Format*\nName and Mobile are mandatory.\nTry: */help {order_type.lower()}*"
            )

        def field(i: int) -> str:
            return args[i] if len(args) > i else ""

        first_name, last_name = _split_name(args[0])
        karigar_name = tracking_number = ""
        if order_type == "Repair":
            karigar_name, notes = field(5), ", ".join(args[6:])
        elif order_type == "Delivery":
            tracking_number, notes = field(5), ", ".join(args[6:])
        else:
            notes = ", ".join(args[5:])

        order = await create_order(
            session,
            OrderCreate(
                first_name=first_name,
                last_name=last_name,
                mobile=field(1),
                address=field(2),
                total_amount=parse_amount(field(3)),
                advance_paid=parse_amount(field(4)),
                type=order_type,
                karigar_name=karigar_name,
                tracking_number=tracking_number,
                notes=notes,
                order_received_date=self.clock.today(),
            ),
        )
        logger.info("%s %s created from %s", order_type, order.id, message.sender)

        lines = [
            f"✅ *{order_type} Created!* (ID: {order.id})",
            f"👤 {first_name} {last_name}".rstrip(),
            f"📱 {order.mobile}",
            f"💰 Bal: {order.remaining_amount:,}",
        ]
        if karigar_name:
            lines.append(f"🔨 Karigar: {karigar_name}")
        if tracking_number:
            lines.append(f"📦 AWB: {tracking_number}")
        if message.media_url:
            lines.append("🖼 Photo received (not stored)")
        return "\n".join(lines)
