class BotError(Exception):
    """Base for failures the bot turns into a reply instead of a crash."""

    reply = "❌ Something went wrong. Please try again."

    def __init__(self, reply: str | None = None) -> None:
        if reply is not None:
            self.reply = reply
        super().__init__(self.reply)


class FormatError(BotError):
    reply = "❌ *Invalid Format*\nSend */help appointment* for the format."


class OutOfBoundsError(BotError):
    reply = "❌ *Outside working hours*\nSlots run from 11:00 AM to 7:30 PM (last slot ends 8:00 PM)."


class StorageError(BotError):
    reply = "❌ Database Error"


class SlotAlreadyBookedError(StorageError):
    reply = "❌ That slot is already booked. Send */slots* to see free times."


class NotificationError(Exception):
    """Outbound message could not be delivered. Logged only, never shown to a user."""
