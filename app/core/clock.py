from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.core.config import settings


class Clock:
    """Current instant and calendar date in the business timezone.

    Every "today"/"tomorrow" decision and every slot start instant goes through
    one Clock so bookings, listings and reminders agree on the zone.
    """

    def __init__(self, timezone_name: str) -> None:
        self.tz = ZoneInfo(timezone_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def tomorrow(self) -> date:
        return self.today() + timedelta(days=1)

    def combine(self, d: date, t: time) -> datetime:
        """Aware datetime for a wall-clock time on a business day."""
        return datetime.combine(d, t, tzinfo=self.tz)


def get_clock() -> Clock:
    return Clock(settings.business_timezone)
