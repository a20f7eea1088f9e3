from datetime import UTC, datetime
from datetime import date as DateType  # a field below is named "date"

from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.services.time_slots import SLOT_COUNT


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # One booking per slot per day; a violation is the "already booked" signal
    __table_args__ = (
        UniqueConstraint("date", "slot_index", name="uq_appointments_date_slot"),
        CheckConstraint(f"slot_index >= 0 AND slot_index < {SLOT_COUNT}", name="ck_appointments_slot_index"),
    )

    id: int | None = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = ""
    mobile: str
    date: DateType = Field(index=True)
    time: str  # display cache of slot_index, e.g. "11:30 AM"
    slot_index: int
    creator_number: str | None = None
    notes: str = ""
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class AppointmentCreate(SQLModel):
    first_name: str
    last_name: str = ""
    mobile: str
    date: DateType
    slot_index: int
    creator_number: str | None = None
    notes: str = ""
