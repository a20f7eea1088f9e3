from pydantic import BaseModel


class SlotInfo(BaseModel):
    index: int
    start: str  # "11:00 AM"
    end: str
    label: str  # "11:00 am - 11:30 am"
    available: bool
    booked_by: str | None = None  # "Rahul (9876543210)"
    appointment_id: int | None = None


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    timezone: str
    slots: list[SlotInfo]
