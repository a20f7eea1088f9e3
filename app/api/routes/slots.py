from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_clock, get_session
from app.api.schemas.appointment import AvailableSlotsResponse, SlotInfo
from app.core.clock import Clock
from app.services.appointment_service import list_appointments_for_date
from app.services.time_slots import all_slots, slot_to_display_end, slot_to_display_range, slot_to_display_time

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/available", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> AvailableSlotsResponse:
    """Return all 18 slots for the given date (default: today in the business timezone)."""
    target = date_param or clock.today()
    booked = {a.slot_index: a for a in await list_appointments_for_date(session, target)}
    slot_infos = []
    for i in all_slots():
        a = booked.get(i)
        slot_infos.append(
            SlotInfo(
                index=i,
                start=slot_to_display_time(i),
                end=slot_to_display_end(i),
                label=slot_to_display_range(i),
                available=a is None,
                booked_by=f"{a.full_name} ({a.mobile})" if a else None,
                appointment_id=a.id if a else None,
            )
        )
    return AvailableSlotsResponse(
        date=target.isoformat(),
        timezone=str(clock.tz),
        slots=slot_infos,
    )
