from datetime import date

from fastapi import APIRouter, Depends, Query

from backend.app.routers.deps import get_availability_index, http_error
from backend.app.routers.schemas import AvailabilityCheckIn, AvailabilityCheckOut, BookableDateOut
from backend.app.scheduling.availability import AvailabilityIndex
from backend.app.scheduling.errors import SchedulingError
from backend.app.scheduling.models import TimeSlot

router = APIRouter()


@router.get("/restaurants/{restaurant_id}/availability/slots", response_model=list[TimeSlot])
async def list_time_slots(
    restaurant_id: str,
    day: date = Query(alias="date"),
    index: AvailabilityIndex = Depends(get_availability_index),
) -> list[TimeSlot]:
    try:
        return await index.get_available_time_slots(restaurant_id, day)
    except SchedulingError as exc:
        raise http_error(exc) from exc


@router.post("/restaurants/{restaurant_id}/availability/check", response_model=AvailabilityCheckOut)
async def check_availability(
    restaurant_id: str,
    payload: AvailabilityCheckIn,
    index: AvailabilityIndex = Depends(get_availability_index),
) -> AvailabilityCheckOut:
    try:
        available = await index.check_availability(
            restaurant_id, payload.date, payload.time, payload.guests
        )
    except SchedulingError as exc:
        raise http_error(exc) from exc

    return AvailabilityCheckOut(
        available=available,
        date=payload.date,
        time=payload.time,
        guests=payload.guests,
    )


@router.get("/restaurants/{restaurant_id}/availability/bookable", response_model=BookableDateOut)
async def bookable_date(
    restaurant_id: str,
    day: date = Query(alias="date"),
    index: AvailabilityIndex = Depends(get_availability_index),
) -> BookableDateOut:
    """Whether guests may book ``date`` today: not past, within the window, open."""
    try:
        bookable = await index.is_bookable_date(restaurant_id, day, date.today())
    except SchedulingError as exc:
        raise http_error(exc) from exc
    return BookableDateOut(date=day, bookable=bookable)
