from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from ..database import get_db
from ..errors import EngineError
from ..schemas.block import AvailabilityResponse, CalendarDayResponse
from ..services.apartment_service import ApartmentService
from ..services.availability import AvailabilityResolver
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/availability", tags=["Availability"])

MAX_CALENDAR_DAYS = 366


def _check_range(start: date, end: date):
    if end <= start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end must be after start")


@router.get("/{slug}", response_model=AvailabilityResponse)
def check_availability(
    slug: str,
    start: date = Query(...),
    end: date = Query(...),
    exclude_booking_id: Optional[str] = None,
    db: Session = Depends(get_db)
):
    _check_range(start, end)
    try:
        apartment = ApartmentService(db).get_by_slug(slug)
    except EngineError as e:
        raise to_http_exception(e)

    conflicts = AvailabilityResolver(db).find_conflicts(apartment.id, start, end, exclude_booking_id)
    return AvailabilityResponse(
        apartment_type=apartment.slug,
        start_date=start,
        end_date=end,
        available=conflicts.is_empty,
        conflicting_booking_ids=conflicts.booking_ids,
        conflicting_block_ids=conflicts.blocked_range_ids
    )


@router.get("/{slug}/calendar", response_model=List[CalendarDayResponse])
def availability_calendar(
    slug: str,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db)
):
    """One entry per night; used by the booking widget and the staff calendar"""
    _check_range(start, end)
    if (end - start).days > MAX_CALENDAR_DAYS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Calendar range is limited to {MAX_CALENDAR_DAYS} days"
        )
    try:
        apartment = ApartmentService(db).get_by_slug(slug)
    except EngineError as e:
        raise to_http_exception(e)

    return AvailabilityResolver(db).calendar(apartment.id, start, end)
