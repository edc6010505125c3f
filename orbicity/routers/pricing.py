"""
Pricing API Router

Nightly price lookups and seasonal rate administration.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..errors import EngineError
from ..schemas.pricing import (
    SeasonalRateCreate, SeasonalRateUpdate, SeasonalRateResponse,
    SeasonalRateCopy, SeasonalRateCopyResponse,
    NightlyRateResponse, DailyPriceResponse, PriceCalendarResponse
)
from ..services.apartment_service import ApartmentService
from ..services.pricing_engine import RateResolver
from ..services.seasonal_rate_service import SeasonalRateService
from ..utils.http_errors import to_http_exception

router = APIRouter(prefix="/api/pricing", tags=["Pricing"])

MAX_CALENDAR_DAYS = 366


# ================================
# PRICE LOOKUPS
# ================================

@router.get("/price", response_model=NightlyRateResponse)
def get_nightly_price(
    apartment_type: str,
    on: date = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    try:
        apartment = ApartmentService(db).get_by_slug(apartment_type)
    except EngineError as e:
        raise to_http_exception(e)

    return NightlyRateResponse(
        apartment_type=apartment.slug,
        date=on,
        price=RateResolver(db).price(apartment, on),
        currency=settings.currency
    )


@router.get("/calendar", response_model=PriceCalendarResponse)
def get_price_calendar(
    apartment_type: str,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db)
):
    """Per-night prices for [start, end)"""
    if end <= start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end must be after start")
    if (end - start).days > MAX_CALENDAR_DAYS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Calendar range is limited to {MAX_CALENDAR_DAYS} days"
        )
    try:
        apartment = ApartmentService(db).get_by_slug(apartment_type)
    except EngineError as e:
        raise to_http_exception(e)

    priced = RateResolver(db).price_calendar(apartment, start, end)
    return PriceCalendarResponse(
        apartment_type=apartment.slug,
        start_date=start,
        end_date=end,
        currency=settings.currency,
        days=[DailyPriceResponse.model_validate(n) for n in priced.nights],
        total=priced.total
    )


# ================================
# SEASONAL RATES
# ================================

@router.get("/seasonal-rates", response_model=List[SeasonalRateResponse])
def list_seasonal_rates(
    year: Optional[int] = None,
    apartment_type: Optional[str] = None,
    db: Session = Depends(get_db)
):
    try:
        return SeasonalRateService(db).list(year=year, apartment_type=apartment_type)
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/seasonal-rates", response_model=SeasonalRateResponse, status_code=status.HTTP_201_CREATED)
def create_seasonal_rate(data: SeasonalRateCreate, db: Session = Depends(get_db)):
    """Fails with 409 when the month already has an active rate"""
    try:
        return SeasonalRateService(db).create(
            data.apartment_type, data.month, data.year, data.price_per_night, is_active=data.is_active
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.post("/seasonal-rates/copy", response_model=SeasonalRateCopyResponse)
def copy_seasonal_rates(data: SeasonalRateCopy, db: Session = Depends(get_db)):
    try:
        return SeasonalRateService(db).copy_from_year(
            data.from_year, data.to_year, apartment_type=data.apartment_type
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.put("/seasonal-rates/{rate_id}", response_model=SeasonalRateResponse)
def update_seasonal_rate(rate_id: str, data: SeasonalRateUpdate, db: Session = Depends(get_db)):
    try:
        return SeasonalRateService(db).update(
            rate_id, price_per_night=data.price_per_night, is_active=data.is_active
        )
    except EngineError as e:
        raise to_http_exception(e)


@router.delete("/seasonal-rates/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_seasonal_rate(rate_id: str, db: Session = Depends(get_db)):
    try:
        SeasonalRateService(db).delete(rate_id)
    except EngineError as e:
        raise to_http_exception(e)
